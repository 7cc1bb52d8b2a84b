from typing import Optional

from pydantic import BaseModel, Field, field_validator

TITLE_MIN, TITLE_MAX = 3, 100
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 5000


def _check_title(v: str) -> str:
    v = v.strip()
    if not TITLE_MIN <= len(v) <= TITLE_MAX:
        raise ValueError(f'Title must be {TITLE_MIN}-{TITLE_MAX} characters long')
    return v


def _check_description(v: str) -> str:
    v = v.strip()
    if not DESCRIPTION_MIN <= len(v) <= DESCRIPTION_MAX:
        raise ValueError(f'Description must be {DESCRIPTION_MIN}-{DESCRIPTION_MAX} characters long')
    return v


class VideoPublish(BaseModel):
    """Text fields of a publish request; files are validated separately."""
    title: str
    description: str
    duration: float = Field(..., gt=0)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _check_title(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _check_description(v)


class VideoUpdate(BaseModel):
    """Blank values mean "leave unchanged"."""
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is None or not v.strip():
            return None
        return _check_title(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if v is None or not v.strip():
            return None
        return _check_description(v)
