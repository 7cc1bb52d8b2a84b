from typing import Optional

from pydantic import BaseModel, field_validator


def _check_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError('Playlist name cannot be empty')
    if len(v.strip()) > 100:
        raise ValueError('Playlist name too long (max 100 characters)')
    return v.strip()


def _check_description(v: str) -> str:
    if not v or not v.strip():
        raise ValueError('Playlist description cannot be empty')
    if len(v.strip()) > 500:
        raise ValueError('Description too long (max 500 characters)')
    return v.strip()


class PlaylistCreate(BaseModel):
    name: str
    description: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _check_description(v)


class PlaylistUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return None if v is None else _check_name(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return None if v is None else _check_description(v)
