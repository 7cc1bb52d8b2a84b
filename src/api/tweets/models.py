from typing import Optional

from pydantic import BaseModel, field_validator

MAX_TWEET_LENGTH = 280


def _check_content(v: str) -> str:
    if not v or not v.strip():
        raise ValueError('Tweet content cannot be empty')
    if len(v.strip()) > MAX_TWEET_LENGTH:
        raise ValueError(f'Tweet content too long (max {MAX_TWEET_LENGTH} characters)')
    return v.strip()


class TweetCreate(BaseModel):
    content: str
    reply_to: Optional[str] = None

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return _check_content(v)


class TweetUpdate(BaseModel):
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return _check_content(v)
