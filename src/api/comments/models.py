from pydantic import BaseModel, field_validator

MAX_COMMENT_LENGTH = 1000


class CommentContent(BaseModel):
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError('Comment content cannot be empty')
        if len(v.strip()) > MAX_COMMENT_LENGTH:
            raise ValueError(f'Comment content too long (max {MAX_COMMENT_LENGTH} characters)')
        return v.strip()
