import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import SQLModel, Field


def generate_id() -> str:
    return str(uuid.uuid4())


def get_utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedModel(SQLModel):
    created_at: datetime = Field(default_factory=get_utc_now)
    updated_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column_kwargs={"onupdate": get_utc_now},
    )


class User(TimestampedModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    username: str = Field(index=True, unique=True, max_length=50)
    email: str = Field(index=True, unique=True, max_length=255)
    full_name: str = Field(default="", max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=500)
    hashed_password: str

    def public_profile(self) -> dict:
        """Fields of a user that are safe to show next to their content."""
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "avatar": self.avatar,
        }


class Video(TimestampedModel, table=True):
    """An uploaded video; media itself lives in the object store."""
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    video_file: str = Field(max_length=500)
    video_public_id: str = Field(max_length=64)
    thumbnail: str = Field(max_length=500)
    thumbnail_public_id: str = Field(max_length=64)
    title: str = Field(min_length=3, max_length=100, index=True)
    description: str = Field(min_length=10, max_length=5000)
    duration: float = Field(gt=0)  # seconds
    views: int = Field(default=0, ge=0)
    is_published: bool = Field(default=True)
    owner_id: str = Field(foreign_key="user.id", index=True)


class Comment(TimestampedModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    content: str = Field(max_length=1000)
    video_id: str = Field(foreign_key="video.id", index=True)
    owner_id: str = Field(foreign_key="user.id", index=True)


class Tweet(TimestampedModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    content: str = Field(max_length=280)
    owner_id: str = Field(foreign_key="user.id", index=True)
    reply_to_id: Optional[str] = Field(default=None, foreign_key="tweet.id", index=True)


class Like(TimestampedModel, table=True):
    """A user's like on exactly one video, comment or tweet."""
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    liked_by_id: str = Field(foreign_key="user.id", index=True)
    video_id: Optional[str] = Field(default=None, foreign_key="video.id", index=True)
    comment_id: Optional[str] = Field(default=None, foreign_key="comment.id", index=True)
    tweet_id: Optional[str] = Field(default=None, foreign_key="tweet.id", index=True)

    __table_args__ = (
        UniqueConstraint("liked_by_id", "video_id", name="uq_like_user_video"),
        UniqueConstraint("liked_by_id", "comment_id", name="uq_like_user_comment"),
        UniqueConstraint("liked_by_id", "tweet_id", name="uq_like_user_tweet"),
        CheckConstraint(
            "(CASE WHEN video_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN comment_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN tweet_id IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_like_single_target",
        ),
    )


class Playlist(TimestampedModel, table=True):
    """User-created playlists for organizing videos."""
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100)
    description: str = Field(max_length=500)
    owner_id: str = Field(foreign_key="user.id", index=True)


class PlaylistVideo(SQLModel, table=True):
    """Videos in playlists, ordered by position."""
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    playlist_id: str = Field(foreign_key="playlist.id", index=True)
    video_id: str = Field(foreign_key="video.id", index=True)
    position: int = Field(default=0)
    added_at: datetime = Field(default_factory=get_utc_now)

    __table_args__ = (
        UniqueConstraint("playlist_id", "video_id", name="uq_playlist_video"),
    )


class Subscription(TimestampedModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    subscriber_id: str = Field(foreign_key="user.id", index=True)
    channel_id: str = Field(foreign_key="user.id", index=True)

    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscription_pair"),
    )
