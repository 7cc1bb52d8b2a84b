import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Like, User, Video
from api.errors import NotFoundError
from api.responses import api_response
from api.utils import count_where, validate_object_id

from .stats import channel_stats

# Set up logging
logger = logging.getLogger("dashboard")

router = APIRouter(tags=["dashboard"])


def _get_channel(db_session: Session, channel_id: str) -> User:
    channel = db_session.get(User, validate_object_id(channel_id, "Channel"))
    if not channel:
        raise NotFoundError("Channel not found")
    return channel


@router.get("/stats")
def get_my_channel_stats(
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Totals for the current user's own channel."""
    stats = channel_stats(db_session, current_user.id)
    return api_response(stats.model_dump(), "Channel stats fetched successfully")


@router.get("/channels/{channel_id}/stats")
def get_channel_stats(
    channel_id: str,
    db_session: Session = Depends(get_session),
):
    channel = _get_channel(db_session, channel_id)
    stats = channel_stats(db_session, channel.id)
    return api_response(stats.model_dump(), "Channel stats fetched successfully")


@router.get("/channels/{channel_id}/videos")
def get_channel_videos(
    channel_id: str,
    db_session: Session = Depends(get_session),
):
    """All videos uploaded by a channel, newest first."""
    channel = _get_channel(db_session, channel_id)
    videos = db_session.exec(
        select(Video)
        .where(Video.owner_id == channel.id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    ).all()

    data = [
        {
            "id": video.id,
            "title": video.title,
            "thumbnail": video.thumbnail,
            "video_file": video.video_file,
            "duration": video.duration,
            "views": video.views,
            "is_published": video.is_published,
            "likes_count": count_where(db_session, Like, Like.video_id == video.id),
            "created_at": video.created_at,
        }
        for video in videos
    ]
    if not data:
        logger.info(f"Channel {channel.id} has no videos")
        return api_response([], "No videos found for this channel")
    return api_response(data, "Channel videos fetched successfully")
