from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from api.db.models import Like, Subscription, Video
from api.utils import count_where


class ChannelStats(BaseModel):
    total_videos: int
    total_views: int
    total_subscribers: int
    total_likes: int


def channel_stats(db_session: Session, channel_id: str) -> ChannelStats:
    """Per-channel totals. Each figure is its own query; there is no snapshot
    across them."""
    total_videos = count_where(db_session, Video, Video.owner_id == channel_id)
    total_views = db_session.exec(
        select(func.coalesce(func.sum(Video.views), 0)).where(Video.owner_id == channel_id)
    ).one()
    total_subscribers = count_where(db_session, Subscription, Subscription.channel_id == channel_id)
    total_likes = db_session.exec(
        select(func.count(Like.id))
        .join(Video, Like.video_id == Video.id)
        .where(Video.owner_id == channel_id)
    ).one()
    return ChannelStats(
        total_videos=total_videos,
        total_views=int(total_views),
        total_subscribers=total_subscribers,
        total_likes=total_likes,
    )
