import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Subscription, User
from api.errors import ApiError, NotFoundError
from api.responses import api_response
from api.utils import count_where, validate_object_id

# Set up logging
logger = logging.getLogger("subscriptions")

router = APIRouter(tags=["subscriptions"])


def _get_user(db_session: Session, user_id: str, label: str) -> User:
    user = db_session.get(User, validate_object_id(user_id, label))
    if not user:
        raise NotFoundError(f"{label} not found")
    return user


@router.post("/c/{channel_id}")
def toggle_subscription(
    channel_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Subscribe to a channel, or unsubscribe if already subscribed."""
    channel = _get_user(db_session, channel_id, "Channel")
    try:
        removed = db_session.exec(
            delete(Subscription).where(
                Subscription.subscriber_id == current_user.id,
                Subscription.channel_id == channel.id,
            )
        ).rowcount
        if removed:
            db_session.commit()
            subscribed = False
        else:
            db_session.add(Subscription(subscriber_id=current_user.id, channel_id=channel.id))
            try:
                db_session.commit()
            except IntegrityError:
                # A concurrent request created the same subscription
                db_session.rollback()
            subscribed = True
    except SQLAlchemyError as e:
        logger.error(f"Database error in toggle_subscription: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(
        f"User {current_user.id} {'subscribed to' if subscribed else 'unsubscribed from'} channel {channel.id}"
    )
    return api_response(
        {
            "channel_id": channel.id,
            "subscribed": subscribed,
            "subscribers_count": count_where(db_session, Subscription, Subscription.channel_id == channel.id),
        },
        "Successfully subscribed to the channel" if subscribed else "Successfully unsubscribed from the channel",
    )


@router.get("/c/{channel_id}")
def get_channel_subscribers(
    channel_id: str,
    db_session: Session = Depends(get_session),
):
    """Public profiles of everyone subscribed to a channel."""
    channel = _get_user(db_session, channel_id, "Channel")
    subscribers = db_session.exec(
        select(User)
        .join(Subscription, Subscription.subscriber_id == User.id)
        .where(Subscription.channel_id == channel.id)
        .order_by(Subscription.created_at.desc())
    ).all()
    return api_response(
        [user.public_profile() for user in subscribers],
        "Channel subscribers fetched successfully",
    )


@router.get("/u/{subscriber_id}")
def get_subscribed_channels(
    subscriber_id: str,
    db_session: Session = Depends(get_session),
):
    """Public profiles of the channels a user is subscribed to."""
    subscriber = _get_user(db_session, subscriber_id, "Subscriber")
    channels = db_session.exec(
        select(User)
        .join(Subscription, Subscription.channel_id == User.id)
        .where(Subscription.subscriber_id == subscriber.id)
        .order_by(Subscription.created_at.desc())
    ).all()
    return api_response(
        [user.public_profile() for user in channels],
        "Subscribed channels fetched successfully",
    )
