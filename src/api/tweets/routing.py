import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Like, Tweet, User
from api.errors import ApiError, ForbiddenError, NotFoundError
from api.responses import api_response
from api.utils import count_where, validate_object_id

from .models import TweetCreate, TweetUpdate

# Set up logging
logger = logging.getLogger("tweets")

router = APIRouter(tags=["tweets"])


def _tweet_payload(db_session: Session, tweet: Tweet, owner: User) -> dict:
    return {
        "id": tweet.id,
        "content": tweet.content,
        "reply_to": tweet.reply_to_id,
        "owner": owner.public_profile(),
        "likes_count": count_where(db_session, Like, Like.tweet_id == tweet.id),
        "created_at": tweet.created_at,
        "updated_at": tweet.updated_at,
    }


def _get_owned_tweet(db_session: Session, tweet_id: str, current_user: User, action: str) -> Tweet:
    tweet = db_session.get(Tweet, validate_object_id(tweet_id, "Tweet"))
    if not tweet:
        raise NotFoundError("Tweet not found")
    if tweet.owner_id != current_user.id:
        logger.warning(f"User {current_user.id} tried to {action} tweet {tweet.id}")
        raise ForbiddenError(f"You are not authorized to {action} this tweet")
    return tweet


@router.post("/")
def create_tweet(
    payload: TweetCreate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Post a tweet, optionally as a reply to another tweet."""
    reply_to_id = None
    if payload.reply_to:
        reply_to_id = validate_object_id(payload.reply_to, "Tweet")
        if not db_session.get(Tweet, reply_to_id):
            raise NotFoundError("Tweet being replied to not found")

    try:
        tweet = Tweet(content=payload.content, owner_id=current_user.id, reply_to_id=reply_to_id)
        db_session.add(tweet)
        db_session.commit()
        db_session.refresh(tweet)
    except SQLAlchemyError as e:
        logger.error(f"Database error in create_tweet: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} created tweet {tweet.id}")
    return api_response(_tweet_payload(db_session, tweet, current_user), "Tweet created successfully", 201)


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: str,
    db_session: Session = Depends(get_session),
):
    """All tweets of a user, newest first."""
    owner = db_session.get(User, validate_object_id(user_id, "User"))
    if not owner:
        raise NotFoundError("User not found")

    tweets = db_session.exec(
        select(Tweet)
        .where(Tweet.owner_id == owner.id)
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
    ).all()
    return api_response(
        [_tweet_payload(db_session, tweet, owner) for tweet in tweets],
        "User tweets fetched successfully",
    )


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    payload: TweetUpdate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Edit a tweet's content (only by its author)."""
    tweet = _get_owned_tweet(db_session, tweet_id, current_user, "update")
    try:
        tweet.content = payload.content
        db_session.add(tweet)
        db_session.commit()
        db_session.refresh(tweet)
    except SQLAlchemyError as e:
        logger.error(f"Database error in update_tweet: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} updated tweet {tweet.id}")
    return api_response(_tweet_payload(db_session, tweet, current_user), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(
    tweet_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a tweet (only by its author). Replies to it are kept but detached."""
    tweet = _get_owned_tweet(db_session, tweet_id, current_user, "delete")
    try:
        db_session.exec(delete(Like).where(Like.tweet_id == tweet.id))
        db_session.exec(
            update(Tweet).where(Tweet.reply_to_id == tweet.id).values(reply_to_id=None)
        )
        db_session.delete(tweet)
        db_session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in delete_tweet: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} deleted tweet {tweet_id}")
    return api_response({}, "Tweet deleted successfully")
