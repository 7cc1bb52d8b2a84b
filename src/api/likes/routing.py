import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Comment, Like, Tweet, User, Video
from api.errors import ApiError, NotFoundError
from api.responses import api_response
from api.utils import count_where, validate_object_id

# Set up logging
logger = logging.getLogger("likes")

router = APIRouter(tags=["likes"])


def toggle_like(db_session: Session, user: User, target_field: str, target_id: str) -> tuple[bool, int]:
    """Flip the user's like on one target and return (liked, likes_count).

    Removal is a single conditional delete. Insertion relies on the unique
    (user, target) constraint: losing a concurrent race to insert the same
    like surfaces as IntegrityError and leaves the target liked.
    """
    column = getattr(Like, target_field)
    try:
        removed = db_session.exec(
            delete(Like).where(Like.liked_by_id == user.id, column == target_id)
        ).rowcount
        if removed:
            db_session.commit()
            liked = False
        else:
            db_session.add(Like(liked_by_id=user.id, **{target_field: target_id}))
            try:
                db_session.commit()
            except IntegrityError:
                db_session.rollback()
                logger.info(f"Concurrent like by user {user.id} on {target_field} {target_id}")
            liked = True
    except SQLAlchemyError as e:
        logger.error(f"Database error in toggle_like: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {user.id} {'liked' if liked else 'unliked'} {target_field} {target_id}")
    return liked, count_where(db_session, Like, column == target_id)


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Like a video, or remove the like if it is already there."""
    video = db_session.get(Video, validate_object_id(video_id, "Video"))
    if not video:
        raise NotFoundError("Video not found")

    liked, likes_count = toggle_like(db_session, current_user, "video_id", video.id)
    return api_response(
        {"video_id": video.id, "liked": liked, "likes_count": likes_count},
        f"Video has been {'liked' if liked else 'unliked'} successfully",
    )


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Like a comment, or remove the like if it is already there."""
    comment = db_session.get(Comment, validate_object_id(comment_id, "Comment"))
    if not comment:
        raise NotFoundError("Comment not found")

    liked, likes_count = toggle_like(db_session, current_user, "comment_id", comment.id)
    return api_response(
        {"comment_id": comment.id, "liked": liked, "likes_count": likes_count},
        f"Comment has been {'liked' if liked else 'unliked'} successfully",
    )


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(
    tweet_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Like a tweet, or remove the like if it is already there."""
    tweet = db_session.get(Tweet, validate_object_id(tweet_id, "Tweet"))
    if not tweet:
        raise NotFoundError("Tweet not found")

    liked, likes_count = toggle_like(db_session, current_user, "tweet_id", tweet.id)
    return api_response(
        {"tweet_id": tweet.id, "liked": liked, "likes_count": likes_count},
        f"Tweet has been {'liked' if liked else 'unliked'} successfully",
    )


@router.get("/videos")
def get_liked_videos(
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Videos the current user has liked, most recently liked first."""
    rows = db_session.exec(
        select(Video, User)
        .join(User, Video.owner_id == User.id)
        .join(Like, Like.video_id == Video.id)
        .where(Like.liked_by_id == current_user.id)
        .order_by(Like.created_at.desc())
    ).all()

    videos = [
        {
            "id": video.id,
            "title": video.title,
            "thumbnail": video.thumbnail,
            "video_file": video.video_file,
            "duration": video.duration,
            "created_at": video.created_at,
            "owner": owner.public_profile(),
        }
        for video, owner in rows
    ]
    message = "Liked videos fetched successfully" if videos else "No liked videos found"
    return api_response(videos, message)
