import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Comment, Like, User, Video
from api.errors import ApiError, ForbiddenError, NotFoundError
from api.responses import api_response
from api.utils import count_where, total_pages, validate_object_id, validate_pagination

from .models import CommentContent

# Set up logging
logger = logging.getLogger("comments")

router = APIRouter(tags=["comments"])


def _comment_payload(comment: Comment, owner: User, likes_count: int = 0) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "video_id": comment.video_id,
        "owner": owner.public_profile(),
        "likes_count": likes_count,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
    }


def _get_owned_comment(db_session: Session, comment_id: str, current_user: User, action: str) -> Comment:
    comment = db_session.get(Comment, validate_object_id(comment_id, "Comment"))
    if not comment:
        raise NotFoundError("Comment not found")
    if comment.owner_id != current_user.id:
        logger.warning(f"User {current_user.id} tried to {action} comment {comment.id}")
        raise ForbiddenError(f"You are not authorized to {action} this comment")
    return comment


@router.get("/video/{video_id}")
def get_video_comments(
    video_id: str,
    page: int = 1,
    limit: int = 10,
    db_session: Session = Depends(get_session),
):
    """
    Get comments for a video, newest first.
    - Query params: page (default 1), limit (default 10)
    """
    video_id = validate_object_id(video_id, "Video")
    page, limit = validate_pagination(page, limit)

    rows = db_session.exec(
        select(Comment, User)
        .join(User, Comment.owner_id == User.id)
        .where(Comment.video_id == video_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    total = count_where(db_session, Comment, Comment.video_id == video_id)

    return api_response(
        {
            "comments": [
                _comment_payload(comment, owner, count_where(db_session, Like, Like.comment_id == comment.id))
                for comment, owner in rows
            ],
            "total_comments": total,
            "page": page,
            "limit": limit,
            "total_pages": total_pages(total, limit),
        },
        "Comments fetched successfully",
    )


@router.post("/video/{video_id}")
def add_comment(
    video_id: str,
    payload: CommentContent,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Create a comment on a video."""
    video = db_session.get(Video, validate_object_id(video_id, "Video"))
    if not video:
        raise NotFoundError("Video not found")

    try:
        comment = Comment(content=payload.content, video_id=video.id, owner_id=current_user.id)
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
    except SQLAlchemyError as e:
        logger.error(f"Database error in add_comment: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} commented on video {video.id}")
    return api_response(_comment_payload(comment, current_user), "Comment added successfully", 201)


@router.patch("/{comment_id}")
def update_comment(
    comment_id: str,
    payload: CommentContent,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Update a comment (only by the comment author)."""
    comment = _get_owned_comment(db_session, comment_id, current_user, "update")
    try:
        comment.content = payload.content
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
    except SQLAlchemyError as e:
        logger.error(f"Database error in update_comment: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} updated comment {comment.id}")
    likes = count_where(db_session, Like, Like.comment_id == comment.id)
    return api_response(_comment_payload(comment, current_user, likes), "Comment updated successfully")


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a comment and its likes (only by the comment author)."""
    comment = _get_owned_comment(db_session, comment_id, current_user, "delete")
    try:
        db_session.exec(delete(Like).where(Like.comment_id == comment.id))
        db_session.delete(comment)
        db_session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in delete_comment: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} deleted comment {comment_id}")
    return api_response({}, "Comment deleted successfully")
