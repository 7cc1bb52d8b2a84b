import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Comment, Like, PlaylistVideo, User, Video
from api.errors import (
    ApiError,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
    first_error_message,
)
from api.media.gateway import IMAGE, VIDEO, MediaGateway, get_media_gateway, save_upload
from api.responses import api_response
from api.utils import count_where, validate_object_id

from .listing import VideoListParams, list_videos
from .models import VideoPublish, VideoUpdate

# Set up logging
logger = logging.getLogger("videos")

router = APIRouter(tags=["videos"])


def _video_detail(db_session: Session, video: Video, owner: User) -> dict:
    data = video.model_dump(exclude={"owner_id"})
    data["owner"] = owner.public_profile()
    data["likes_count"] = count_where(db_session, Like, Like.video_id == video.id)
    data["comments_count"] = count_where(db_session, Comment, Comment.video_id == video.id)
    return data


def _get_owned_video(db_session: Session, video_id: str, current_user: User, action: str) -> Video:
    video = db_session.get(Video, validate_object_id(video_id, "Video"))
    if not video:
        raise NotFoundError("Video not found")
    if video.owner_id != current_user.id:
        logger.warning(f"User {current_user.id} tried to {action} video {video.id}")
        raise ForbiddenError(f"You are not authorized to {action} this video")
    return video


@router.get("/")
def get_all_videos(
    page: int = 1,
    limit: int = 10,
    query: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    db_session: Session = Depends(get_session),
):
    """
    List videos with optional text search and owner filter.
    - Query params: page, limit, query, sortBy, sortType (asc|desc), userId
    - Returns: paginated listing cards with owner profiles
    """
    params = VideoListParams(
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
    )
    result = list_videos(db_session, params)
    return api_response(result, "Videos fetched successfully")


@router.post("/")
def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: Optional[float] = Form(None),
    video_file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: MediaGateway = Depends(get_media_gateway),
):
    """
    Publish a video. Multipart form with title, description, duration and the
    video_file / thumbnail uploads.
    """
    if not title or not description or not duration:
        raise BadRequestError("Title, description, and duration are required")
    try:
        payload = VideoPublish(title=title, description=description, duration=duration)
    except ValidationError as e:
        raise BadRequestError(first_error_message(e.errors()))

    if not video_file or not video_file.filename:
        raise BadRequestError("Video file is required")
    if not thumbnail or not thumbnail.filename:
        raise BadRequestError("Thumbnail file is required")

    video_asset = gateway.store(save_upload(video_file), VIDEO, video_file.content_type)
    if not video_asset:
        raise UpstreamError("Error uploading files to media storage")
    thumbnail_asset = gateway.store(save_upload(thumbnail), IMAGE, thumbnail.content_type)
    if not thumbnail_asset:
        if not gateway.remove(video_asset.public_id, VIDEO):
            logger.warning(f"Uploaded video {video_asset.public_id} left behind after thumbnail failure")
        raise UpstreamError("Error uploading files to media storage")

    video = Video(
        title=payload.title,
        description=payload.description,
        duration=payload.duration,
        video_file=video_asset.url,
        video_public_id=video_asset.public_id,
        thumbnail=thumbnail_asset.url,
        thumbnail_public_id=thumbnail_asset.public_id,
        owner_id=current_user.id,
    )
    try:
        db_session.add(video)
        db_session.commit()
        db_session.refresh(video)
    except SQLAlchemyError as e:
        logger.error(f"Database error in publish_video: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} published video {video.id}")
    return api_response(_video_detail(db_session, video, current_user), "Video published successfully", 201)


@router.get("/{video_id}")
def get_video_by_id(
    video_id: str,
    db_session: Session = Depends(get_session),
):
    """
    Fetch a video with its owner profile and like/comment counts. Each fetch
    counts as one view.
    """
    video_id = validate_object_id(video_id, "Video")
    row = db_session.exec(
        select(Video, User).join(User, Video.owner_id == User.id).where(Video.id == video_id)
    ).first()
    if not row:
        raise NotFoundError("Video not found")

    db_session.exec(
        update(Video)
        .where(Video.id == video_id)
        .values(views=Video.views + 1, updated_at=Video.updated_at)
    )
    db_session.commit()
    video, owner = row
    db_session.refresh(video)
    return api_response(_video_detail(db_session, video, owner), "Video fetched successfully")


@router.patch("/{video_id}")
def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: MediaGateway = Depends(get_media_gateway),
):
    """
    Update title, description and/or thumbnail (only by the video owner).
    Blank fields are left unchanged.
    """
    video = _get_owned_video(db_session, video_id, current_user, "update")
    try:
        changes = VideoUpdate(title=title, description=description)
    except ValidationError as e:
        raise BadRequestError(first_error_message(e.errors()))

    if changes.title:
        video.title = changes.title
    if changes.description:
        video.description = changes.description

    previous_id = None
    if thumbnail and thumbnail.filename:
        uploaded = gateway.store(save_upload(thumbnail), IMAGE, thumbnail.content_type)
        if not uploaded:
            raise UpstreamError("Failed to upload thumbnail")
        previous_id = video.thumbnail_public_id
        video.thumbnail = uploaded.url
        video.thumbnail_public_id = uploaded.public_id

    try:
        db_session.add(video)
        db_session.commit()
        db_session.refresh(video)
    except SQLAlchemyError as e:
        logger.error(f"Database error in update_video: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    # The row no longer references the old thumbnail once committed
    if previous_id and not gateway.remove(previous_id, IMAGE):
        logger.warning(f"Old thumbnail {previous_id} of video {video.id} was not deleted")

    logger.info(f"User {current_user.id} updated video {video.id}")
    return api_response(_video_detail(db_session, video, current_user), "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: MediaGateway = Depends(get_media_gateway),
):
    """
    Delete a video (only by the owner). Media is removed from the store first;
    if that fails the video row is kept and a 500 is returned.
    """
    video = _get_owned_video(db_session, video_id, current_user, "delete")

    if not gateway.remove(video.video_public_id, VIDEO):
        raise UpstreamError("Failed to delete video from media storage")
    if not gateway.remove(video.thumbnail_public_id, IMAGE):
        raise UpstreamError("Failed to delete thumbnail from media storage")

    try:
        comment_ids = select(Comment.id).where(Comment.video_id == video.id)
        db_session.exec(
            delete(Like).where(or_(Like.video_id == video.id, Like.comment_id.in_(comment_ids)))
        )
        db_session.exec(delete(Comment).where(Comment.video_id == video.id))
        db_session.exec(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))
        db_session.delete(video)
        db_session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in delete_video: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} deleted video {video_id}")
    return api_response({}, "Video deleted successfully")


@router.patch("/{video_id}/publish")
def toggle_publish_status(
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Flip the published flag (only by the owner)."""
    video = _get_owned_video(db_session, video_id, current_user, "update")
    video.is_published = not video.is_published
    db_session.add(video)
    db_session.commit()
    db_session.refresh(video)

    state = "published" if video.is_published else "unpublished"
    logger.info(f"User {current_user.id} {state} video {video.id}")
    return api_response(
        {"id": video.id, "is_published": video.is_published},
        f"Video has been {state} successfully",
    )
