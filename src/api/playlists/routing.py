import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from api.db.session import get_session
from api.auth.utils import get_current_user
from api.db.models import Playlist, PlaylistVideo, User, Video, get_utc_now
from api.errors import ApiError, BadRequestError, ForbiddenError, NotFoundError
from api.responses import api_response
from api.utils import count_where, validate_object_id

from .models import PlaylistCreate, PlaylistUpdate

# Set up logging
logger = logging.getLogger("playlists")

router = APIRouter(tags=["playlists"])


def _playlist_summary(playlist: Playlist) -> dict:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "description": playlist.description,
        "owner_id": playlist.owner_id,
        "created_at": playlist.created_at,
        "updated_at": playlist.updated_at,
    }


def _playlist_details(db_session: Session, playlist: Playlist) -> dict:
    videos = db_session.exec(
        select(Video)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .where(PlaylistVideo.playlist_id == playlist.id)
        .order_by(PlaylistVideo.position, PlaylistVideo.added_at)
    ).all()
    data = _playlist_summary(playlist)
    data["videos"] = [
        {
            "id": video.id,
            "title": video.title,
            "thumbnail": video.thumbnail,
            "duration": video.duration,
        }
        for video in videos
    ]
    data["video_count"] = len(videos)
    return data


def _get_playlist(db_session: Session, playlist_id: str) -> Playlist:
    playlist = db_session.get(Playlist, validate_object_id(playlist_id, "Playlist"))
    if not playlist:
        raise NotFoundError("Playlist not found")
    return playlist


def _get_owned_playlist(db_session: Session, playlist_id: str, current_user: User, action: str) -> Playlist:
    playlist = _get_playlist(db_session, playlist_id)
    if playlist.owner_id != current_user.id:
        logger.warning(f"User {current_user.id} tried to {action} playlist {playlist.id}")
        raise ForbiddenError(f"You are not authorized to {action} this playlist")
    return playlist


def _touch(db_session: Session, playlist: Playlist) -> None:
    playlist.updated_at = get_utc_now()
    db_session.add(playlist)


# Playlist CRUD Endpoints
@router.post("/")
def create_playlist(
    payload: PlaylistCreate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new playlist."""
    try:
        playlist = Playlist(
            name=payload.name,
            description=payload.description,
            owner_id=current_user.id,
        )
        db_session.add(playlist)
        db_session.commit()
        db_session.refresh(playlist)
    except SQLAlchemyError as e:
        logger.error(f"Database error in create_playlist: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} created playlist '{playlist.name}'")
    return api_response(_playlist_details(db_session, playlist), "Playlist created successfully", 201)


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: str,
    db_session: Session = Depends(get_session),
):
    """Get all playlists of a user, most recently updated first."""
    user_id = validate_object_id(user_id, "User")
    playlists = db_session.exec(
        select(Playlist)
        .where(Playlist.owner_id == user_id)
        .order_by(Playlist.updated_at.desc())
    ).all()

    result = []
    for playlist in playlists:
        data = _playlist_summary(playlist)
        data["video_count"] = count_where(db_session, PlaylistVideo, PlaylistVideo.playlist_id == playlist.id)
        result.append(data)

    message = "Playlists fetched successfully" if result else "No playlists found"
    return api_response(result, message)


@router.get("/{playlist_id}")
def get_playlist_by_id(
    playlist_id: str,
    db_session: Session = Depends(get_session),
):
    """Get a playlist including its videos in order."""
    playlist = _get_playlist(db_session, playlist_id)
    return api_response(_playlist_details(db_session, playlist), "Playlist details fetched successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Update playlist name and/or description."""
    playlist = _get_owned_playlist(db_session, playlist_id, current_user, "update")
    if payload.name is None and payload.description is None:
        raise BadRequestError("Nothing to update: provide a name or a description")

    try:
        if payload.name is not None:
            playlist.name = payload.name
        if payload.description is not None:
            playlist.description = payload.description
        db_session.add(playlist)
        db_session.commit()
        db_session.refresh(playlist)
    except SQLAlchemyError as e:
        logger.error(f"Database error in update_playlist: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} updated playlist {playlist.id}")
    return api_response(_playlist_details(db_session, playlist), "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a playlist and all its entries."""
    playlist = _get_owned_playlist(db_session, playlist_id, current_user, "delete")
    try:
        # Entries first (foreign key to playlist)
        db_session.exec(delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id))
        db_session.delete(playlist)
        db_session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in delete_playlist: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} deleted playlist {playlist_id}")
    return api_response({}, "Playlist deleted successfully")


# Playlist Video Management
@router.post("/{playlist_id}/videos/{video_id}")
def add_video_to_playlist(
    playlist_id: str,
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Append a video to a playlist."""
    video_id = validate_object_id(video_id, "Video")
    playlist = _get_owned_playlist(db_session, playlist_id, current_user, "modify")
    if not db_session.get(Video, video_id):
        raise NotFoundError("Video not found")

    existing = db_session.exec(
        select(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist.id,
            PlaylistVideo.video_id == video_id,
        )
    ).first()
    if existing:
        raise BadRequestError("Video already exists in the playlist")

    max_position = db_session.exec(
        select(func.max(PlaylistVideo.position)).where(PlaylistVideo.playlist_id == playlist.id)
    ).first() or 0

    try:
        db_session.add(PlaylistVideo(playlist_id=playlist.id, video_id=video_id, position=max_position + 1))
        _touch(db_session, playlist)
        db_session.commit()
        db_session.refresh(playlist)
    except IntegrityError:
        db_session.rollback()
        raise BadRequestError("Video already exists in the playlist")
    except SQLAlchemyError as e:
        logger.error(f"Database error in add_video_to_playlist: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} added video {video_id} to playlist {playlist.id}")
    return api_response(_playlist_details(db_session, playlist), "Video added to playlist successfully")


@router.delete("/{playlist_id}/videos/{video_id}")
def remove_video_from_playlist(
    playlist_id: str,
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Remove a video from a playlist. Removing an absent video is a no-op."""
    video_id = validate_object_id(video_id, "Video")
    playlist = _get_owned_playlist(db_session, playlist_id, current_user, "modify")
    try:
        removed = db_session.exec(
            delete(PlaylistVideo).where(
                PlaylistVideo.playlist_id == playlist.id,
                PlaylistVideo.video_id == video_id,
            )
        ).rowcount
        if removed:
            _touch(db_session, playlist)
        db_session.commit()
        db_session.refresh(playlist)
    except SQLAlchemyError as e:
        logger.error(f"Database error in remove_video_from_playlist: {e}")
        db_session.rollback()
        raise ApiError("Database error")

    logger.info(f"User {current_user.id} removed video {video_id} from playlist {playlist.id}")
    return api_response(_playlist_details(db_session, playlist), "Video removed from playlist successfully")
