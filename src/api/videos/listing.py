"""Paginated video listing.

The listing is built in a fixed order: text search, owner filter, sort,
owner join, card projection, pagination. Each step only narrows or reshapes
what the previous one produced, so the count query shares the filters and
nothing else.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_
from sqlmodel import Session, select

from api.db.models import User, Video
from api.errors import BadRequestError
from api.utils import total_pages, validate_object_id, validate_pagination

SORTABLE_FIELDS = {
    "created_at": Video.created_at,
    "createdAt": Video.created_at,
    "updated_at": Video.updated_at,
    "updatedAt": Video.updated_at,
    "title": Video.title,
    "duration": Video.duration,
    "views": Video.views,
}


@dataclass
class VideoListParams:
    page: int = 1
    limit: int = 10
    query: Optional[str] = None
    sort_by: str = "created_at"
    sort_type: str = "desc"
    user_id: Optional[str] = None


def _filters(params: VideoListParams) -> list:
    clauses = []
    if params.query and params.query.strip():
        # % and _ in user text are literal characters
        text = params.query.strip()
        clauses.append(
            or_(
                Video.title.icontains(text, autoescape=True),
                Video.description.icontains(text, autoescape=True),
            )
        )
    if params.user_id:
        clauses.append(Video.owner_id == validate_object_id(params.user_id, "User"))
    return clauses


def _ordering(params: VideoListParams) -> tuple:
    column = SORTABLE_FIELDS.get(params.sort_by or "created_at")
    if column is None:
        raise BadRequestError(f"Cannot sort videos by '{params.sort_by}'")
    if params.sort_type == "asc":
        return column.asc(), Video.id.asc()
    return column.desc(), Video.id.desc()


def listing_card(video: Video, owner: User) -> dict:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "thumbnail": video.thumbnail,
        "video_file": video.video_file,
        "duration": video.duration,
        "created_at": video.created_at,
        "owner": owner.public_profile(),
    }


def list_videos(db_session: Session, params: VideoListParams) -> dict:
    page, limit = validate_pagination(params.page, params.limit)
    clauses = _filters(params)
    ordering = _ordering(params)

    count_query = select(func.count()).select_from(Video)
    query_builder = select(Video, User).join(User, Video.owner_id == User.id)
    for clause in clauses:
        count_query = count_query.where(clause)
        query_builder = query_builder.where(clause)

    total = db_session.exec(count_query).one()
    rows = db_session.exec(
        query_builder.order_by(*ordering).offset((page - 1) * limit).limit(limit)
    ).all()

    pages = total_pages(total, limit)
    return {
        "videos": [listing_card(video, owner) for video, owner in rows],
        "total_videos": total,
        "page": page,
        "limit": limit,
        "total_pages": pages,
        "has_next_page": page < pages,
        "has_prev_page": page > 1,
    }
