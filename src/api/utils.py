import math
import uuid
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from api.errors import BadRequestError

MAX_PAGE_SIZE = 100


def validate_object_id(value: Optional[str], label: str) -> str:
    """Return the canonical form of an identifier or raise a 400.

    Identifiers are UUID strings; anything else is rejected before the
    database is touched.
    """
    if not value or not value.strip():
        raise BadRequestError(f"{label} ID is required")
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise BadRequestError(f"Invalid {label.lower()} ID")


def validate_pagination(page: int, limit: int) -> tuple[int, int]:
    if page < 1 or limit < 1:
        raise BadRequestError("Invalid pagination parameters")
    return page, min(limit, MAX_PAGE_SIZE)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def count_where(db_session: Session, model, *clauses) -> int:
    query = select(func.count()).select_from(model)
    for clause in clauses:
        query = query.where(clause)
    return db_session.exec(query).one()
