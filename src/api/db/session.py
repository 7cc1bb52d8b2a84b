from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine
from api.config import settings

DATABASE_URL = settings.DATABASE_URL
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL must be set in the environment")

_engine_kwargs = {}
if DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    # In-memory databases live on a single connection
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        _engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **_engine_kwargs)


def init_db():
    """Initialize database schema in local/dev when explicitly enabled.

    To enable automatic table creation for local development, set
    DB_AUTO_CREATE=1.
    """
    if settings.DB_AUTO_CREATE:
        SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
