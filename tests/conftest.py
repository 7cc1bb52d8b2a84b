import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from api.db.models import Video  # noqa: E402
from api.db.session import get_session  # noqa: E402
from api.media.gateway import IMAGE, VIDEO, MediaAsset, get_media_gateway  # noqa: E402
from main import app  # noqa: E402

PASSWORD = "Passw0rd"


class FakeMediaGateway:
    """Stands in for the object store; records calls and fails on request."""

    def __init__(self):
        self.stored = []
        self.removed = []
        self.objects = set()
        self.fail_store = False
        self.fail_store_kinds = set()
        self.fail_remove = set()

    def store(self, local_file_path, resource_type=None, content_type=None):
        existed = os.path.exists(local_file_path)
        if existed:
            os.remove(local_file_path)
        kind = resource_type or IMAGE
        if self.fail_store or kind in self.fail_store_kinds or not existed:
            return None
        public_id = str(uuid.uuid4())
        self.stored.append(public_id)
        self.objects.add(f"{kind}s/{public_id}")
        return MediaAsset(url=f"https://media.test/{kind}s/{public_id}", public_id=public_id, resource_type=kind)

    def remove(self, public_id, resource_type=VIDEO):
        if not public_id:
            return True
        if public_id in self.fail_remove:
            return False
        # like S3, deleting a missing key still succeeds
        self.objects.discard(f"{resource_type}s/{public_id}")
        self.removed.append((public_id, resource_type))
        return True


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeMediaGateway()


@pytest.fixture
def client(db_session: Session, gateway: FakeMediaGateway):
    app.dependency_overrides[get_session] = lambda: db_session
    app.dependency_overrides[get_media_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client: TestClient):
    """Register a user; returns (auth headers, user id)."""
    def _signup(username: str):
        r = client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": PASSWORD,
                "full_name": username.title(),
            },
        )
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]["id"]

    return _signup


@pytest.fixture
def make_video(db_session: Session):
    """Insert a video row directly, bypassing the media store."""
    def _make_video(owner_id: str, title: str = "Sample video", description: str = "A sample video description", **fields):
        video = Video(
            title=title,
            description=description,
            duration=fields.pop("duration", 60.0),
            video_file="https://media.test/videos/sample",
            video_public_id=fields.pop("video_public_id", str(uuid.uuid4())),
            thumbnail="https://media.test/images/sample",
            thumbnail_public_id=fields.pop("thumbnail_public_id", str(uuid.uuid4())),
            owner_id=owner_id,
            **fields,
        )
        db_session.add(video)
        db_session.commit()
        db_session.refresh(video)
        return video

    return _make_video
