"""
Test infrastructure for the Newsroom API.

Strategy
--------
- Settings are read at import time, so the environment is prepared before
  anything from ``newsroom`` is imported: a cheap bcrypt cost, fixed token
  secrets and an in-memory database URL.
- SQLite in-memory via aiosqlite with StaticPool, so every session shares
  the one connection that holds the schema.
- Tables are created before each test and dropped after.
- Redis is disabled (``cache._redis = None``); the CacheManager turns every
  call into a no-op.
- Object storage keeps the real ``ObjectStorage`` with a recording stub in
  place of the boto3 client; mail goes to an in-memory outbox.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("CLIENT_URL", "http://client.test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from newsroom.cache import cache
from newsroom.database import Base, commit, get_db, rollback
from newsroom.dependencies import get_mailer, get_storage
from newsroom.main import app
from newsroom.models import Category, Role, User
from newsroom.security import IdentityClaim
from newsroom.storage import ObjectStorage

DEFAULT_PASSWORD = "password123"

# ---------------------------------------------------------------------------
# Test database engine
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class StubS3Client:
    """Records the boto3 calls ``ObjectStorage`` makes."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def put_object(self, Bucket, Key, Body, ContentType, Metadata):
        self.objects[Key] = Body

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)


class FakeMailer:
    def __init__(self) -> None:
        self.outbox: list[tuple[str, str]] = []

    async def send_restore_password_link(self, to: str, url: str) -> None:
        self.outbox.append((to, url))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for tests that call services directly."""
    async with async_session_test() as session:
        yield session


@pytest.fixture
def storage() -> ObjectStorage:
    storage = ObjectStorage(bucket="images", public_url="http://cdn.test/images", max_size=1024)
    storage._client = StubS3Client()
    app.dependency_overrides[get_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def mailer() -> FakeMailer:
    mailer = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield mailer
    app.dependency_overrides.pop(get_mailer, None)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def codec():
    return app.state.container.token_codec


@pytest.fixture
def hasher():
    return app.state.container.password_hasher


@pytest.fixture
def make_user(hasher, codec):
    """
    Factory fixture: insert a user and return ``(user, headers)`` where
    *headers* carry a valid bearer access token for that user.
    """

    async def _make(email: str, role: Role = Role.USER, password: str = DEFAULT_PASSWORD):
        async with async_session_test() as session:
            user = User(email=email, password=hasher.hash(password), name=email.split("@")[0], role=role)
            session.add(user)
            await session.commit()
        token = codec.issue_access(IdentityClaim.from_user(user)).token
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest_asyncio.fixture
async def category() -> Category:
    async with async_session_test() as session:
        category = Category(title="people", url="people")
        session.add(category)
        await session.commit()
    return category


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin@example.com", Role.ADMIN)


@pytest_asyncio.fixture
async def manager(make_user):
    return await make_user("manager@example.com", Role.MANAGER)


@pytest_asyncio.fixture
async def reader(make_user):
    return await make_user("reader@example.com", Role.USER)


@pytest.fixture
def article_payload():
    """Factory for a valid article creation body."""

    def _payload(category_id: int, url: str = "first-article", **overrides) -> dict:
        payload = {
            "title": "First article",
            "url": url,
            "spoiler": "Short description",
            "content": "Long description",
            "category_id": category_id,
        }
        payload.update(overrides)
        return payload

    return _payload
