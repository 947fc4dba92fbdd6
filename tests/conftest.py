"""Shared fixtures: a throwaway SQLite database and upload root per test."""
import os
import tempfile

_tmp_root = tempfile.mkdtemp(prefix="postboard-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_tmp_root}/app.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_tmp_root, "uploads"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from app.core.security import get_password_hash, pwd_context  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.post import Post  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schemas.user import UserIdentity  # noqa: E402
from app.services import storage_service  # noqa: E402
from app.services.storage_service import LocalStorage  # noqa: E402

# Full-strength bcrypt makes every signup take a quarter second.
pwd_context.update(bcrypt__rounds=4)

PASSWORD = "Sup3rSecret!"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(tmp_path, monkeypatch) -> LocalStorage:
    local = LocalStorage(tmp_path / "uploads")
    monkeypatch.setattr(storage_service, "_storage", local)
    return local


@pytest_asyncio.fixture
async def async_client(session_maker, storage):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def make_user_payload(prefix: str) -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "username": f"{prefix}_{suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": PASSWORD,
    }


async def signup(client: AsyncClient, prefix: str = "user") -> dict:
    """Register through the API; returns the response data (id, username, email, token)."""
    response = await client.post("/api/v1/auth/signup", json=make_user_payload(prefix))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def auth_headers(user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {user['token']}"}


async def create_user_row(db, prefix: str = "user") -> UserIdentity:
    payload = make_user_payload(prefix)
    user = User(
        username=payload["username"],
        email=payload["email"],
        password_hash=get_password_hash(payload["password"]),
    )
    db.add(user)
    await db.commit()
    return UserIdentity(id=user.id, username=user.username, email=user.email)


async def create_post_row(db, author: UserIdentity, content: str = "hello", **kwargs) -> Post:
    post = Post(
        user_id=author.id,
        username=author.username,
        content=content,
        likes=[],
        comments=[],
        **kwargs,
    )
    db.add(post)
    await db.commit()
    return post
