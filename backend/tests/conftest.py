from __future__ import annotations
import os

# never reach for the production database from tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from entrydesk.main import app
from entrydesk.db import Base, get_session
from entrydesk.models.user import User, ROLE_ADMIN, ROLE_PARTICIPANT
from entrydesk.security import make_access_token
from entrydesk.services.mailer import get_mail_queue
from entrydesk.services.storage import StorageError, get_storage


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.fail_remove = False

    def upload(self, path, data, content_type):
        self.objects[path] = data
        return path

    def signed_url(self, path, ttl_seconds=None):
        return f"https://storage.test/{path}?signature=test"

    def remove(self, paths):
        if self.fail_remove:
            raise StorageError("storage backend unavailable")
        for p in paths:
            self.objects.pop(p, None)
        self.removed.extend(paths)


class FakeQueue:
    def __init__(self):
        self.jobs = []

    def enqueue(self, func, *args, **kwargs):
        self.jobs.append((func, args))


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()

@pytest.fixture
def storage():
    return FakeStorage()

@pytest.fixture
def mail_queue():
    return FakeQueue()

@pytest_asyncio.fixture
async def client(db, storage, mail_queue):
    async def _session():
        async with db() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_mail_queue] = lambda: mail_queue
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(db, role: str = ROLE_PARTICIPANT, has_seed: bool = False, name: str | None = None) -> User:
    async with db() as s:
        user = User(email=f"user-{uuid.uuid4().hex[:8]}@example.com", name=name, role=role, has_seed=has_seed)
        s.add(user)
        await s.commit()
        return user

def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(str(user.id))}"}

@pytest_asyncio.fixture
async def participant(db):
    return await make_user(db, name="Aiko Tanaka")

@pytest_asyncio.fixture
async def admin(db):
    return await make_user(db, role=ROLE_ADMIN, name="Judge")
