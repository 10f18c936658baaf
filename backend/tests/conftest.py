import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("MEDIA_BACKEND", "memory")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("OBS_METRICS_PUBLIC", "true")

from snapshoot.domain.stories.service import StoryService, get_story_service  # noqa: E402
from snapshoot.infra import media as media_infra  # noqa: E402
from snapshoot.infra import postgres  # noqa: E402
from snapshoot.infra import redis as redis_infra  # noqa: E402
from snapshoot.infra.store import Store, memory_store, set_store  # noqa: E402
from snapshoot.main import app  # noqa: E402
from snapshoot.settings import settings  # noqa: E402


class FrozenClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    client = FakeRedis(decode_responses=True)
    redis_infra.set_redis_client(client)
    try:
        yield client
    finally:
        redis_infra.set_redis_client(redis_infra._real_client)
        await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
    async def _noop():
        return None

    monkeypatch.setattr(postgres, "init_pool", _noop)
    monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
    """X-User-Id headers are only accepted in dev mode."""
    original_env = settings.environment
    original_delay = settings.login_failure_delay_ms
    settings.environment = "dev"
    settings.login_failure_delay_ms = 0
    try:
        yield
    finally:
        settings.environment = original_env
        settings.login_failure_delay_ms = original_delay


@pytest.fixture(autouse=True)
def store() -> Store:
    fresh = memory_store()
    set_store(fresh)
    try:
        yield fresh
    finally:
        set_store(None)


@pytest.fixture(autouse=True)
def media_store() -> media_infra.MemoryMediaStore:
    fresh = media_infra.MemoryMediaStore()
    media_infra.set_media_store(fresh)
    try:
        yield fresh
    finally:
        media_infra.set_media_store(None)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def api_client(store, clock):
    async def _story_service() -> StoryService:
        return StoryService(store, clock=clock)

    app.dependency_overrides[get_story_service] = _story_service
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_story_service, None)


@pytest.fixture
def make_user(store):
    """Insert a user straight into the store and return it."""
    from uuid import uuid4

    from snapshoot.domain.identity.models import User

    async def _make(username: str, *, location=None, role=None):
        user = User(
            id=str(uuid4()),
            username=username,
            email=f"{username}@example.com",
            password_hash="not-a-real-hash",
            location=location,
        )
        if role is not None:
            user.role = role
        return await store.users.create(user)

    return _make


@pytest.fixture
def befriend(store):
    """Create an accepted edge between two users."""
    from snapshoot.domain.social.service import FriendService

    async def _befriend(user_a, user_b):
        service = FriendService(store)
        edge = await service.send_request(user_a.id, user_b.id)
        return await service.accept_request(edge.id, user_b.id)

    return _befriend
