import pytest
from fastapi import HTTPException

from tourquote.core import redis as redis_module
from tourquote.core.config import settings
from tourquote.core.rate_limit import check_rate_limit
from tourquote.utils.idempotency import get_idempotent, set_idempotent


class FakeRedis:
    """Just enough of redis.asyncio.Redis for key/value tests."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value.encode() if isinstance(value, str) else value
        self.expiry[key] = ex

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1).encode()
        return int(self.store[key])

    async def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_module, "redis", fake)
    return fake


@pytest.mark.unit
async def test_idemp_flow(fake_redis):
    key = "pytest-idemp"
    assert await get_idempotent(key) is None
    await set_idempotent(key, {"ok": True})
    found = await get_idempotent(key)
    assert found == {"ok": True}
    assert fake_redis.expiry[f"idemp:{key}"] == settings.IDEMPOTENCY_TTL


@pytest.mark.unit
async def test_idemp_without_redis(monkeypatch):
    monkeypatch.setattr(redis_module, "redis", None)
    await set_idempotent("k", {"ok": True})
    assert await get_idempotent("k") is None


@pytest.mark.unit
async def test_rate_limit_blocks_after_limit(fake_redis, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", 3)
    for _ in range(3):
        await check_rate_limit("7")

    with pytest.raises(HTTPException) as exc:
        await check_rate_limit("7")
    assert exc.value.status_code == 429

    # other callers have their own window
    await check_rate_limit("8")
