"""Tests for the Redis read-model cache."""

import fnmatch
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from containerops.config import settings
from containerops.services import dashboard
from containerops.utils import cache
from containerops.utils.cache import cache_key, cached, invalidate_cache


class InMemoryRedis:
    """The handful of redis.asyncio.Redis calls the cache makes."""

    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    client = InMemoryRedis()
    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(cache, "_redis_client", client)
    return client


@pytest.mark.unit
def test_cache_key_is_deterministic():
    assert cache_key(limit=50, offset=0) == cache_key(offset=0, limit=50)
    assert cache_key(limit=50, offset=0) != cache_key(limit=100, offset=0)
    assert cache_key() == "default"


@pytest.mark.unit
@pytest.mark.asyncio
class TestCachedDecorator:

    async def test_hit_skips_the_call(self, fake_redis):
        calls = 0

        @cached(ttl=10, prefix="test")
        async def summary(session, port=None):
            nonlocal calls
            calls += 1
            return {"port": port, "calls": calls}

        assert await summary(object(), port="NSA") == {"port": "NSA", "calls": 1}
        assert await summary(object(), port="NSA") == {"port": "NSA", "calls": 1}
        assert await summary(object(), port="JEB") == {"port": "JEB", "calls": 2}

        keys = [k for k in fake_redis.store if k.startswith("test:summary:")]
        assert len(keys) == 2
        assert {fake_redis.ttls[k] for k in keys} == {10}
        assert json.loads(fake_redis.store[keys[0]]) == {"port": "NSA", "calls": 1}

    async def test_disabled_cache_always_calls(self, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", False)
        calls = 0

        @cached(prefix="test")
        async def summary():
            nonlocal calls
            calls += 1
            return calls

        assert await summary() == 1
        assert await summary() == 2
        assert fake_redis.store == {}

    async def test_redis_failure_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", True)
        monkeypatch.setattr(cache, "_redis_client", InMemoryRedis(fail=True))

        @cached(prefix="test")
        async def summary():
            return {"ok": True}

        assert await summary() == {"ok": True}

    async def test_invalidate_by_pattern(self, fake_redis):
        fake_redis.store.update({
            "dashboard:status_summary:default": "{}",
            "dashboard:route_summary:default": "[]",
            "other:thing:default": "1",
        })

        await invalidate_cache("dashboard:*")

        assert list(fake_redis.store) == ["other:thing:default"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestDashboardCaching:

    async def test_status_summary_is_served_from_cache(self, db_session, fake_redis, make_container):
        await make_container("AAAU0000001")
        first = await dashboard.status_summary(db_session)
        assert first["total"] == 1

        await make_container("BBBU0000002")
        assert (await dashboard.status_summary(db_session))["total"] == 1

        await invalidate_cache("dashboard:*")
        assert (await dashboard.status_summary(db_session))["total"] == 2
