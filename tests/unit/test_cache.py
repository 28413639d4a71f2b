import json
import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError

from config import Config
from utils.cache import RedisManager, cache_with_redis, make_cache_key


def test_make_cache_key_uses_prefix_and_json_args():
    assert make_cache_key("scrapePages", [["https://a.com", "https://b.com"]]) == \
        'scrapePages:[["https://a.com","https://b.com"]]'


def test_make_cache_key_is_order_sensitive():
    first = make_cache_key("scrapePages", [["https://a.com", "https://b.com"]])
    second = make_cache_key("scrapePages", [["https://b.com", "https://a.com"]])
    assert first != second


@pytest.mark.anyio
async def test_second_call_with_same_args_is_served_from_cache(fake_redis):
    """Given a cached function, a repeated call should not invoke the underlying function again."""
    fn = AsyncMock(return_value={"success": True, "results": []})
    cached = cache_with_redis("scrapePages", fn)

    first = await cached(["https://a.com"])
    second = await cached(["https://a.com"])

    assert first == second == {"success": True, "results": []}
    fn.assert_awaited_once_with(["https://a.com"])
    assert json.loads(fake_redis.store['scrapePages:[["https://a.com"]]']) == first


@pytest.mark.anyio
async def test_different_args_miss_the_cache(fake_redis):
    fn = AsyncMock(side_effect=lambda urls: {"urls": urls})
    cached = cache_with_redis("scrapePages", fn)

    await cached(["https://a.com"])
    await cached(["https://b.com"])

    assert fn.await_count == 2
    assert len(fake_redis.store) == 2


@pytest.mark.anyio
async def test_entries_are_written_with_configured_ttl(fake_redis):
    cached = cache_with_redis("scrapePages", AsyncMock(return_value=[]))
    await cached(["https://a.com"])

    assert list(fake_redis.expirations.values()) == [Config.CACHE_TTL_SECONDS]


@pytest.mark.anyio
async def test_explicit_ttl_overrides_default(fake_redis):
    cached = cache_with_redis("searchWeb", AsyncMock(return_value=[]), ttl=60)
    await cached("query")

    assert fake_redis.expirations == {'searchWeb:["query"]': 60}


@pytest.mark.anyio
async def test_redis_failures_fall_through_to_function(monkeypatch):
    """Given an unreachable redis, the wrapped function should still run and its result be returned."""
    broken = AsyncMock()
    broken.get.side_effect = RedisConnectionError("connection refused")
    broken.set.side_effect = RedisConnectionError("connection refused")
    monkeypatch.setattr(RedisManager, "_client", broken)

    fn = AsyncMock(return_value={"ok": True})
    cached = cache_with_redis("scrapePages", fn)

    assert await cached(["https://a.com"]) == {"ok": True}
    fn.assert_awaited_once()


@pytest.mark.anyio
async def test_close_resets_shared_client(monkeypatch):
    client = AsyncMock()
    monkeypatch.setattr(RedisManager, "_client", client)

    await RedisManager.close()

    client.aclose.assert_awaited_once()
    assert RedisManager._client is None


def test_shared_client_uses_short_socket_timeouts(monkeypatch, mocker):
    """Given an unreachable redis, cache calls should give up quickly instead of stalling a turn."""
    monkeypatch.setattr(RedisManager, "_client", None)
    monkeypatch.setattr(Config, "REDIS_TIMEOUT", 0.5)
    from_url = mocker.patch("utils.cache.redis.Redis.from_url")

    client = RedisManager.get_client()

    assert client is from_url.return_value
    assert RedisManager.get_client() is client
    from_url.assert_called_once_with(
        Config.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=0.5,
        socket_timeout=0.5,
    )
