"""
Redis-backed result cache for expensive tool calls.
Results are stored as JSON under "<prefix>:<json args>" keys; expiry is left to redis.
"""
import functools
import json
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from config import Config
from utils.logger import app_logger


class RedisManager:
    """Manages the shared async redis client."""

    _client: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls) -> redis.Redis:
        """Get or create the shared redis client."""
        if cls._client is None:
            cls._client = redis.Redis.from_url(
                Config.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=Config.REDIS_TIMEOUT,
                socket_timeout=Config.REDIS_TIMEOUT,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None


def make_cache_key(key_prefix: str, args: list) -> str:
    """Build the cache key for a call: the prefix plus the JSON-encoded positional args."""
    return f"{key_prefix}:{json.dumps(args, separators=(',', ':'))}"


def cache_with_redis(
    key_prefix: str,
    fn: Callable[..., Awaitable[Any]],
    ttl: Optional[int] = None
) -> Callable[..., Awaitable[Any]]:
    """
    Wrap an async function so repeated calls with the same arguments reuse a cached result.

    The wrapped function must take JSON-serializable positional arguments and
    return a JSON-serializable value. Redis errors are logged and the call goes
    straight to the wrapped function.

    Args:
        key_prefix: Namespace for this function's cache keys
        fn: Async function to cache
        ttl: Expiry in seconds handed to redis (defaults to Config.CACHE_TTL_SECONDS)

    Returns:
        Async function with the same call signature as fn
    """

    @functools.wraps(fn)
    async def cached(*args: Any) -> Any:
        key = make_cache_key(key_prefix, list(args))
        client = RedisManager.get_client()

        try:
            cached_value = await client.get(key)
        except RedisError as e:
            app_logger.warning(f"Cache read failed for {key_prefix}: {e}")
            cached_value = None

        if cached_value is not None:
            app_logger.info(f"Cache HIT: {key_prefix} | {key[len(key_prefix) + 1:][:80]}")
            return json.loads(cached_value)

        app_logger.debug(f"Cache MISS: {key_prefix} | {key[len(key_prefix) + 1:][:80]}")
        result = await fn(*args)

        expiry = ttl if ttl is not None else Config.CACHE_TTL_SECONDS
        try:
            await client.set(key, json.dumps(result), ex=expiry)
        except RedisError as e:
            app_logger.warning(f"Cache write failed for {key_prefix}: {e}")

        return result

    return cached
