"""
Redis backed cache tier and cross-instance invalidation channel.
"""

import asyncio
import json
import uuid
from typing import Awaitable, Callable

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from pokebridge.services.cache import CacheEntry
from pokebridge.services.errors import CacheError

InvalidationHandler = Callable[[list[str]], Awaitable[None]]


def create_redis_client(redis_url: str) -> redis.Redis:
    return redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
    )


class RedisCacheTier:
    """
    Shared cache tier.

    Entries are stored as JSON envelopes; the physical Redis expiry follows
    the fail-safe horizon so stale copies survive past logical expiry.
    """

    def __init__(self, client: redis.Redis, prefix: str = "pokebridge:"):
        self._redis = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> CacheEntry | None:
        try:
            raw = await self._redis.get(self._key(key))
        except RedisError as e:
            raise CacheError(f"Redis GET failed for {key}: {e}") from e

        if raw is None:
            return None

        entry = CacheEntry.from_json(raw)
        if not entry.is_valid():
            return None
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        try:
            await self._redis.set(
                self._key(key), entry.to_json(), ex=entry.seconds_until_gone()
            )
        except RedisError as e:
            raise CacheError(f"Redis SET failed for {key}: {e}") from e

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._redis.delete(*(self._key(k) for k in keys))
        except RedisError as e:
            raise CacheError(f"Redis DELETE failed for {keys}: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False


class RedisInvalidationChannel:
    """
    Pub/sub broadcast of evicted cache keys.

    Every message carries the sender's instance id; a listener drops its own
    messages since the sender has already evicted locally.
    """

    def __init__(
        self,
        client: redis.Redis,
        channel: str,
        instance_id: str | None = None,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._redis = client
        self.channel = channel
        self.instance_id = instance_id or uuid.uuid4().hex
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    async def publish(self, keys: list[str]) -> None:
        message = json.dumps({"source": self.instance_id, "keys": keys})
        try:
            await self._redis.publish(self.channel, message)
        except RedisError as e:
            raise CacheError(f"Redis PUBLISH failed on {self.channel}: {e}") from e

    def parse(self, raw: str | bytes) -> list[str]:
        """Keys to evict from a channel message, or [] for own or malformed ones."""
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed invalidation message: {raw!r}")
            return []
        if not isinstance(payload, dict) or payload.get("source") == self.instance_id:
            return []
        return [k for k in payload.get("keys", []) if isinstance(k, str)]

    async def start(self, on_invalidate: InvalidationHandler) -> None:
        if self._task is not None:
            return
        pubsub = await self._subscribe()
        self._task = asyncio.create_task(self._run(pubsub, on_invalidate))
        logger.info(f"Listening for cache invalidations on '{self.channel}'")

    async def _subscribe(self):
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(self.channel)
        except BaseException:
            await pubsub.aclose()
            raise
        return pubsub

    async def _run(self, pubsub, on_invalidate: InvalidationHandler) -> None:
        """Listen until cancelled, resubscribing with backoff when Redis drops."""
        delay = self.reconnect_delay
        while True:
            try:
                if pubsub is None:
                    pubsub = await self._subscribe()
                    logger.info(f"Resubscribed to '{self.channel}'")
                    delay = self.reconnect_delay
                await self._listen(pubsub, on_invalidate)
                logger.warning(f"Invalidation stream on '{self.channel}' ended")
            except RedisError as e:
                logger.error(
                    f"Invalidation listener on '{self.channel}' failed: {e}, "
                    f"retrying in {delay:.1f}s"
                )
            finally:
                if pubsub is not None:
                    await self._close(pubsub)
                    pubsub = None

            await self._sleep(delay)
            delay = min(delay * 2, self.max_reconnect_delay)

    async def _close(self, pubsub) -> None:
        try:
            await pubsub.aclose()
        except RedisError as e:
            logger.debug(f"Closing pub/sub connection failed: {e}")

    async def _listen(self, pubsub, on_invalidate: InvalidationHandler) -> None:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            keys = self.parse(message["data"])
            if not keys:
                continue
            try:
                await on_invalidate(keys)
            except Exception as e:
                logger.warning(f"Failed to apply invalidation of {keys}: {e}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
