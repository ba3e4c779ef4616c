"""
Tests for CacheEntry, LocalCacheTier, RequestDeduplicator and the
invalidation channel.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pokebridge.services.cache import CacheEntry, LocalCacheTier
from pokebridge.services.deduplicator import RequestDeduplicator
from pokebridge.services.errors import CacheError
from pokebridge.services.redis_cache import RedisCacheTier, RedisInvalidationChannel


class FakePubSub:
    def __init__(self, messages=(), error=None):
        self.messages = list(messages)
        self.error = error
        self.subscribed: list[str] = []
        self.closed = False

    async def subscribe(self, channel):
        self.subscribed.append(channel)

    async def listen(self):
        for message in self.messages:
            yield message
        if self.error is not None:
            raise self.error
        await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


def entry(ttl=timedelta(minutes=5), fail_safe=timedelta(days=1), data=None) -> CacheEntry:
    return CacheEntry.create(data or {"id": 25}, ttl, fail_safe)


class TestCacheEntry:
    def test_fresh_entry(self):
        e = entry()

        assert not e.is_expired()
        assert not e.is_stale()
        assert e.is_valid()

    async def test_stale_entry(self):
        e = entry(ttl=timedelta(milliseconds=1))
        await asyncio.sleep(0.01)

        assert e.is_expired()
        assert e.is_stale()
        assert e.is_valid()

    def test_fail_safe_never_shorter_than_ttl(self):
        e = entry(ttl=timedelta(hours=2), fail_safe=timedelta(hours=1))

        assert e.stale_until - e.timestamp == timedelta(hours=2)

    def test_json_envelope(self):
        e = entry(data={"id": 25, "name": "Pikachu"})

        restored = CacheEntry.from_json(e.to_json())

        assert restored.data == {"id": 25, "name": "Pikachu"}
        assert restored.stale_until == e.stale_until

    def test_malformed_json(self):
        with pytest.raises(CacheError):
            CacheEntry.from_json("{not json")


class TestLocalCacheTier:
    async def test_set_get_delete(self):
        cache = LocalCacheTier()
        await cache.set("a", entry())

        assert (await cache.get("a")).data == {"id": 25}

        await cache.delete("a", "missing")
        assert await cache.get("a") is None

    async def test_lru_eviction(self):
        cache = LocalCacheTier(max_size=2)
        await cache.set("a", entry())
        await cache.set("b", entry())
        await cache.get("a")
        await cache.set("c", entry())

        assert await cache.get("a") is not None
        assert await cache.get("b") is None
        assert cache.get_stats().evictions == 1

    async def test_entries_past_fail_safe_are_dropped(self):
        cache = LocalCacheTier()
        await cache.set(
            "a", entry(ttl=timedelta(milliseconds=1), fail_safe=timedelta(milliseconds=1))
        )
        await asyncio.sleep(0.01)

        assert await cache.get("a") is None

    async def test_stats(self):
        cache = LocalCacheTier()
        await cache.set("a", entry())
        await cache.get("a")
        await cache.get("b")

        stats = cache.get_stats().to_dict()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "50.00%"


class TestDeduplicator:
    async def test_concurrent_calls_share_one_execution(self):
        dedup = RequestDeduplicator()
        calls = []

        async def load():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "value"

        results = await asyncio.gather(*(dedup.dedupe("k", load) for _ in range(3)))

        assert results == ["value", "value", "value"]
        assert len(calls) == 1
        assert dedup.get_in_flight_count() == 0

    async def test_waiter_timeout_does_not_cancel_work(self):
        dedup = RequestDeduplicator()

        async def load():
            await asyncio.sleep(0.05)
            return "done"

        task = await dedup.start("k", load)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(asyncio.shield(task), timeout=0.001)

        assert await task == "done"

    async def test_forget_starts_fresh_work(self):
        dedup = RequestDeduplicator()
        release = asyncio.Event()
        calls = []

        async def load():
            calls.append(1)
            await release.wait()
            return "done"

        old = await dedup.start("k", load)
        await dedup.forget("k")
        new = await dedup.start("k", load)
        release.set()

        assert new is not old
        assert await old == "done"
        assert await new == "done"
        assert len(calls) == 2
        assert dedup.get_in_flight_count() == 0


class TestRedisCacheTier:
    async def test_set_uses_fail_safe_expiry(self):
        client = AsyncMock()
        tier = RedisCacheTier(client, prefix="test:")

        await tier.set("pokemon:name:pikachu", entry(fail_safe=timedelta(days=7)))

        args, kwargs = client.set.call_args
        assert args[0] == "test:pokemon:name:pikachu"
        assert 604000 < kwargs["ex"] <= 604800

    async def test_get_round_trip(self):
        client = AsyncMock()
        client.get.return_value = entry(data={"id": 7}).to_json()

        result = await RedisCacheTier(client).get("k")

        assert result.data == {"id": 7}

    async def test_get_miss(self):
        client = AsyncMock()
        client.get.return_value = None

        assert await RedisCacheTier(client).get("k") is None


class TestInvalidationMessages:
    def test_ignores_own_messages(self):
        channel = RedisInvalidationChannel(AsyncMock(), "inv", instance_id="me")

        assert channel.parse('{"source": "me", "keys": ["a"]}') == []
        assert channel.parse('{"source": "other", "keys": ["a", "b"]}') == ["a", "b"]

    def test_ignores_malformed_messages(self):
        channel = RedisInvalidationChannel(AsyncMock(), "inv", instance_id="me")

        assert channel.parse("not json") == []
        assert channel.parse("[1, 2]") == []

    async def test_publish_includes_source(self):
        client = AsyncMock()
        channel = RedisInvalidationChannel(client, "inv", instance_id="me")

        await channel.publish(["pokemon:name:pikachu"])

        client.publish.assert_awaited_once_with(
            "inv", '{"source": "me", "keys": ["pokemon:name:pikachu"]}'
        )


class TestInvalidationListener:
    async def test_resubscribes_after_connection_loss(self):
        broken = FakePubSub(error=RedisConnectionError("Connection reset by peer"))
        healthy = FakePubSub(
            messages=[
                {"type": "subscribe", "data": 1},
                {"type": "message", "data": '{"source": "other", "keys": ["a"]}'},
            ]
        )
        client = MagicMock()
        client.pubsub.side_effect = [broken, healthy]
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        channel = RedisInvalidationChannel(
            client, "inv", instance_id="me", reconnect_delay=0.5, sleep=record_sleep
        )
        received = asyncio.Queue()

        await channel.start(received.put)
        keys = await asyncio.wait_for(received.get(), timeout=1)
        await channel.stop()

        assert keys == ["a"]
        assert delays == [0.5]
        assert broken.closed and healthy.closed
        assert healthy.subscribed == ["inv"]

    async def test_handler_errors_keep_listening(self):
        pubsub = FakePubSub(
            messages=[
                {"type": "message", "data": '{"source": "other", "keys": ["a"]}'},
                {"type": "message", "data": '{"source": "other", "keys": ["b"]}'},
            ]
        )
        client = MagicMock()
        client.pubsub.return_value = pubsub
        seen = []
        done = asyncio.Event()

        async def on_invalidate(keys):
            seen.append(keys)
            if keys == ["a"]:
                raise RuntimeError("local tier unavailable")
            done.set()

        channel = RedisInvalidationChannel(client, "inv", instance_id="me")
        await channel.start(on_invalidate)
        await asyncio.wait_for(done.wait(), timeout=1)
        await channel.stop()

        assert seen == [["a"], ["b"]]
        assert client.pubsub.call_count == 1
