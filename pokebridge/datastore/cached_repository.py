"""
CachedPokemonRepository - Two-tier read-through cache in front of a repository.

Read path:
- Fresh entry in the local tier, else fresh entry in the shared tier
  (promoted to local) is served as an independent copy
- Miss or stale entry: the inner repository is called once per key
  (single-flight); only successes are written back to both tiers
- A stale entry bounds the wait by the soft timeout and is served while the
  refresh finishes in the background; it is also served when the inner
  repository reports a persistence failure (fail-safe)
- Any failure of the cache tiers themselves degrades to a plain inner call

Write path: inner save first, then both name and id keys are evicted from
both tiers and broadcast to the other instances.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from loguru import logger

from pokebridge.domain.errors import ErrorKind, Result, persistence_error
from pokebridge.domain.models import PokemonRace
from pokebridge.domain.protocols import PokemonRepository
from pokebridge.services.cache import CacheEntry, CacheTier, LocalCacheTier
from pokebridge.services.deduplicator import RequestDeduplicator
from pokebridge.services.redis_cache import RedisInvalidationChannel
from pokebridge.settings import Settings
from pokebridge.utils import normalize_name


@dataclass(frozen=True)
class CacheSettings:
    """Key templates and durations for the pokemon cache."""

    name_key_template: str = "pokemon:name:{name}"
    id_key_template: str = "pokemon:id:{id}"
    memory_ttl: timedelta = timedelta(minutes=30)
    distributed_ttl: timedelta = timedelta(hours=24)
    fail_safe_ttl: timedelta = timedelta(days=7)
    soft_timeout: float = 0.1  # seconds, when a stale value can be served
    hard_timeout: float = 5.0  # seconds, upper bound for any population

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheSettings":
        return cls(
            memory_ttl=timedelta(seconds=settings.cache_memory_ttl_seconds),
            distributed_ttl=timedelta(seconds=settings.cache_distributed_ttl_seconds),
            fail_safe_ttl=timedelta(seconds=settings.cache_fail_safe_ttl_seconds),
            soft_timeout=settings.cache_soft_timeout_ms / 1000,
            hard_timeout=settings.cache_hard_timeout_ms / 1000,
        )

    def name_key(self, name: str) -> str:
        return self.name_key_template.format(name=normalize_name(name))

    def id_key(self, pokemon_id: int) -> str:
        return self.id_key_template.format(id=pokemon_id)


class CachedPokemonRepository:
    """
    Usage:
        repository = CachedPokemonRepository(
            PokemonSqlRepository(session_factory),
            local=LocalCacheTier(),
            distributed=RedisCacheTier(redis_client),
        )
        result = await repository.get_by_name("Pikachu")
    """

    def __init__(
        self,
        inner: PokemonRepository,
        local: CacheTier,
        distributed: CacheTier | None = None,
        config: CacheSettings | None = None,
        invalidation: RedisInvalidationChannel | None = None,
        deduplicator: RequestDeduplicator | None = None,
    ):
        self._inner = inner
        self._local = local
        self._distributed = distributed
        self.config = config or CacheSettings()
        self._invalidation = invalidation
        self._dedup = deduplicator or RequestDeduplicator()
        # bumped on every invalidation; populations started earlier do not store
        self._generations: dict[str, int] = {}

    async def get_by_name(self, name: str) -> Result[PokemonRace]:
        if not name or not name.strip():
            return await self._inner.get_by_name(name)

        key = self.config.name_key(name)
        try:
            entry = await self._lookup(key)
            if entry is not None and not entry.is_expired():
                return Result.success(PokemonRace.from_dict(entry.data))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Cache read failed for '{key}', bypassing cache: {e}")
            return await self._inner.get_by_name(name)

        return await self._populate(key, name, entry)

    async def _lookup(self, key: str) -> CacheEntry | None:
        """Best entry across tiers: fresh if any, else the most recent stale one."""
        local = await self._local.get(key)
        if local is not None and not local.is_expired():
            return local

        if self._distributed is None:
            return local

        shared = await self._distributed.get(key)
        if shared is None:
            return local
        if not shared.is_expired():
            await self._local.set(key, self._promoted(shared))
            return shared
        if local is None or shared.timestamp > local.timestamp:
            return shared
        return local

    def _promoted(self, shared: CacheEntry) -> CacheEntry:
        now = datetime.now(timezone.utc)
        remaining = shared.timestamp + shared.ttl - now
        return CacheEntry(
            data=shared.data,
            timestamp=now,
            ttl=min(self.config.memory_ttl, remaining),
            stale_until=shared.stale_until,
        )

    async def _populate(
        self, key: str, name: str, stale: CacheEntry | None
    ) -> Result[PokemonRace]:
        task = await self._dedup.start(key, lambda: self._load(key, name))

        if stale is None:
            result = await asyncio.shield(task)
        else:
            try:
                result = await asyncio.wait_for(
                    asyncio.shield(task), timeout=self.config.soft_timeout
                )
            except asyncio.TimeoutError:
                fallback = self._decode(key, stale)
                if fallback is not None:
                    logger.info(f"Serving stale '{key}' while the refresh completes")
                    return Result.success(fallback)
                result = await asyncio.shield(task)

        if result.is_success:
            return Result.success(result.value.copy())

        if stale is not None and result.error.kind == ErrorKind.PERSISTENCE:
            fallback = self._decode(key, stale)
            if fallback is not None:
                logger.warning(
                    f"Repository unavailable for '{key}', serving fail-safe copy: "
                    f"{result.error.message}"
                )
                return Result.success(fallback)

        return result

    def _decode(self, key: str, entry: CacheEntry) -> PokemonRace | None:
        try:
            return PokemonRace.from_dict(entry.data)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Discarding corrupt stale entry for '{key}': {e}")
            return None

    async def _load(self, key: str, name: str) -> Result[PokemonRace]:
        generation = self._generations.get(key, 0)
        try:
            result = await asyncio.wait_for(
                self._inner.get_by_name(name), timeout=self.config.hard_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Loading '{key}' exceeded {self.config.hard_timeout:.1f}s"
            )
            return Result.failure(
                persistence_error(f"Timed out while loading pokemon '{name}'")
            )

        if result.is_success:
            if self._generations.get(key, 0) == generation:
                await self._store(key, result.value)
            else:
                logger.debug(f"Dropping population of '{key}' started before invalidation")
        return result

    async def _store(self, key: str, pokemon: PokemonRace) -> None:
        data = pokemon.to_dict()
        try:
            await self._local.set(
                key, CacheEntry.create(data, self.config.memory_ttl, self.config.fail_safe_ttl)
            )
        except Exception as e:
            logger.warning(f"Local cache write failed for '{key}': {e}")

        if self._distributed is None:
            return
        try:
            await self._distributed.set(
                key,
                CacheEntry.create(
                    data, self.config.distributed_ttl, self.config.fail_safe_ttl
                ),
            )
        except Exception as e:
            logger.warning(f"Shared cache write failed for '{key}': {e}")

    async def save(self, pokemon: PokemonRace) -> Result[PokemonRace]:
        result = await self._inner.save(pokemon)
        if result.is_failure:
            return result

        await self.invalidate(
            [self.config.name_key(pokemon.name), self.config.id_key(pokemon.id)]
        )
        return result

    async def invalidate(self, keys: list[str]) -> None:
        """Evict keys everywhere. Errors are logged, never raised."""
        await self._forget(keys)
        try:
            await self._local.delete(*keys)
        except Exception as e:
            logger.warning(f"Local cache eviction failed for {keys}: {e}")

        if self._distributed is not None:
            try:
                await self._distributed.delete(*keys)
            except Exception as e:
                logger.warning(f"Shared cache eviction failed for {keys}: {e}")

        if self._invalidation is not None:
            try:
                await self._invalidation.publish(keys)
            except Exception as e:
                logger.warning(f"Invalidation broadcast failed for {keys}: {e}")

    async def evict_local(self, keys: list[str]) -> None:
        """Handler for invalidations broadcast by other instances."""
        logger.debug(f"Evicting {keys} on remote invalidation")
        await self._forget(keys)
        await self._local.delete(*keys)

    async def _forget(self, keys: list[str]) -> None:
        for key in keys:
            self._generations[key] = self._generations.get(key, 0) + 1
        await self._dedup.forget(*keys)

    def get_stats(self) -> dict:
        stats = {"in_flight": self._dedup.get_stats().to_dict()}
        if isinstance(self._local, LocalCacheTier):
            stats["local"] = self._local.get_stats().to_dict()
        return stats

    async def close(self) -> None:
        await self._dedup.cancel_all()
