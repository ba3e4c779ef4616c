"""
Composition root - builds the object graph from settings.
"""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from pokebridge.clients.pokeapi import PokeApiClient
from pokebridge.clients.translator import TranslatorClient
from pokebridge.datastore import engine
from pokebridge.datastore.cached_repository import CacheSettings, CachedPokemonRepository
from pokebridge.datastore.repositories import PokemonSqlRepository
from pokebridge.services.cache import LocalCacheTier
from pokebridge.services.pokemon import PokemonService
from pokebridge.services.redis_cache import (
    RedisCacheTier,
    RedisInvalidationChannel,
    create_redis_client,
)
from pokebridge.services.translation import TranslationService
from pokebridge.settings import Settings, global_settings


@dataclass
class Container:
    pokemon_service: PokemonService
    repository: CachedPokemonRepository | None = None
    pokeapi: PokeApiClient | None = None
    translator: TranslatorClient | None = None
    redis_tier: RedisCacheTier | None = None
    invalidation: RedisInvalidationChannel | None = None
    resources: list[Any] = field(default_factory=list)

    async def health(self) -> dict[str, Any]:
        checks: dict[str, Any] = {}
        try:
            checks["database"] = await engine.ping_db()
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            checks["database"] = False

        if self.redis_tier is not None:
            checks["redis"] = await self.redis_tier.ping()
        if self.translator is not None:
            checks["translator_circuit"] = self.translator.pipeline.breaker.get_status()
        if self.repository is not None:
            checks["cache"] = self.repository.get_stats()
        return checks

    async def close(self) -> None:
        if self.invalidation is not None:
            await self.invalidation.stop()
        if self.repository is not None:
            await self.repository.close()
        for resource in (self.pokeapi, self.translator):
            if resource is not None:
                await resource.close()
        for resource in self.resources:
            await resource.aclose()
        await engine.close_db()


async def build_container(settings: Settings | None = None) -> Container:
    settings = settings or global_settings

    session_factory = await engine.init_db(settings.database_url, settings.database_echo)
    logger.info("Database initialized")

    redis_client = create_redis_client(settings.redis_url)
    redis_tier = RedisCacheTier(redis_client)
    invalidation = RedisInvalidationChannel(redis_client, settings.cache_invalidation_channel)

    repository = CachedPokemonRepository(
        PokemonSqlRepository(session_factory),
        local=LocalCacheTier(max_size=settings.cache_memory_max_size),
        distributed=redis_tier,
        config=CacheSettings.from_settings(settings),
        invalidation=invalidation,
    )

    try:
        await invalidation.start(repository.evict_local)
    except Exception as e:
        logger.warning(f"Cache invalidation listener unavailable: {e}")

    pokeapi = PokeApiClient.create(settings)
    translator = TranslatorClient.create(settings)
    service = PokemonService(pokeapi, repository, TranslationService(translator, repository))

    return Container(
        pokemon_service=service,
        repository=repository,
        pokeapi=pokeapi,
        translator=translator,
        redis_tier=redis_tier,
        invalidation=invalidation,
        resources=[redis_client],
    )
