"""
Shared fixtures and in-memory fakes.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokebridge.datastore.models import Base
from pokebridge.domain.errors import (
    Result,
    not_found_error,
    persistence_error,
    translator_error,
    validation_error,
)
from pokebridge.domain.models import PokemonRace, TranslationType
from pokebridge.services.cache import CacheEntry
from pokebridge.services.errors import CacheError
from pokebridge.utils import normalize_name


def make_pokemon(
    id: int = 25,
    name: str = "Pikachu",
    description: str = "Electric mouse pokemon",
    habitat: str = "forest",
    is_legendary: bool = False,
) -> PokemonRace:
    return PokemonRace.create(id, name, description, habitat, is_legendary).value


class InMemoryPokemonRepository:
    """Repository fake keyed by id, with call counters and an outage switch."""

    def __init__(self, *pokemon: PokemonRace):
        self._rows: dict[int, dict] = {p.id: p.to_dict() for p in pokemon}
        self.down = False
        self.delay = 0.0
        self.get_calls = 0
        self.save_calls = 0
        self.fail_save = False

    async def get_by_name(self, name: str) -> Result[PokemonRace]:
        self.get_calls += 1
        if not name or not name.strip():
            return Result.failure(validation_error("name", "Name cannot be null or empty"))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.down:
            return Result.failure(
                persistence_error("An error occurred while accessing the database")
            )
        for data in self._rows.values():
            if normalize_name(data["name"]) == normalize_name(name):
                return Result.success(PokemonRace.from_dict(data))
        return Result.failure(not_found_error(name))

    async def save(self, pokemon: PokemonRace) -> Result[PokemonRace]:
        self.save_calls += 1
        if pokemon is None:
            return Result.failure(validation_error("pokemon", "Pokemon cannot be null"))
        if self.down or self.fail_save:
            return Result.failure(
                persistence_error("An error occurred while saving to the database")
            )
        self._rows[pokemon.id] = pokemon.to_dict()
        return Result.success(pokemon.copy())


class FakeTranslator:
    def __init__(self, responses: dict[TranslationType, Result[str]] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, TranslationType]] = []

    async def translate(self, text: str, translation_type: TranslationType) -> Result[str]:
        self.calls.append((text, translation_type))
        return self.responses.get(
            translation_type, Result.failure(translator_error("Translation API error"))
        )


class FakePokemonClient:
    def __init__(self, *pokemon: PokemonRace):
        self._pokemon = {normalize_name(p.name): p for p in pokemon}
        self.calls: list[str] = []

    async def fetch_pokemon(self, name: str) -> Result[PokemonRace]:
        self.calls.append(name)
        found = self._pokemon.get(normalize_name(name))
        if found is None:
            return Result.failure(not_found_error(name))
        return Result.success(found.copy())


class FakeCacheTier:
    """Dict-backed stand-in for the shared tier."""

    def __init__(self):
        self.entries: dict[str, CacheEntry] = {}
        self.fail = False

    async def get(self, key: str) -> CacheEntry | None:
        if self.fail:
            raise CacheError("shared tier unreachable")
        entry = self.entries.get(key)
        if entry is not None and not entry.is_valid():
            return None
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        if self.fail:
            raise CacheError("shared tier unreachable")
        self.entries[key] = entry

    async def delete(self, *keys: str) -> None:
        if self.fail:
            raise CacheError("shared tier unreachable")
        for key in keys:
            self.entries.pop(key, None)


@pytest.fixture
def pikachu() -> PokemonRace:
    return make_pokemon()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pokebridge.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
