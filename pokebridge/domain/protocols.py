"""
Capability contracts shared by the core services.

Structural typing: any class with matching methods satisfies a protocol,
so the SQL repository and the caching decorator are interchangeable and
tests can pass plain in-memory fakes.
"""

from typing import Protocol, runtime_checkable

from pokebridge.domain.errors import Result
from pokebridge.domain.models import PokemonRace, TranslationType


@runtime_checkable
class PokemonRepository(Protocol):
    """Durable or cached storage of pokemon races."""

    async def get_by_name(self, name: str) -> Result[PokemonRace]:
        """Find a race by name, case-insensitively.

        Returns:
            The race, or a VALIDATION / NOT_FOUND / PERSISTENCE failure
        """
        ...

    async def save(self, race: PokemonRace) -> Result[PokemonRace]:
        """Insert or update a race keyed by its id."""
        ...


@runtime_checkable
class PokemonClient(Protocol):
    """Upstream provider of canonical race data."""

    async def fetch_pokemon(self, name: str) -> Result[PokemonRace]:
        ...


@runtime_checkable
class Translator(Protocol):
    """Upstream provider of stylistic rewrites."""

    async def translate(
        self, text: str, translation_type: TranslationType
    ) -> Result[str]:
        ...
