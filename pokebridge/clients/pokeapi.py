"""
PokeAPI data source for pokemon species.

API Documentation: https://pokeapi.co/docs/v2#pokemon-species
No API key required. Responses are stable, so no resilience pipeline is used.
"""

import asyncio
import re

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from pokebridge.domain.errors import Result, not_found_error, pokemon_api_error
from pokebridge.domain.models import PokemonRace
from pokebridge.settings import Settings
from pokebridge.utils import normalize_name

_CONTROL_CHARS = re.compile(r"[\t\n\r\f]")


class NamedResource(BaseModel):
    name: str
    url: str | None = None


class FlavorTextEntry(BaseModel):
    flavor_text: str
    language: NamedResource
    version: NamedResource | None = None


class PokemonSpecies(BaseModel):
    """Subset of the pokemon-species resource used by the service."""

    id: int
    name: str
    is_legendary: bool = False
    habitat: NamedResource | None = None
    flavor_text_entries: list[FlavorTextEntry] = []


def clean_flavor_text(text: str) -> str:
    """Replace tab/newline/carriage-return/form-feed with spaces and trim."""
    return _CONTROL_CHARS.sub(" ", text).strip()


def select_description(species: PokemonSpecies, language: str = "en") -> str:
    """
    Pick the flavor text that best describes the species.

    Preference: first entry starting with the name, then one containing it,
    then the first entry; empty when the language has no entries.
    """
    texts = [
        clean_flavor_text(entry.flavor_text)
        for entry in species.flavor_text_entries
        if entry.language.name == language
    ]
    texts = [text for text in texts if text]
    if not texts:
        return ""

    name = species.name.lower()
    for text in texts:
        if text.lower().startswith(name):
            return text
    for text in texts:
        if name in text.lower():
            return text
    return texts[0]


class PokeApiClient:
    """Fetches pokemon species from PokeAPI and maps them to PokemonRace."""

    def __init__(self, http_client: httpx.AsyncClient, language: str = "en"):
        self._http = http_client
        self.language = language

    @classmethod
    def create(cls, settings: Settings) -> "PokeApiClient":
        http_client = httpx.AsyncClient(
            base_url=settings.pokeapi_base_url,
            timeout=httpx.Timeout(settings.pokeapi_timeout_seconds),
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
        return cls(http_client, settings.flavor_text_language)

    async def fetch_pokemon(self, name: str) -> Result[PokemonRace]:
        normalized = normalize_name(name or "")
        if not normalized:
            return Result.failure(not_found_error(name or ""))

        try:
            response = await self._http.get(f"pokemon-species/{normalized}")
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            logger.error(f"PokeAPI request for '{normalized}' failed: {e}")
            return Result.failure(pokemon_api_error(f"Failed to fetch pokemon '{name}': {e}"))

        if response.status_code == 404:
            logger.info(f"PokeAPI has no species named '{normalized}'")
            return Result.failure(not_found_error(name))

        if not response.is_success:
            logger.error(f"PokeAPI returned {response.status_code} for '{normalized}'")
            return Result.failure(
                pokemon_api_error(
                    f"PokeAPI returned status {response.status_code} for '{name}'"
                )
            )

        try:
            species = PokemonSpecies.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Unreadable PokeAPI payload for '{normalized}': {e}")
            return Result.failure(pokemon_api_error(f"Invalid response for pokemon '{name}'"))

        if species.id <= 0:
            return Result.failure(not_found_error(name))

        return PokemonRace.create(
            id=species.id,
            name=species.name,
            description=select_description(species, self.language),
            habitat=species.habitat.name if species.habitat else "",
            is_legendary=species.is_legendary,
        )

    async def close(self) -> None:
        await self._http.aclose()
