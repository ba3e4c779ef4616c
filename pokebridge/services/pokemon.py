"""
PokemonService - Top-level orchestration for pokemon lookups.

Resolution order: repository (cached), then PokeAPI followed by a save.
A failed save never fails the read.
"""

from typing import Callable

from loguru import logger

from pokebridge.domain.errors import ErrorKind, Result, validation_error
from pokebridge.domain.models import PokemonRace, PokemonResult, TranslationType
from pokebridge.domain.protocols import PokemonClient, PokemonRepository
from pokebridge.domain.selector import select_translation_type
from pokebridge.services.translation import TranslationService


class PokemonService:
    """
    Usage:
        service = PokemonService(pokeapi, repository, TranslationService(translator, repository))

        result = await service.get_translated_pokemon("mewtwo")
        if result.is_success:
            print(result.value.description)
    """

    def __init__(
        self,
        client: PokemonClient,
        repository: PokemonRepository,
        translation_service: TranslationService,
        selector: Callable[[PokemonRace], TranslationType] = select_translation_type,
    ):
        self._client = client
        self._repository = repository
        self._translations = translation_service
        self._select = selector

    async def get_pokemon(self, name: str) -> Result[PokemonResult]:
        resolved = await self._resolve(name)
        if resolved.is_failure:
            return Result.failure(resolved.error)
        return Result.success(resolved.value.to_result(TranslationType.NONE))

    async def get_translated_pokemon(self, name: str) -> Result[PokemonResult]:
        resolved = await self._resolve(name)
        if resolved.is_failure:
            return Result.failure(resolved.error)

        pokemon = resolved.value
        translation_type = self._select(pokemon)
        text = await self._translations.get_or_create(pokemon, translation_type)
        if text.is_failure:
            return Result.failure(text.error)

        return Result.success(
            PokemonResult(
                name=pokemon.name,
                description=text.value,
                habitat=pokemon.habitat,
                is_legendary=pokemon.is_legendary,
            )
        )

    async def _resolve(self, name: str) -> Result[PokemonRace]:
        if not name or not name.strip():
            return Result.failure(validation_error("name", "Name cannot be null or empty"))

        stored = await self._repository.get_by_name(name)
        if stored.is_success:
            return stored
        if stored.error.kind == ErrorKind.VALIDATION:
            return stored

        if stored.error.kind != ErrorKind.NOT_FOUND:
            logger.warning(
                f"Repository lookup for '{name}' failed ({stored.error.code}), "
                f"falling back to PokeAPI"
            )

        fetched = await self._client.fetch_pokemon(name)
        if fetched.is_failure:
            return fetched

        pokemon = fetched.value
        saved = await self._repository.save(pokemon)
        if saved.is_failure:
            logger.error(f"Could not persist pokemon '{pokemon.name}': {saved.error.message}")

        return Result.success(pokemon)
