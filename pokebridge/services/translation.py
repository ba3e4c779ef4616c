"""
TranslationService - Get-or-create for translated descriptions.

Stored translations are reused without touching the translator. Translator
failures (rate limits included) are never fatal: the original description
is returned and nothing is recorded, so the next request tries again.
"""

from loguru import logger

from pokebridge.domain.errors import ErrorKind, Result, validation_error
from pokebridge.domain.models import PokemonRace, TranslationType
from pokebridge.domain.protocols import PokemonRepository, Translator


class TranslationService:
    def __init__(self, translator: Translator, repository: PokemonRepository):
        self._translator = translator
        self._repository = repository

    async def get_or_create(
        self, pokemon: PokemonRace, translation_type: TranslationType
    ) -> Result[str]:
        if pokemon is None:
            return Result.failure(validation_error("pokemon", "Pokemon cannot be null"))

        existing = pokemon.get_translation(translation_type)
        if existing is not None:
            logger.debug(
                f"Using stored {translation_type.value} translation for '{pokemon.name}'"
            )
            return Result.success(existing)

        translated = await self._translator.translate(pokemon.description, translation_type)
        if translated.is_failure:
            error = translated.error
            if error.kind == ErrorKind.RATE_LIMIT_EXCEEDED:
                logger.warning(
                    f"Translation rate limited for '{pokemon.name}', "
                    f"returning original description"
                )
            else:
                logger.warning(
                    f"Translation failed for '{pokemon.name}' ({error.code}): "
                    f"{error.message}. Returning original description"
                )
            return Result.success(pokemon.description)

        added = pokemon.add_translation(translation_type, translated.value)
        if added.is_failure:
            return Result.failure(added.error)

        saved = await self._repository.save(pokemon)
        if saved.is_failure:
            logger.error(
                f"Could not persist {translation_type.value} translation for "
                f"'{pokemon.name}': {saved.error.message}"
            )

        return Result.success(translated.value)
