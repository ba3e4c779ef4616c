"""
Translation type selection.

Rules:
- Legendary pokemon -> Yoda
- Cave habitat pokemon -> Yoda
- All others -> Shakespeare
"""

from pokebridge.domain.models import PokemonRace, TranslationType

CAVE_HABITAT = "cave"


def select_translation_type(pokemon: PokemonRace) -> TranslationType:
    """Pick the translation applied to a race's description."""
    if pokemon is None:
        raise ValueError("pokemon cannot be None")

    if pokemon.is_legendary:
        return TranslationType.YODA

    if pokemon.habitat and pokemon.habitat.strip().lower() == CAVE_HABITAT:
        return TranslationType.YODA

    return TranslationType.SHAKESPEARE
