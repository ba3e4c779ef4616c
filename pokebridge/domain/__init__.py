"""
Domain layer: the pokemon race model, the result/error types and the
contracts implemented by the infrastructure.
"""

from pokebridge.domain.errors import DomainError, ErrorKind, Result
from pokebridge.domain.models import PokemonRace, PokemonResult, TranslationType
from pokebridge.domain.protocols import PokemonClient, PokemonRepository, Translator
from pokebridge.domain.selector import select_translation_type

__all__ = [
    "DomainError",
    "ErrorKind",
    "Result",
    "PokemonRace",
    "PokemonResult",
    "TranslationType",
    "PokemonClient",
    "PokemonRepository",
    "Translator",
    "select_translation_type",
]
