from pokebridge.clients.pokeapi import PokeApiClient
from pokebridge.clients.translator import TranslatorClient

__all__ = ["PokeApiClient", "TranslatorClient"]
