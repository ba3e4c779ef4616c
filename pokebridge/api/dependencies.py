"""Dependency injection for the FastAPI app.

Services live in app.state, set during lifespan; dependency functions read
them back from request.app.state.
"""

from typing import Annotated

from fastapi import Depends, Request

from pokebridge.container import Container
from pokebridge.services.pokemon import PokemonService


def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Container not initialized. Check lifespan setup.")
    return container


def get_pokemon_service(request: Request) -> PokemonService:
    return get_container(request).pokemon_service


ContainerDep = Annotated[Container, Depends(get_container)]
PokemonServiceDep = Annotated[PokemonService, Depends(get_pokemon_service)]
