from typing import Annotated

from fastapi import APIRouter, Path

from pokebridge.api.dependencies import PokemonServiceDep
from pokebridge.api.schemas import PokemonResponse
from pokebridge.exceptions import DomainHTTPException

PokemonName = Annotated[str, Path(min_length=1, max_length=100)]

router = APIRouter(tags=["pokemon"])


@router.get("/translated/{name}", response_model=PokemonResponse, response_model_by_alias=True)
async def get_translated_pokemon(name: PokemonName, service: PokemonServiceDep):
    """Pokemon with its description translated (Yoda or Shakespeare)."""
    result = await service.get_translated_pokemon(name)
    if result.is_failure:
        raise DomainHTTPException(result.error)
    return PokemonResponse.from_result(result.value)


@router.get("/{name}", response_model=PokemonResponse, response_model_by_alias=True)
async def get_pokemon(name: PokemonName, service: PokemonServiceDep):
    """Pokemon with its original description."""
    result = await service.get_pokemon(name)
    if result.is_failure:
        raise DomainHTTPException(result.error)
    return PokemonResponse.from_result(result.value)
