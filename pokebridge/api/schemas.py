from pydantic import BaseModel, ConfigDict, Field

from pokebridge.domain.models import PokemonResult


class PokemonResponse(BaseModel):
    """Pokemon information returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    habitat: str
    is_legendary: bool = Field(serialization_alias="isLegendary", alias="isLegendary")

    @classmethod
    def from_result(cls, result: PokemonResult) -> "PokemonResponse":
        return cls(
            name=result.name,
            description=result.description,
            habitat=result.habitat,
            is_legendary=result.is_legendary,
        )


class ServiceInfo(BaseModel):
    name: str
    version: str
    endpoints: list[str]
