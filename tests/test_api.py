"""
Tests for the HTTP API.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from pokebridge.api.app import create_app
from pokebridge.clients.pokeapi import PokeApiClient
from pokebridge.clients.translator import TranslatorClient
from pokebridge.container import Container
from pokebridge.datastore.cached_repository import CachedPokemonRepository
from pokebridge.datastore.repositories import PokemonSqlRepository
from pokebridge.domain.errors import Result
from pokebridge.domain.models import TranslationType
from pokebridge.services.cache import LocalCacheTier
from pokebridge.services.circuit_breaker import CircuitBreaker
from pokebridge.services.policies import ResiliencePipeline, TimeoutPolicy
from pokebridge.services.pokemon import PokemonService
from pokebridge.services.retry import RetryConfig, RetryPolicy
from pokebridge.services.translation import TranslationService
from tests.conftest import (
    FakeCacheTier,
    FakePokemonClient,
    FakeTranslator,
    InMemoryPokemonRepository,
)


@pytest.fixture
def client(pikachu):
    repository = InMemoryPokemonRepository()
    translator = FakeTranslator(
        {TranslationType.SHAKESPEARE: Result.success("Hark! An electric mouse")}
    )
    service = PokemonService(
        FakePokemonClient(pikachu),
        repository,
        TranslationService(translator, repository),
    )
    with TestClient(create_app(Container(pokemon_service=service))) as test_client:
        yield test_client


class TestPokemonRoutes:
    def test_get_pokemon(self, client):
        response = client.get("/pokemon/pikachu")

        assert response.status_code == 200
        assert response.json() == {
            "name": "Pikachu",
            "description": "Electric mouse pokemon",
            "habitat": "forest",
            "isLegendary": False,
        }

    def test_translated_pokemon_on_entity_prefix(self, client):
        response = client.get("/entity/translated/Pikachu")

        assert response.status_code == 200
        assert response.json() == {
            "name": "Pikachu",
            "description": "Hark! An electric mouse",
            "habitat": "forest",
            "isLegendary": False,
        }

    def test_not_found_problem(self, client):
        response = client.get("/entity/Nonexistent")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["title"] == "POKEMON_NOT_FOUND"
        assert body["status"] == 404
        assert body["detail"] == "No pokemon found with name 'Nonexistent'"
        assert body["type"].endswith("#section-6.5.4")
        assert body["errorCode"] == "POKEMON_NOT_FOUND"

    def test_name_too_long(self, client):
        response = client.get(f"/pokemon/{'a' * 101}")

        assert response.status_code == 400
        assert response.json()["title"] == "VALIDATION_ERROR"

    def test_blank_name(self, client):
        response = client.get("/pokemon/%20")

        assert response.status_code == 400
        assert response.json()["type"].endswith("#section-6.5.1")


class TestServiceRoutes:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "PokeBridge"

    def test_health_reports_checks(self, client):
        response = client.get("/health")

        assert response.status_code in (200, 503)
        assert "database" in response.json()["checks"]


async def test_full_stack_translated_lookup(session_factory):
    """PokeAPI and FunTranslations mocked at the HTTP layer, real storage."""

    def pokeapi(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/pokemon-species/pikachu"):
            return httpx.Response(
                200,
                json={
                    "id": 25,
                    "name": "Pikachu",
                    "is_legendary": False,
                    "habitat": {"name": "forest"},
                    "flavor_text_entries": [
                        {"flavor_text": "Electric mouse\npokemon", "language": {"name": "en"}}
                    ],
                },
            )
        return httpx.Response(404)

    translations = []

    def funtranslations(request: httpx.Request) -> httpx.Response:
        translations.append(request.url.params["text"])
        return httpx.Response(200, json={"contents": {"translated": "Hark! An electric mouse"}})

    async def no_sleep(delay: float) -> None:
        return None

    repository = CachedPokemonRepository(
        PokemonSqlRepository(session_factory), LocalCacheTier(), FakeCacheTier()
    )
    translator = TranslatorClient(
        httpx.AsyncClient(
            base_url="https://api.funtranslations.com/",
            transport=httpx.MockTransport(funtranslations),
        ),
        ResiliencePipeline(
            CircuitBreaker("translator"),
            RetryPolicy(RetryConfig(), sleep=no_sleep),
            TimeoutPolicy("translator", 5),
        ),
    )
    pokeapi_client = PokeApiClient(
        httpx.AsyncClient(
            base_url="https://pokeapi.co/api/v2/", transport=httpx.MockTransport(pokeapi)
        )
    )
    service = PokemonService(
        pokeapi_client, repository, TranslationService(translator, repository)
    )

    container = Container(pokemon_service=service)
    app = create_app(container)
    # ASGITransport does not run the lifespan
    app.state.container = container
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        first = await http.get("/entity/translated/Pikachu")
        second = await http.get("/pokemon/translated/pikachu")
        missing = await http.get("/entity/Nonexistent")

    assert first.status_code == 200
    assert first.json() == {
        "name": "Pikachu",
        "description": "Hark! An electric mouse",
        "habitat": "forest",
        "isLegendary": False,
    }
    assert second.json()["description"] == "Hark! An electric mouse"
    assert translations == ["Electric mouse pokemon"]
    assert missing.status_code == 404
    assert missing.json()["title"] == "POKEMON_NOT_FOUND"
