"""
Tests for the pokemon race model and the Result type.
"""

import pytest

from pokebridge.domain.errors import ErrorKind, Result, not_found_error
from pokebridge.domain.models import PokemonRace, PokemonResult, TranslationType
from tests.conftest import make_pokemon


class TestPokemonRaceCreate:
    def test_create_valid(self):
        result = PokemonRace.create(5, "X", "desc", "", False)

        assert result.is_success
        assert result.value.id == 5
        assert result.value.name == "X"
        assert result.value.translations == {}
        assert result.value.updated_at is None

    def test_create_rejects_zero_id(self):
        result = PokemonRace.create(0, "Pikachu", "desc", "forest", False)

        assert result.is_failure
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == "VALIDATION_ERROR"

    def test_create_rejects_empty_name(self):
        result = PokemonRace.create(5, "", "desc", "forest", False)

        assert result.is_failure
        assert result.error.kind == ErrorKind.VALIDATION

    def test_create_rejects_whitespace_name(self):
        assert PokemonRace.create(5, "   ", "desc", "forest", False).is_failure

    def test_constructor_raises_on_invalid_id(self):
        with pytest.raises(ValueError):
            PokemonRace(-1, "Pikachu", "desc", "forest", False)


class TestTranslations:
    def test_add_translation(self, pikachu):
        result = pikachu.add_translation(TranslationType.SHAKESPEARE, "Hark!")

        assert result.is_success
        assert pikachu.has_translation(TranslationType.SHAKESPEARE)
        assert pikachu.get_translation(TranslationType.SHAKESPEARE) == "Hark!"
        assert pikachu.updated_at is not None

    def test_add_translation_replaces_existing(self, pikachu):
        pikachu.add_translation(TranslationType.YODA, "First")
        pikachu.add_translation(TranslationType.YODA, "Second")

        assert pikachu.get_translation(TranslationType.YODA) == "Second"
        assert len(pikachu.translations) == 1

    def test_add_blank_translation_fails(self, pikachu):
        result = pikachu.add_translation(TranslationType.YODA, "  ")

        assert result.is_failure
        assert result.error.kind == ErrorKind.VALIDATION
        assert not pikachu.has_translation(TranslationType.YODA)

    def test_add_translation_with_unknown_type_fails(self, pikachu):
        result = pikachu.add_translation("Pirate", "Arr")

        assert result.is_failure
        assert result.error.kind == ErrorKind.VALIDATION

    def test_translations_property_is_a_copy(self, pikachu):
        pikachu.translations[TranslationType.YODA] = "sneaky"

        assert not pikachu.has_translation(TranslationType.YODA)


class TestUpdateAndOutput:
    def test_update_from_keeps_description(self, pikachu):
        newer = make_pokemon(description="Something else", habitat="cave", is_legendary=True)
        newer.add_translation(TranslationType.YODA, "Electric mouse, it is")

        pikachu.update_from(newer)

        assert pikachu.description == "Electric mouse pokemon"
        assert pikachu.habitat == "cave"
        assert pikachu.is_legendary is True
        assert pikachu.get_translation(TranslationType.YODA) == "Electric mouse, it is"
        assert pikachu.updated_at is not None

    def test_to_result_uses_translation_when_present(self, pikachu):
        pikachu.add_translation(TranslationType.SHAKESPEARE, "Hark! An electric mouse")

        assert pikachu.to_result(TranslationType.SHAKESPEARE) == PokemonResult(
            name="Pikachu",
            description="Hark! An electric mouse",
            habitat="forest",
            is_legendary=False,
        )
        assert pikachu.to_result().description == "Electric mouse pokemon"
        assert pikachu.to_result(TranslationType.YODA).description == "Electric mouse pokemon"

    def test_dict_copy_is_independent(self, pikachu):
        pikachu.add_translation(TranslationType.YODA, "Mouse, it is")

        clone = PokemonRace.from_dict(pikachu.to_dict())
        clone.add_translation(TranslationType.SHAKESPEARE, "Hark!")

        assert clone.get_translation(TranslationType.YODA) == "Mouse, it is"
        assert clone.created_at == pikachu.created_at
        assert not pikachu.has_translation(TranslationType.SHAKESPEARE)

    def test_from_dict_rejects_invalid_payload(self):
        with pytest.raises(ValueError):
            PokemonRace.from_dict(
                {"id": 0, "name": "x", "created_at": "2024-01-01T00:00:00+00:00"}
            )


class TestResult:
    def test_success(self):
        result = Result.success(3)

        assert result.is_success and not result.is_failure
        assert result.value == 3
        with pytest.raises(ValueError):
            _ = result.error

    def test_failure(self):
        result = Result.failure(not_found_error("missingno"))

        assert result.is_failure
        assert result.error.message == "No pokemon found with name 'missingno'"
        with pytest.raises(ValueError):
            _ = result.value

    def test_failure_requires_error(self):
        with pytest.raises(ValueError):
            Result.failure(None)
