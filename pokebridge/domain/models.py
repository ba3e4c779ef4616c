"""
Pokemon race domain model.

The race is created through validating factories only. Identity fields
(id, name, description) are fixed at creation; habitat, legendary flag and
translations change through the methods below.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pokebridge.domain.errors import Result, validation_error


class TranslationType(str, Enum):
    """Closed set of stylistic rewrites of a description."""

    NONE = "None"
    SHAKESPEARE = "Shakespeare"
    YODA = "Yoda"


@dataclass(frozen=True)
class PokemonResult:
    """Output record returned to callers."""

    name: str
    description: str
    habitat: str
    is_legendary: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PokemonRace:
    """Canonical pokemon species record."""

    def __init__(
        self,
        id: int,
        name: str,
        description: str,
        habitat: str,
        is_legendary: bool,
        translations: dict[TranslationType, str] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        if isinstance(id, bool) or not isinstance(id, int) or id <= 0:
            raise ValueError("id must be a positive integer")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("name cannot be null or whitespace")

        self._id = id
        self._name = name
        self._description = description or ""
        self._habitat = habitat or ""
        self._is_legendary = bool(is_legendary)
        self._translations: dict[TranslationType, str] = dict(translations or {})
        self._created_at = created_at or _utcnow()
        self._updated_at = updated_at

    @classmethod
    def create(
        cls,
        id: int,
        name: str,
        description: str,
        habitat: str,
        is_legendary: bool,
    ) -> Result["PokemonRace"]:
        """Validate the inputs and build a new race."""
        if isinstance(id, bool) or not isinstance(id, int) or id <= 0:
            return Result.failure(validation_error("id", "Id must be greater than zero"))

        if not isinstance(name, str) or not name.strip():
            return Result.failure(validation_error("name", "Name cannot be empty"))

        return Result.success(cls(id, name, description, habitat, is_legendary))

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def habitat(self) -> str:
        return self._habitat

    @property
    def is_legendary(self) -> bool:
        return self._is_legendary

    @property
    def translations(self) -> dict[TranslationType, str]:
        """Read-only snapshot of the stored translations."""
        return dict(self._translations)

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    def add_translation(
        self, translation_type: TranslationType, translated_description: str
    ) -> Result[None]:
        """
        Record a translation of the description.

        An existing translation of the same type is replaced.
        """
        if not isinstance(translated_description, str) or not translated_description.strip():
            return Result.failure(
                validation_error(
                    "translated_description", "Translated description cannot be empty"
                )
            )

        if not isinstance(translation_type, TranslationType):
            return Result.failure(
                validation_error(
                    "translation_type", f"Invalid translation type: {translation_type}"
                )
            )

        self._translations[translation_type] = translated_description
        self._updated_at = _utcnow()
        return Result.success(None)

    def has_translation(self, translation_type: TranslationType) -> bool:
        return translation_type in self._translations

    def get_translation(self, translation_type: TranslationType) -> str | None:
        return self._translations.get(translation_type)

    def update_from(self, other: "PokemonRace") -> None:
        """Copy the mutable state of another instance of the same race."""
        if other is None:
            raise ValueError("other cannot be None")
        self._habitat = other.habitat
        self._is_legendary = other.is_legendary
        self._translations = other.translations
        self._updated_at = _utcnow()

    def to_result(self, translation_type: TranslationType = TranslationType.NONE) -> PokemonResult:
        """Build the output record, falling back to the original description."""
        return PokemonResult(
            name=self._name,
            description=self._translations.get(translation_type, self._description),
            habitat=self._habitat,
            is_legendary=self._is_legendary,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "description": self._description,
            "habitat": self._habitat,
            "is_legendary": self._is_legendary,
            "translations": {t.value: text for t, text in self._translations.items()},
            "created_at": self._created_at.isoformat(),
            "updated_at": self._updated_at.isoformat() if self._updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PokemonRace":
        """Rebuild a race from ``to_dict`` output. Raises ValueError on bad payloads."""
        updated_at = data.get("updated_at")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            habitat=data.get("habitat", ""),
            is_legendary=data.get("is_legendary", False),
            translations={
                TranslationType(key): text
                for key, text in (data.get("translations") or {}).items()
            },
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )

    def copy(self) -> "PokemonRace":
        return PokemonRace.from_dict(self.to_dict())

    def __repr__(self) -> str:
        return f"<PokemonRace(id={self._id}, name={self._name})>"
