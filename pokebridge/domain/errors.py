"""
Result wrapper and domain error taxonomy.

Every fallible operation in the core returns a ``Result``. Expected failures
travel as a ``DomainError`` value; exceptions are reserved for programming
errors and cancellation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    PERSISTENCE = "PERSISTENCE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UPSTREAM_CLIENT_ERROR = "UPSTREAM_CLIENT_ERROR"


@dataclass(frozen=True)
class DomainError:
    """A failure with its kind, a stable code and a human readable message."""

    kind: ErrorKind
    code: str
    message: str


def validation_error(field_name: str, reason: str) -> DomainError:
    return DomainError(
        ErrorKind.VALIDATION,
        "VALIDATION_ERROR",
        f"Validation failed for '{field_name}': {reason}",
    )


def not_found_error(name: str) -> DomainError:
    return DomainError(
        ErrorKind.NOT_FOUND,
        "POKEMON_NOT_FOUND",
        f"No pokemon found with name '{name}'",
    )


def persistence_error(message: str) -> DomainError:
    return DomainError(ErrorKind.PERSISTENCE, "PERSISTENCE_ERROR", message)


def rate_limit_error(message: str) -> DomainError:
    return DomainError(ErrorKind.RATE_LIMIT_EXCEEDED, "RATE_LIMIT_EXCEEDED", message)


def translator_error(message: str) -> DomainError:
    return DomainError(
        ErrorKind.UPSTREAM_CLIENT_ERROR, "TRANSLATOR_CLIENT_ERROR", message
    )


def unsupported_translation_error(translation_type: Any) -> DomainError:
    return DomainError(
        ErrorKind.UPSTREAM_CLIENT_ERROR,
        "TRANSLATION_NOT_SUPPORTED",
        f"Unsupported translation type: {translation_type}",
    )


def pokemon_api_error(message: str) -> DomainError:
    return DomainError(ErrorKind.UPSTREAM_CLIENT_ERROR, "POKEMON_API_ERROR", message)


class Result(Generic[T]):
    """
    Tagged outcome: either a value or a DomainError.

    Usage:
        result = await repository.get_by_name("pikachu")
        if result.is_failure:
            return Result.failure(result.error)
        pokemon = result.value
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: T | None = None, error: DomainError | None = None):
        self._value = value
        self._error = error

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DomainError) -> "Result[T]":
        if error is None:
            raise ValueError("A failed result requires an error")
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        """The success value. Reading it from a failure is a programming error."""
        if self._error is not None:
            raise ValueError(f"Cannot read value of a failed result: {self._error.message}")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> DomainError:
        if self._error is None:
            raise ValueError("Cannot read error of a successful result")
        return self._error

    def __repr__(self) -> str:
        if self._error is not None:
            return f"<Result failure={self._error.code}: {self._error.message}>"
        return f"<Result success={self._value!r}>"
