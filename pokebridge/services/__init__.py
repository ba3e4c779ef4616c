"""
Service layer - resilience plumbing and the pokemon use cases.

Provides:
- CircuitBreaker, RetryPolicy, TimeoutPolicy: composed by ResiliencePipeline
- LocalCacheTier / RedisCacheTier: the two cache levels
- RequestDeduplicator: single-flight cache population
- TranslationService, PokemonService: orchestration
"""

from pokebridge.services.errors import (
    ServiceError,
    CacheError,
    CircuitOpenError,
    RequestTimeoutError,
)
from pokebridge.services.cache import CacheEntry, CacheTier, LocalCacheTier
from pokebridge.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from pokebridge.services.deduplicator import RequestDeduplicator
from pokebridge.services.retry import RetryConfig, RetryPolicy
from pokebridge.services.policies import ResiliencePipeline, TimeoutPolicy
from pokebridge.services.translation import TranslationService
from pokebridge.services.pokemon import PokemonService

__all__ = [
    # Errors
    "ServiceError",
    "CacheError",
    "CircuitOpenError",
    "RequestTimeoutError",
    # Cache
    "CacheEntry",
    "CacheTier",
    "LocalCacheTier",
    # Resilience
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "RetryConfig",
    "RetryPolicy",
    "ResiliencePipeline",
    "TimeoutPolicy",
    # Deduplicator
    "RequestDeduplicator",
    # Use cases
    "TranslationService",
    "PokemonService",
]
