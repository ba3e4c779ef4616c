import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Upstream providers
    pokeapi_base_url: str = Field(
        default="https://pokeapi.co/api/v2/", alias="POKEAPI_BASE_URL"
    )
    pokeapi_timeout_seconds: float = Field(default=10.0, alias="POKEAPI_TIMEOUT_SECONDS")
    flavor_text_language: str = Field(default="en", alias="FLAVOR_TEXT_LANGUAGE")
    translator_base_url: str = Field(
        default="https://api.funtranslations.com/", alias="TRANSLATOR_BASE_URL"
    )
    translator_timeout_seconds: float = Field(
        default=30.0, alias="TRANSLATOR_TIMEOUT_SECONDS"
    )

    # Translator resilience
    retry_count: int = Field(default=2, alias="RETRY_COUNT")
    retry_backoff_base_seconds: float = Field(
        default=2.0, alias="RETRY_BACKOFF_BASE_SECONDS"
    )
    circuit_failure_ratio: float = Field(default=0.5, alias="CIRCUIT_FAILURE_RATIO")
    circuit_sampling_seconds: float = Field(default=10.0, alias="CIRCUIT_SAMPLING_SECONDS")
    circuit_minimum_throughput: int = Field(default=3, alias="CIRCUIT_MINIMUM_THROUGHPUT")
    circuit_break_seconds: float = Field(default=30.0, alias="CIRCUIT_BREAK_SECONDS")
    circuit_rate_limit_break_seconds: float = Field(
        default=900.0, alias="CIRCUIT_RATE_LIMIT_BREAK_SECONDS"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./pokebridge.db", alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Cache Configuration
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_memory_ttl_seconds: float = Field(default=1800, alias="CACHE_MEMORY_TTL_SECONDS")
    cache_distributed_ttl_seconds: float = Field(
        default=86400, alias="CACHE_DISTRIBUTED_TTL_SECONDS"
    )
    cache_fail_safe_ttl_seconds: float = Field(
        default=604800, alias="CACHE_FAIL_SAFE_TTL_SECONDS"
    )
    cache_soft_timeout_ms: int = Field(default=100, alias="CACHE_SOFT_TIMEOUT_MS")
    cache_hard_timeout_ms: int = Field(default=5000, alias="CACHE_HARD_TIMEOUT_MS")
    cache_memory_max_size: int = Field(default=1000, alias="CACHE_MEMORY_MAX_SIZE")
    cache_invalidation_channel: str = Field(
        default="pokebridge:cache:invalidation", alias="CACHE_INVALIDATION_CHANNEL"
    )

    # API
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def load_settings() -> Settings:
    """Build settings from the process environment (and .env, loaded above)."""
    return Settings.model_validate(dict(os.environ))


global_settings = load_settings()
