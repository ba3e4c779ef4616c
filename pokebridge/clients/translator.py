"""
FunTranslations API client.

API Documentation: https://funtranslations.com/api
Free tier: 5 calls/hour, 60 calls/day. Rate limited calls answer 429.
"""

import asyncio

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from pokebridge.domain.errors import (
    Result,
    rate_limit_error,
    translator_error,
    unsupported_translation_error,
    validation_error,
)
from pokebridge.domain.models import TranslationType
from pokebridge.services.errors import CircuitOpenError
from pokebridge.services.policies import ResiliencePipeline, build_translator_pipeline
from pokebridge.settings import Settings

TRANSLATION_PATHS: dict[TranslationType, str] = {
    TranslationType.SHAKESPEARE: "translate/shakespeare.json",
    TranslationType.YODA: "translate/yoda.json",
}

RATE_LIMIT_MESSAGE = "Translation API rate limit exceeded. Using original description."


class TranslationContents(BaseModel):
    translated: str | None = None
    text: str | None = None
    translation: str | None = None


class TranslationResponse(BaseModel):
    contents: TranslationContents | None = None


class TranslatorErrorDetail(BaseModel):
    code: int | None = None
    message: str | None = None


class TranslatorErrorResponse(BaseModel):
    error: TranslatorErrorDetail | None = None


class TranslatorClient:
    """
    Translates descriptions through the rate limited FunTranslations API.

    Every outbound call goes through the resilience pipeline. Failures are
    returned as Result values; only cancellation propagates.
    """

    SERVICE_ID = "translator"

    def __init__(self, http_client: httpx.AsyncClient, pipeline: ResiliencePipeline):
        self._http = http_client
        self.pipeline = pipeline

    @classmethod
    def create(cls, settings: Settings) -> "TranslatorClient":
        http_client = httpx.AsyncClient(
            base_url=settings.translator_base_url,
            timeout=httpx.Timeout(settings.translator_timeout_seconds),
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
        return cls(http_client, build_translator_pipeline(settings))

    async def translate(self, text: str, translation_type: TranslationType) -> Result[str]:
        path = TRANSLATION_PATHS.get(translation_type)
        if path is None:
            return Result.failure(unsupported_translation_error(translation_type))

        if not text or not text.strip():
            return Result.failure(validation_error("text", "Text to translate cannot be empty"))

        try:
            response = await self.pipeline.execute(
                lambda: self._http.get(path, params={"text": text})
            )
        except asyncio.CancelledError:
            raise
        except CircuitOpenError as e:
            logger.warning(f"Translation skipped, circuit open: {e}")
            return Result.failure(translator_error(str(e)))
        except Exception as e:
            logger.error(f"Translation request failed: {type(e).__name__}: {e}")
            return Result.failure(translator_error(str(e) or type(e).__name__))

        return self._parse(response, translation_type)

    def _parse(self, response: httpx.Response, translation_type: TranslationType) -> Result[str]:
        if response.status_code == 429:
            logger.warning(f"Translation API rate limited ({translation_type.value})")
            return Result.failure(rate_limit_error(RATE_LIMIT_MESSAGE))

        if not response.is_success:
            message = "Translation API error"
            try:
                body = TranslatorErrorResponse.model_validate(response.json())
                if body.error and body.error.message:
                    message = body.error.message
            except (ValueError, ValidationError):
                pass
            logger.error(f"Translation API returned {response.status_code}: {message}")
            return Result.failure(translator_error(message))

        try:
            body = TranslationResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Unreadable translation response: {e}")
            return Result.failure(translator_error("Invalid translation response"))

        translated = body.contents.translated if body.contents else None
        if not translated or not translated.strip():
            return Result.failure(translator_error("Empty translation received"))

        logger.debug(f"Translated description to {translation_type.value}")
        return Result.success(translated)

    async def close(self) -> None:
        await self._http.aclose()
