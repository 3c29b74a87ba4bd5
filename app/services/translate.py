"""Amazon Translate integration."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class TranslateServiceError(RuntimeError):
    """Raised when Amazon Translate cannot translate the text."""


class TranslateService:
    """Call ``TranslateText`` and hand back the translated string."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto3_client("translate")
        return self._client

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        policy: Mapping[str, str],
    ) -> str:
        try:
            response: dict[str, Any] = await run_in_threadpool(
                self.client.translate_text,
                Text=text,
                SourceLanguageCode=source_language,
                TargetLanguageCode=target_language,
                Settings=dict(policy),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception(
                "Translate failed for %s -> %s", source_language, target_language
            )
            raise TranslateServiceError(f"Failed to translate text: {exc}") from exc

        detected = response.get("SourceLanguageCode")
        if detected and detected != source_language:
            logger.debug("Translate detected source language %s", detected)
        return response.get("TranslatedText") or ""


def get_translate_service() -> TranslateService:
    """Return the default translation service instance."""

    return _DEFAULT_SERVICE


_DEFAULT_SERVICE = TranslateService()


__all__ = ["TranslateService", "TranslateServiceError", "get_translate_service"]
