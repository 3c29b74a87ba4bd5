"""Amazon Polly voice catalogue and speech synthesis."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voice:
    """One entry of the Polly voice catalogue."""

    id: str
    language_code: str
    name: str | None = None


class SpeechSynthesisError(RuntimeError):
    """Raised when Polly fails to list voices or synthesize speech."""


class PollyService:
    """List voices and synthesize text with Amazon Polly."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto3_client("polly")
        return self._client

    async def list_voices(self, engine: str) -> list[Voice]:
        """Return every voice available for ``engine``, following pagination."""

        voices: list[Voice] = []
        params: dict[str, Any] = {"Engine": engine}
        while True:
            try:
                response: dict[str, Any] = await run_in_threadpool(
                    self.client.describe_voices, **params
                )
            except (BotoCoreError, ClientError) as exc:
                raise SpeechSynthesisError(f"Failed to list Polly voices: {exc}") from exc

            for raw in response.get("Voices", []):
                voices.append(
                    Voice(
                        id=raw["Id"],
                        language_code=raw.get("LanguageCode", ""),
                        name=raw.get("Name"),
                    )
                )
            next_token = response.get("NextToken")
            if not next_token:
                return voices
            params["NextToken"] = next_token

    async def synthesize(
        self,
        text: str,
        voice_id: str,
        output_format: str,
        *,
        engine: str,
    ) -> bytes:
        """Synthesize ``text`` immediately and return the audio bytes."""

        try:
            response: dict[str, Any] = await run_in_threadpool(
                self.client.synthesize_speech,
                Engine=engine,
                OutputFormat=output_format,
                Text=text,
                TextType="text",
                VoiceId=voice_id,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Polly synth failed for voice '%s'", voice_id)
            raise SpeechSynthesisError(f"Failed to synthesize speech: {exc}") from exc

        audio_stream = response.get("AudioStream")
        if audio_stream is None:
            raise SpeechSynthesisError("Polly returned no audio stream.")
        audio_bytes = await run_in_threadpool(audio_stream.read)
        if not audio_bytes:
            raise SpeechSynthesisError("Polly returned an empty audio stream.")
        return audio_bytes


def get_polly_service() -> PollyService:
    """Return the default Polly service instance."""

    return _DEFAULT_SERVICE


_DEFAULT_SERVICE = PollyService()


__all__ = ["PollyService", "SpeechSynthesisError", "Voice", "get_polly_service"]
