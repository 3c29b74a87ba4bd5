"""Request ingestion (Stage 01): store the recording, start transcription."""

from __future__ import annotations

import logging
from typing import Final, Iterable

from app.config.settings import ConfigurationError, settings
from app.services import (
    ObjectStorage,
    StorageError,
    TranscribeService,
    TranscribeServiceError,
    get_storage,
    get_transcribe_service,
)

from . import naming
from .errors import InvalidIngestRequest, JobSubmissionFailed, UploadFailed
from .types import AUTO, JobHandle, LanguagePair

logger = logging.getLogger("app.services.speech_pipeline")

INGESTION_KIND: Final[str] = "speech"

_CONTENT_TYPES: Final[dict[str, str]] = {
    "mp3": "audio/mpeg",
    "mp4": "audio/mp4",
    "m4a": "audio/mp4",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "ogg": "audio/ogg",
    "webm": "audio/webm",
    "amr": "audio/amr",
}


def content_type_for(media_format: str) -> str:
    return _CONTENT_TYPES.get(media_format.lower(), "application/octet-stream")


def resolve_language_pair(
    source: str | None,
    target: str | None,
) -> LanguagePair:
    """Apply the configured default pair to whichever header is missing."""

    source = (source or "").strip() or settings.language.default_source
    target = (target or "").strip() or settings.language.default_target
    return LanguagePair(source=source, target=target)


def validate_language_pair(
    language_pair: LanguagePair,
    supported: Iterable[str] | None = None,
) -> None:
    supported_tags = set(supported if supported is not None else settings.language.supported)
    if language_pair.target == AUTO or language_pair.target not in supported_tags:
        raise InvalidIngestRequest(
            f"Unsupported target language {language_pair.target!r}.",
            language_pair=str(language_pair),
        )
    if not language_pair.detect_source and language_pair.source not in supported_tags:
        raise InvalidIngestRequest(
            f"Unsupported source language {language_pair.source!r}.",
            language_pair=str(language_pair),
        )


async def ingest(
    audio_bytes: bytes,
    language_pair: LanguagePair,
    *,
    storage: ObjectStorage | None = None,
    transcriber: TranscribeService | None = None,
    media_format: str | None = None,
) -> JobHandle:
    """Store raw audio under a pair-encoding key and submit its transcription job.

    The job is only submitted after S3 confirmed the upload. A submission
    failure leaves the uploaded recording in the bucket.
    """

    if not audio_bytes:
        raise InvalidIngestRequest("Uploaded audio is empty.")
    validate_language_pair(language_pair)

    storage = storage or get_storage()
    transcriber = transcriber or get_transcribe_service()
    media_format = media_format or settings.transcribe.media_format or ""
    if not media_format:
        raise ConfigurationError("TRANSCRIBE_MEDIA_FORMAT is not configured.")

    key = naming.encode(INGESTION_KIND, language_pair, media_format)
    job_name = naming.job_name_for(key)

    try:
        await storage.put(key, audio_bytes, content_type_for(media_format))
    except StorageError as exc:
        logger.error("Upload failed key=%s pair=%s: %s", key, language_pair, exc)
        raise UploadFailed(str(exc), key=key, language_pair=str(language_pair)) from exc

    media_uri = storage.media_uri(key)
    try:
        await transcriber.submit(
            job_name,
            media_uri,
            media_format=media_format,
            output_bucket=storage.bucket,
            language_code=None if language_pair.detect_source else language_pair.source,
            language_options=settings.language.supported,
        )
    except TranscribeServiceError as exc:
        logger.error(
            "Job submission failed job=%s pair=%s; recording left at %s: %s",
            job_name,
            language_pair,
            media_uri,
            exc,
        )
        raise JobSubmissionFailed(
            str(exc), key=key, job_name=job_name, language_pair=str(language_pair)
        ) from exc

    logger.info("Ingested %d bytes key=%s job=%s pair=%s", len(audio_bytes), key, job_name, language_pair)
    return JobHandle(
        job_name=job_name,
        artifact_key=key,
        media_uri=media_uri,
        language_pair=language_pair,
    )


__all__ = [
    "INGESTION_KIND",
    "content_type_for",
    "ingest",
    "resolve_language_pair",
    "validate_language_pair",
]
