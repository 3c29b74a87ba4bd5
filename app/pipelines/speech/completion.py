"""Transcription completion handler (Stage 02).

Runs once per terminal transcription job event. Nothing survives from the
ingestion request: the language pair is rebuilt from the transcript
location through ``naming``, then translation, synthesis and delivery run
sequentially inside this one invocation.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from app.services import (
    JobNotFoundError,
    JobStatus,
    NotificationPublisher,
    ObjectStorage,
    PollyService,
    StorageError,
    TranscribeService,
    TranscribeServiceError,
    TranscriptionJob,
    TranslateService,
    get_storage,
    get_transcribe_service,
)
from app.telemetry import observe_stage, record_run, record_stage_failure

from . import naming
from .delivery import deferred_notification, deliver, storage_event_delivery
from .errors import (
    EmptyTranscript,
    EventSchemaMismatch,
    JobStateError,
    PipelineError,
    TranscriptionFailed,
)
from .synthesis import synthesize
from .translation import translate
from .types import LanguagePair, PipelineOutcome, TranscriptResult

logger = logging.getLogger("app.services.speech_pipeline")
transcript_logger = logging.getLogger("app.logs.transcript")


@contextmanager
def _timed(stage: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        observe_stage(stage, time.perf_counter() - started)


async def resolve_job(job_name: str, transcriber: TranscribeService) -> TranscriptionJob:
    """Look the job up and insist that it reached a terminal state."""

    try:
        job = await transcriber.describe(job_name)
    except JobNotFoundError as exc:
        raise JobStateError(str(exc), job_name=job_name) from exc
    except TranscribeServiceError as exc:
        raise JobStateError(f"Could not resolve job: {exc}", job_name=job_name) from exc

    if not job.status.is_terminal:
        raise JobStateError(
            f"Job {job_name} is {job.status.value}, not terminal.",
            job_name=job_name,
            status=job.status.value,
        )
    if job.status is JobStatus.FAILED:
        raise TranscriptionFailed(
            f"Transcription job failed: {job.failure_reason or 'unknown reason'}",
            job_name=job_name,
        )
    if not job.output_location:
        raise JobStateError(f"Job {job_name} completed without a transcript location.", job_name=job_name)
    return job


def parse_transcript(payload: bytes | str) -> str:
    """Return the first transcript alternative of an Amazon Transcribe result."""

    try:
        document: Any = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise EventSchemaMismatch(f"Transcript is not valid JSON: {exc}") from exc

    results = document.get("results") if isinstance(document, dict) else None
    if not isinstance(results, dict):
        raise EventSchemaMismatch("Transcript has no 'results' object.")

    alternatives = results.get("transcripts", [])
    if not isinstance(alternatives, list):
        raise EventSchemaMismatch("Transcript 'transcripts' is not a list.")
    if not alternatives:
        raise EmptyTranscript("Transcript contains no alternatives.")
    first = alternatives[0]
    text = first.get("transcript", "") if isinstance(first, dict) else ""
    if not isinstance(text, str) or not text.strip():
        raise EmptyTranscript("First transcript alternative is empty.")
    return text.strip()


async def fetch_transcript(
    job: TranscriptionJob,
    language_pair: LanguagePair,
    storage: ObjectStorage,
) -> TranscriptResult:
    object_key = naming.transcript_object_key(job.output_location or "")
    try:
        payload = await storage.get(object_key)
    except StorageError as exc:
        raise TranscriptionFailed(
            f"Could not fetch transcript: {exc}", job_name=job.job_name, key=object_key
        ) from exc

    text = parse_transcript(payload)
    language = job.language_code or (None if language_pair.detect_source else language_pair.source)
    return TranscriptResult(text=text, language=language)


async def on_job_event(
    job_name: str,
    *,
    topic: str | None = None,
    storage: ObjectStorage | None = None,
    transcriber: TranscribeService | None = None,
    translator: TranslateService | None = None,
    synthesizer: PollyService | None = None,
    publisher: NotificationPublisher | None = None,
    delivery_mode: str | None = None,
) -> PipelineOutcome:
    """Continue the pipeline for ``job_name`` through to delivery.

    In storage-event delivery mode the run stops after storing the audio and
    the returned notification is ``deferred``. Every ``PipelineError`` is
    logged with its context, counted and re-raised; nothing is retried.
    """

    storage = storage or get_storage()
    transcriber = transcriber or get_transcribe_service()
    language_pair: LanguagePair | None = None

    try:
        with _timed("completion"):
            job = await resolve_job(job_name, transcriber)
            artifact_key = naming.key_from_transcript_uri(job.output_location or "")
            language_pair = naming.decode(artifact_key)
            transcript = await fetch_transcript(job, language_pair, storage)

        transcript_logger.info(
            "job=%s | pair=%s | language=%s | text=%s",
            job_name,
            language_pair,
            transcript.language,
            transcript.text,
        )

        with _timed("translation"):
            translation = await translate(
                transcript.text,
                language_pair.source,
                language_pair.target,
                translator=translator,
            )
        with _timed("synthesis"):
            synthesis = await synthesize(
                translation.text,
                language_pair.target,
                synthesizer=synthesizer,
                storage=storage,
            )
        if storage_event_delivery(delivery_mode):
            # The object-created event for audio_key triggers the publish.
            notification = deferred_notification(topic)
        else:
            with _timed("delivery"):
                notification = await deliver(
                    synthesis.audio_key,
                    topic,
                    storage=storage,
                    publisher=publisher,
                )
    except PipelineError as exc:
        logger.error(
            "Run ended at %s job=%s pair=%s error=%s context=%s: %s",
            exc.stage,
            job_name,
            language_pair,
            exc.code,
            dict(exc.context),
            exc,
        )
        record_stage_failure(exc.stage, exc.code)
        record_run("failed")
        raise

    outcome = PipelineOutcome(
        job_name=job_name,
        language_pair=language_pair,
        transcript=transcript,
        translation=translation,
        synthesis=synthesis,
        notification=notification,
    )
    record_run(outcome.status)
    logger.info(
        "Run complete job=%s pair=%s audio=%s status=%s",
        job_name,
        language_pair,
        synthesis.audio_key,
        outcome.status,
    )
    return outcome


__all__ = ["fetch_transcript", "on_job_event", "parse_transcript", "resolve_job"]
