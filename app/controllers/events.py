"""Event consumers for the asynchronous half of the pipeline.

Each event is handled once and always acknowledged: failures are logged and
reported in the response body, never retried.
"""

import logging

from fastapi import APIRouter

from app.pipelines.speech import PipelineError, on_audio_stored, on_job_event
from app.services import (
    get_polly_service,
    get_publisher,
    get_storage,
    get_transcribe_service,
    get_translate_service,
)
from app.views import (
    DeliveryResponse,
    PipelineRunResponse,
    StorageObjectEvent,
    TranscriptionJobStateChange,
)

router = APIRouter(prefix="/events", tags=["events"])

logger = logging.getLogger(__name__)

_storage = get_storage()
_transcribe_service = get_transcribe_service()
_translate_service = get_translate_service()
_polly_service = get_polly_service()
_publisher = get_publisher()


@router.post("/transcription", response_model=PipelineRunResponse)
async def transcription_job_event(event: TranscriptionJobStateChange) -> PipelineRunResponse:
    """Continue the pipeline for a job that reached a terminal state."""

    job_name = event.detail.job_name
    logger.info("Transcription job event job=%s status=%s", job_name, event.detail.status)

    try:
        outcome = await on_job_event(
            job_name,
            storage=_storage,
            transcriber=_transcribe_service,
            translator=_translate_service,
            synthesizer=_polly_service,
            publisher=_publisher,
        )
    except PipelineError as exc:
        return PipelineRunResponse(
            job_name=job_name,
            status="failed",
            stage=exc.stage,
            error=exc.code,
            detail=str(exc),
        )

    return PipelineRunResponse(
        job_name=job_name,
        status=outcome.status,
        audio_key=outcome.synthesis.audio_key,
    )


@router.post("/storage", response_model=list[DeliveryResponse])
async def storage_object_event(event: StorageObjectEvent) -> list[DeliveryResponse]:
    """Publish links for synthesized audio announced by S3 notifications.

    Only publishes when ``NOTIFY_DELIVERY_MODE=storage_event``; otherwise the
    completion run already did and every record is ignored.
    """

    deliveries: list[DeliveryResponse] = []
    for record in event.records:
        key = record.s3.object_.key
        if not record.event_name.startswith("ObjectCreated"):
            logger.debug("Skipping %s for %s", record.event_name, key)
            continue
        if record.s3.bucket.name != _storage.bucket:
            logger.warning("Skipping %s from unexpected bucket %s", key, record.s3.bucket.name)
            continue

        notification = await on_audio_stored(key, storage=_storage, publisher=_publisher)
        if notification is None:
            continue
        deliveries.append(
            DeliveryResponse(
                key=key,
                published=notification.published,
                topic=notification.topic,
            )
        )
    return deliveries
