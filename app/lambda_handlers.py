"""Event-source entry points for running the pipeline without the HTTP app.

``ingestion_handler`` takes an API Gateway proxy event,
``transcription_event_handler`` an EventBridge Transcribe job event and
``storage_event_handler`` an S3 object-created notification. They share the
stage functions with the FastAPI controllers.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from app.config.settings import settings
from app.pipelines.speech import (
    EventSchemaMismatch,
    InvalidIngestRequest,
    PipelineError,
    ingest,
    on_audio_stored,
    on_job_event,
    resolve_language_pair,
)
from app.views import INGESTION_ACK, StorageObjectEvent, TranscriptionJobStateChange

logger = logging.getLogger(__name__)


def _header(headers: Mapping[str, Any] | None, name: str) -> str | None:
    lowered = name.lower()
    for key, value in (headers or {}).items():
        if key.lower() == lowered:
            return value
    return None


def _response(status_code: int, body: Any) -> dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}


def _request_body(event: Mapping[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidIngestRequest(f"Request body is not valid base64: {exc}") from exc
    return body.encode("utf-8") if isinstance(body, str) else bytes(body)


def ingestion_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    """API Gateway proxy integration for the ingestion endpoint."""

    headers = event.get("headers")
    language_pair = resolve_language_pair(
        _header(headers, "X-Source-Language"),
        _header(headers, "X-Target-Language"),
    )
    try:
        settings.ensure_runtime_ready()
        audio_bytes = _request_body(event)
        handle = asyncio.run(ingest(audio_bytes, language_pair))
    except InvalidIngestRequest as exc:
        logger.warning("Rejected recording pair=%s: %s", language_pair, exc)
        return _response(400, {"detail": str(exc), "code": exc.code})
    except Exception as exc:
        logger.exception("Ingestion failed pair=%s", language_pair)
        return {"statusCode": 500, "body": str(exc)}

    response = _response(200, INGESTION_ACK)
    response["headers"] = {"X-Transcription-Job": handle.job_name}
    return response


def transcription_event_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    """EventBridge target for Transcribe job state changes.

    Pipeline failures are logged and acknowledged so the event is not retried.
    """

    settings.ensure_runtime_ready()
    try:
        parsed = TranscriptionJobStateChange.model_validate(event)
    except ValidationError as exc:
        raise EventSchemaMismatch(f"Unexpected transcription event: {exc}") from exc

    job_name = parsed.detail.job_name
    try:
        outcome = asyncio.run(on_job_event(job_name))
    except PipelineError as exc:
        return {
            "statusCode": 200,
            "jobName": job_name,
            "status": "failed",
            "stage": exc.stage,
            "error": exc.code,
        }
    return {
        "statusCode": 200,
        "jobName": job_name,
        "status": outcome.status,
        "audioKey": outcome.synthesis.audio_key,
    }


def storage_event_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    """S3 notification target that publishes links in storage-event delivery mode."""

    settings.ensure_runtime_ready()
    try:
        parsed = StorageObjectEvent.model_validate(event)
    except ValidationError as exc:
        raise EventSchemaMismatch(f"Unexpected storage event: {exc}") from exc

    async def _deliver_all() -> list[dict[str, Any]]:
        delivered = []
        for record in parsed.records:
            if not record.event_name.startswith("ObjectCreated"):
                continue
            notification = await on_audio_stored(record.s3.object_.key)
            if notification is not None:
                delivered.append(
                    {"key": record.s3.object_.key, "published": notification.published}
                )
        return delivered

    return {"statusCode": 200, "deliveries": asyncio.run(_deliver_all())}


__all__ = ["ingestion_handler", "storage_event_handler", "transcription_event_handler"]
