"""Speech ingestion endpoint.

The browser posts the raw recording with the language pair in two headers.
The response only acknowledges that transcription started; the translated
audio arrives later as a notification on the configured topic. See
`app.pipelines.speech.flow.SpeechTranslationPipeline` for the stage map.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from app.pipelines.speech import (
    InvalidIngestRequest,
    SpeechTranslationPipeline,
    ingest,
    resolve_language_pair,
)
from app.services import get_storage, get_transcribe_service
from app.views import INGESTION_ACK, ErrorResponse, PipelineStageRead

router = APIRouter(prefix="/speech", tags=["speech"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(SpeechTranslationPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_storage = get_storage()
_transcribe_service = get_transcribe_service()

SourceLanguageHeader = Annotated[Optional[str], Header(alias="X-Source-Language")]
TargetLanguageHeader = Annotated[Optional[str], Header(alias="X-Target-Language")]


@router.post(
    "",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"content": {"text/plain": {}}},
    },
)
async def ingest_speech(
    request: Request,
    source_language: SourceLanguageHeader = None,
    target_language: TargetLanguageHeader = None,
) -> Response:
    """Store the posted recording and start its transcription job."""

    audio_bytes = await request.body()
    language_pair = resolve_language_pair(source_language, target_language)

    try:
        handle = await ingest(
            audio_bytes,
            language_pair,
            storage=_storage,
            transcriber=_transcribe_service,
        )
    except InvalidIngestRequest as exc:
        logger.warning("Rejected recording pair=%s: %s", language_pair, exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(detail=str(exc), code=exc.code).model_dump(),
        )
    except Exception as exc:
        logger.exception("Ingestion failed pair=%s", language_pair)
        return PlainTextResponse(
            str(exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse(
        content=INGESTION_ACK,
        headers={"X-Transcription-Job": handle.job_name},
    )


@router.get("/stages", response_model=list[PipelineStageRead])
async def list_pipeline_stages() -> list[PipelineStageRead]:
    """Describe the pipeline stages and where the async boundaries are."""

    return [PipelineStageRead.model_validate(stage, from_attributes=True) for stage in PIPELINE_STAGES]
