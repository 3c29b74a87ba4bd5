"""Amazon Transcribe batch job helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    QUEUED = "Queued"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_STATUS_MAP = {
    "QUEUED": JobStatus.QUEUED,
    "IN_PROGRESS": JobStatus.RUNNING,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}


@dataclass(frozen=True)
class TranscriptionJob:
    """Snapshot of a transcription job as reported by Amazon Transcribe."""

    job_name: str
    status: JobStatus
    media_uri: str | None = None
    output_location: str | None = None
    language_code: str | None = None
    failure_reason: str | None = None


class TranscribeServiceError(RuntimeError):
    """Raised when Amazon Transcribe rejects or fails a request."""


class JobNotFoundError(TranscribeServiceError):
    """Raised when Transcribe has no record of the requested job."""


class TranscribeService:
    """Submit and inspect asynchronous transcription jobs."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto3_client("transcribe")
        return self._client

    async def submit(
        self,
        job_name: str,
        media_uri: str,
        *,
        media_format: str,
        output_bucket: str,
        language_code: str | None = None,
        language_options: Sequence[str] = (),
    ) -> None:
        """Start a job; ``language_code=None`` asks Transcribe to identify it."""

        params: dict[str, Any] = {
            "TranscriptionJobName": job_name,
            "Media": {"MediaFileUri": media_uri},
            "MediaFormat": media_format,
            "OutputBucketName": output_bucket,
        }
        if language_code:
            params["LanguageCode"] = language_code
        else:
            params["IdentifyLanguage"] = True
            if len(language_options) >= 2:
                params["LanguageOptions"] = list(language_options)

        try:
            await run_in_threadpool(self.client.start_transcription_job, **params)
        except (BotoCoreError, ClientError) as exc:
            raise TranscribeServiceError(
                f"Failed to start transcription job {job_name}: {exc}"
            ) from exc
        logger.info("Submitted transcription job %s for %s", job_name, media_uri)

    async def describe(self, job_name: str) -> TranscriptionJob:
        """Look a job up by name."""

        try:
            response = await run_in_threadpool(
                self.client.get_transcription_job,
                TranscriptionJobName=job_name,
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("BadRequestException", "NotFoundException"):
                raise JobNotFoundError(f"Transcription job {job_name} not found: {exc}") from exc
            raise TranscribeServiceError(f"Failed to describe job {job_name}: {exc}") from exc
        except BotoCoreError as exc:
            raise TranscribeServiceError(f"Failed to describe job {job_name}: {exc}") from exc

        job = response.get("TranscriptionJob")
        if not job:
            raise JobNotFoundError(f"Transcription job {job_name} not found.")
        return _parse_job(job)


def _parse_job(job: dict[str, Any]) -> TranscriptionJob:
    raw_status = job.get("TranscriptionJobStatus", "")
    status = _STATUS_MAP.get(raw_status)
    if status is None:
        raise TranscribeServiceError(f"Unknown transcription job status {raw_status!r}.")
    return TranscriptionJob(
        job_name=job.get("TranscriptionJobName", ""),
        status=status,
        media_uri=(job.get("Media") or {}).get("MediaFileUri"),
        output_location=(job.get("Transcript") or {}).get("TranscriptFileUri"),
        language_code=job.get("LanguageCode"),
        failure_reason=job.get("FailureReason"),
    )


def get_transcribe_service() -> TranscribeService:
    """Return the default transcription service instance."""

    return _DEFAULT_SERVICE


_DEFAULT_SERVICE = TranscribeService()


__all__ = [
    "JobNotFoundError",
    "JobStatus",
    "TranscribeService",
    "TranscribeServiceError",
    "TranscriptionJob",
    "get_transcribe_service",
]
