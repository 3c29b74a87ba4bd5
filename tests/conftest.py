"""Shared fixtures: environment for the settings object and in-memory AWS fakes."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

_LOG_DIR = Path(tempfile.mkdtemp(prefix="speech-relay-logs-"))

# Settings are read at import time, so the environment is prepared first.
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("STORAGE_BUCKET_NAME", "test-bucket")
os.environ.setdefault("TRANSCRIBE_MEDIA_FORMAT", "mp3")
os.environ.setdefault("POLLY_OUTPUT_FORMAT", "mp3")
os.environ.setdefault("NOTIFY_TOPIC", "translate")
os.environ.setdefault("LOG_FILE", str(_LOG_DIR / "app.log"))
os.environ.setdefault("PIPELINE_LOG_FILE", str(_LOG_DIR / "speech_pipeline.log"))
os.environ.setdefault("TRANSCRIPT_LOG_FILE", str(_LOG_DIR / "transcripts.log"))

import pytest  # noqa: E402

from app.config.settings import settings  # noqa: E402
from app.services import (  # noqa: E402
    JobNotFoundError,
    JobStatus,
    NotificationError,
    SpeechSynthesisError,
    StorageError,
    TranscribeServiceError,
    TranscriptionJob,
    Voice,
)


class FakeStorage:
    """In-memory stand-in for ``ObjectStorage``."""

    def __init__(self, bucket: str = "test-bucket") -> None:
        self.bucket = bucket
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_put = False
        self.fail_presign = False
        self.presigned: list[tuple[str, int]] = []

    def media_uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise StorageError(f"Upload of {key} was not confirmed (status=503).")
        self.objects[key] = (data, content_type)

    async def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise StorageError(f"Failed to download {key}: NoSuchKey")
        return self.objects[key][0]

    async def presign(self, key: str, ttl_seconds: int) -> str:
        if self.fail_presign:
            raise StorageError("Failed to presign")
        self.presigned.append((key, ttl_seconds))
        return (
            f"https://{self.bucket}.s3.amazonaws.com/{key}"
            f"?X-Amz-Expires={ttl_seconds}&X-Amz-Signature=abc123"
        )


class FakeTranscriber:
    """Records submissions and serves job descriptions from a dict."""

    def __init__(self) -> None:
        self.submissions: list[dict] = []
        self.jobs: dict[str, TranscriptionJob] = {}
        self.fail_submit = False

    async def submit(self, job_name, media_uri, **kwargs) -> None:
        if self.fail_submit:
            raise TranscribeServiceError("LimitExceededException")
        self.submissions.append({"job_name": job_name, "media_uri": media_uri, **kwargs})
        self.jobs[job_name] = TranscriptionJob(
            job_name=job_name,
            status=JobStatus.QUEUED,
            media_uri=media_uri,
            language_code=kwargs.get("language_code"),
        )

    async def describe(self, job_name: str) -> TranscriptionJob:
        if job_name not in self.jobs:
            raise JobNotFoundError(f"Transcription job {job_name} not found.")
        return self.jobs[job_name]

    def complete(self, job_name: str, *, bucket: str = "test-bucket", language_code: str | None = None) -> str:
        """Mark a job completed and return the transcript object key."""

        job = self.jobs.get(job_name)
        self.jobs[job_name] = TranscriptionJob(
            job_name=job_name,
            status=JobStatus.COMPLETED,
            media_uri=job.media_uri if job else None,
            output_location=f"https://s3.us-east-1.amazonaws.com/{bucket}/{job_name}.json",
            language_code=language_code or (job.language_code if job else None),
        )
        return f"{job_name}.json"


class FakeTranslator:
    def __init__(self, result: str = "你好") -> None:
        self.result = result
        self.calls: list[tuple[str, str, str, dict]] = []
        self.error: Exception | None = None

    async def translate(self, text, source_language, target_language, policy) -> str:
        self.calls.append((text, source_language, target_language, dict(policy)))
        if self.error is not None:
            raise self.error
        return self.result


class FakePolly:
    def __init__(self, voices: list[Voice] | None = None) -> None:
        self.voices = voices if voices is not None else [
            Voice(id="Joanna", language_code="en-US"),
            Voice(id="Zhiyu", language_code="cmn-CN"),
            Voice(id="Bianca", language_code="it-IT"),
        ]
        self.synth_calls: list[dict] = []
        self.fail_synthesis = False
        self.fail_catalogue = False

    async def list_voices(self, engine: str) -> list[Voice]:
        if self.fail_catalogue:
            raise SpeechSynthesisError("ThrottlingException")
        return list(self.voices)

    async def synthesize(self, text, voice_id, output_format, *, engine) -> bytes:
        if self.fail_synthesis:
            raise SpeechSynthesisError("TextLengthExceededException")
        self.synth_calls.append(
            {"text": text, "voice_id": voice_id, "output_format": output_format, "engine": engine}
        )
        return b"ID3-fake-audio"


class FakePublisher:
    def __init__(self) -> None:
        self.published: list[tuple[str, dict]] = []
        self.fail = False

    async def publish(self, topic, payload) -> None:
        if self.fail:
            raise NotificationError("Failed to publish to IoT topic")
        self.published.append((topic, dict(payload)))


def transcript_document(*alternatives: str, language_code: str | None = None) -> bytes:
    import json

    results: dict = {"transcripts": [{"transcript": text} for text in alternatives], "items": []}
    if language_code:
        results["language_code"] = language_code
    return json.dumps({"jobName": "job", "results": results, "status": "COMPLETED"}).encode("utf-8")


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def polly() -> FakePolly:
    return FakePolly()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def make_transcript():
    return transcript_document


@pytest.fixture
def storage_event_mode(monkeypatch):
    """Hand publishing to the storage-event consumer for the test's duration."""

    monkeypatch.setattr(settings.notification, "delivery_mode", "storage_event")
