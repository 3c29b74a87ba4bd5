"""Failure taxonomy for the speech translation pipeline.

No stage retries. A fatal error ends the run; the only non-fatal error is
``DeliveryPublishFailed`` because the synthesized artifact already exists.
"""

from __future__ import annotations

from typing import Any, Mapping


class PipelineError(RuntimeError):
    """Base class carrying the stage name and whatever context is known."""

    stage: str = "pipeline"
    fatal: bool = True

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context: Mapping[str, Any] = {
            key: value for key, value in context.items() if value is not None
        }

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidIngestRequest(PipelineError):
    stage = "ingestion"


class UploadFailed(PipelineError):
    stage = "ingestion"


class JobSubmissionFailed(PipelineError):
    stage = "ingestion"


class EventSchemaMismatch(PipelineError):
    """The event payload does not have the shape the consumer expects."""

    stage = "completion"


class JobStateError(PipelineError):
    """Event source reported a job that is unknown or not terminal."""

    stage = "completion"


class TranscriptionFailed(PipelineError):
    stage = "completion"


class MalformedKey(PipelineError):
    """The artifact key no longer carries a decodable language pair."""

    stage = "naming"


class EmptyTranscript(PipelineError):
    stage = "completion"


class TranslationFailed(PipelineError):
    stage = "translation"


class SynthesisFailed(PipelineError):
    stage = "synthesis"


class DeliveryPublishFailed(PipelineError):
    stage = "delivery"
    fatal = False


__all__ = [
    "DeliveryPublishFailed",
    "EmptyTranscript",
    "EventSchemaMismatch",
    "InvalidIngestRequest",
    "JobStateError",
    "JobSubmissionFailed",
    "MalformedKey",
    "PipelineError",
    "SynthesisFailed",
    "TranscriptionFailed",
    "TranslationFailed",
    "UploadFailed",
]
