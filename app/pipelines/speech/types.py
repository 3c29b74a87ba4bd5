"""Typed containers shared across the speech translation pipeline.

These dataclasses live in their own module so every stage (`naming`,
`ingestion`, `completion`, `translation`, `synthesis`, `delivery`) can import
them without creating circular dependencies. None of them outlive a single
pipeline run; only the stored artifacts do.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

AUTO: Final[str] = "auto"
"""Source-language sentinel: the transcription stage detects the language."""

ArtifactKey = str


@dataclass(frozen=True)
class LanguagePair:
    """Declared (or to-be-detected) source language plus requested target."""

    source: str
    target: str

    @property
    def detect_source(self) -> bool:
        return self.source == AUTO

    def __str__(self) -> str:
        return f"{self.source}->{self.target}"


@dataclass(frozen=True)
class JobHandle:
    """What ingestion hands back once audio is stored and the job accepted."""

    job_name: str
    artifact_key: ArtifactKey
    media_uri: str
    language_pair: LanguagePair


@dataclass(frozen=True)
class TranscriptResult:
    text: str
    language: str | None


@dataclass(frozen=True)
class TranslatedText:
    text: str
    target_language: str


@dataclass(frozen=True)
class SynthesisResult:
    audio_key: ArtifactKey
    voice_id: str
    language_code: str
    content_type: str


@dataclass(frozen=True)
class DeliveryNotification:
    """Time-bounded access reference published at most once per run."""

    access_reference: str | None
    expiry: datetime | None
    topic: str
    published: bool
    deferred: bool = False

    def payload(self) -> dict[str, str]:
        body = {"url": self.access_reference or ""}
        if self.expiry is not None:
            body["expires_at"] = self.expiry.isoformat()
        return body


@dataclass(frozen=True)
class PipelineOutcome:
    """Everything one completed run produced, for logging and the event reply."""

    job_name: str
    language_pair: LanguagePair
    transcript: TranscriptResult
    translation: TranslatedText
    synthesis: SynthesisResult
    notification: DeliveryNotification

    @property
    def status(self) -> str:
        """``pending`` when the storage-event consumer owns the publish."""

        if self.notification.deferred:
            return "pending"
        return "delivered" if self.notification.published else "undelivered"


__all__ = [
    "AUTO",
    "ArtifactKey",
    "DeliveryNotification",
    "JobHandle",
    "LanguagePair",
    "PipelineOutcome",
    "SynthesisResult",
    "TranscriptResult",
    "TranslatedText",
]
