"""Service layer helpers for external integrations."""

from .notifications import (
    IotPublisher,
    NotificationError,
    NotificationPublisher,
    RabbitMQPublisher,
    build_publisher,
    get_publisher,
)
from .polly import PollyService, SpeechSynthesisError, Voice, get_polly_service
from .storage import ObjectStorage, StorageError, get_storage
from .transcribe import (
    JobNotFoundError,
    JobStatus,
    TranscribeService,
    TranscribeServiceError,
    TranscriptionJob,
    get_transcribe_service,
)
from .translate import TranslateService, TranslateServiceError, get_translate_service

__all__ = [
    "IotPublisher",
    "NotificationError",
    "NotificationPublisher",
    "RabbitMQPublisher",
    "build_publisher",
    "get_publisher",
    "PollyService",
    "SpeechSynthesisError",
    "Voice",
    "get_polly_service",
    "ObjectStorage",
    "StorageError",
    "get_storage",
    "JobNotFoundError",
    "JobStatus",
    "TranscribeService",
    "TranscribeServiceError",
    "TranscriptionJob",
    "get_transcribe_service",
    "TranslateService",
    "TranslateServiceError",
    "get_translate_service",
]
