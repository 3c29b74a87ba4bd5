"""Request, response and event schemas."""

from .events import (
    DeliveryResponse,
    PipelineRunResponse,
    StorageObjectEvent,
    TranscriptionJobStateChange,
)
from .speech import INGESTION_ACK, ErrorResponse, PipelineStageRead

__all__ = [
    "DeliveryResponse",
    "ErrorResponse",
    "INGESTION_ACK",
    "PipelineRunResponse",
    "PipelineStageRead",
    "StorageObjectEvent",
    "TranscriptionJobStateChange",
]
