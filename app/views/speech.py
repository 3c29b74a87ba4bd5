"""Schemas for the speech ingestion endpoint."""

from typing import Optional

from pydantic import BaseModel

INGESTION_ACK = "Started transcribing!"


class ErrorResponse(BaseModel):
    """Body of a rejected recording: the message and the failure class name."""

    detail: str
    code: Optional[str] = None


class PipelineStageRead(BaseModel):
    order: int
    name: str
    module: str
    summary: str
    crosses_async_boundary: bool
