"""Schemas for the external events the pipeline consumes.

Both shapes are validated strictly at the boundary so a payload from an
unexpected source fails closed instead of being inspected field by field.
"""

from typing import List, Literal, Optional
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TranscriptionJobDetail(BaseModel):
    job_name: str = Field(alias="TranscriptionJobName", min_length=1)
    status: Literal["COMPLETED", "FAILED"] = Field(alias="TranscriptionJobStatus")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TranscriptionJobStateChange(BaseModel):
    """EventBridge "Transcribe Job State Change" envelope."""

    source: Literal["aws.transcribe"] = "aws.transcribe"
    detail_type: Literal["Transcribe Job State Change"] = Field(
        default="Transcribe Job State Change",
        alias="detail-type",
    )
    detail: TranscriptionJobDetail

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StorageBucket(BaseModel):
    name: str


class StorageObject(BaseModel):
    key: str = Field(min_length=1)

    @field_validator("key")
    @classmethod
    def _decode_key(cls, value: str) -> str:
        # S3 event notifications URL-encode object keys.
        return unquote_plus(value)


class StorageEntity(BaseModel):
    bucket: StorageBucket
    object_: StorageObject = Field(alias="object")

    model_config = ConfigDict(populate_by_name=True)


class StorageRecord(BaseModel):
    event_name: str = Field(alias="eventName")
    s3: StorageEntity

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StorageObjectEvent(BaseModel):
    """S3 object-created notification."""

    records: List[StorageRecord] = Field(alias="Records", min_length=1)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PipelineRunResponse(BaseModel):
    job_name: str
    status: Literal["delivered", "undelivered", "pending", "failed"]
    stage: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    audio_key: Optional[str] = None


class DeliveryResponse(BaseModel):
    key: str
    published: bool
    topic: str
