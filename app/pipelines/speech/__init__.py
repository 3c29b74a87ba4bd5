"""Speech translation pipeline package.

Modules are organised by the order in which a run executes:

1. `ingestion` – store the recording, submit the transcription job.
2. `completion` – react to the job event and drive the remaining stages.
3. `translation` – Amazon Translate with the fixed content policy.
4. `synthesis` – Polly voice selection and audio storage.
5. `delivery` – presigned link published on the notification topic.

`naming` holds the only copy of the artifact key encoding; `flow` documents
the stages and their async boundaries.
"""

from . import naming
from .completion import on_job_event, parse_transcript
from .delivery import deliver, on_audio_stored
from .errors import (
    DeliveryPublishFailed,
    EmptyTranscript,
    EventSchemaMismatch,
    InvalidIngestRequest,
    JobStateError,
    JobSubmissionFailed,
    MalformedKey,
    PipelineError,
    SynthesisFailed,
    TranscriptionFailed,
    TranslationFailed,
    UploadFailed,
)
from .flow import PipelineStage, SpeechTranslationPipeline
from .ingestion import ingest, resolve_language_pair
from .synthesis import VOICE_FALLBACKS, select_voice, synthesize
from .translation import TRANSLATION_POLICY, translate
from .types import (
    AUTO,
    DeliveryNotification,
    JobHandle,
    LanguagePair,
    PipelineOutcome,
    SynthesisResult,
    TranscriptResult,
    TranslatedText,
)

__all__ = [
    "AUTO",
    "DeliveryNotification",
    "DeliveryPublishFailed",
    "EmptyTranscript",
    "EventSchemaMismatch",
    "InvalidIngestRequest",
    "JobHandle",
    "JobStateError",
    "JobSubmissionFailed",
    "LanguagePair",
    "MalformedKey",
    "PipelineError",
    "PipelineOutcome",
    "PipelineStage",
    "SpeechTranslationPipeline",
    "SynthesisFailed",
    "SynthesisResult",
    "TRANSLATION_POLICY",
    "TranscriptResult",
    "TranscriptionFailed",
    "TranslatedText",
    "TranslationFailed",
    "UploadFailed",
    "VOICE_FALLBACKS",
    "deliver",
    "ingest",
    "naming",
    "on_audio_stored",
    "on_job_event",
    "parse_transcript",
    "resolve_language_pair",
    "select_voice",
    "synthesize",
    "translate",
]
