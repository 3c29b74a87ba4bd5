"""High-level orchestration map for the speech translation pipeline.

A run crosses two asynchronous boundaries and no execution context survives
either of them:

1. ``ingestion`` – store the recording under a pair-encoding key and submit
   the transcription job.
   -- boundary: Transcribe completes and EventBridge delivers a job event --
2. ``completion`` – resolve the job, rebuild the language pair from the
   transcript location, read the first transcript alternative.
3. ``translation`` – Amazon Translate with the fixed content policy.
4. ``synthesis`` – pick a Polly voice (with fallbacks) and store the audio.
5. ``delivery`` – presign the audio and publish it on the notification topic.
   -- boundary: the browser receives the MQTT message and fetches the URL --

Stages 2–5 run sequentially inside ``completion.on_job_event``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the speech pipeline."""

    order: int
    name: str
    module: str
    summary: str
    crosses_async_boundary: bool = False


class SpeechTranslationPipeline:
    """Utility wrapper for documenting the `/speech` → notification flow."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Ingestion",
            "app.pipelines.speech.ingestion",
            "Upload the recording under speech-<ts>.<source>.<target>.<ext> and start Transcribe.",
            crosses_async_boundary=True,
        ),
        PipelineStage(
            2,
            "Completion",
            "app.pipelines.speech.completion",
            "Resolve the finished job, decode the language pair, fetch the transcript.",
        ),
        PipelineStage(
            3,
            "Translation",
            "app.pipelines.speech.translation",
            "Translate with profanity masking and formal register.",
        ),
        PipelineStage(
            4,
            "Synthesis",
            "app.pipelines.speech.synthesis",
            "Select a Polly voice for the target language and store the audio.",
        ),
        PipelineStage(
            5,
            "Delivery",
            "app.pipelines.speech.delivery",
            "Presign the audio and publish the link on the notification topic.",
            crosses_async_boundary=True,
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


__all__ = ["PipelineStage", "SpeechTranslationPipeline"]
