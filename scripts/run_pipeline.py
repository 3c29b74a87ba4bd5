import asyncio
import os
import sys

# Add project root to path so we can import app
sys.path.append(os.getcwd())

from app.config.settings import ConfigurationError, settings
from app.pipelines.speech import PipelineError, ingest, on_job_event, resolve_language_pair


async def main():
    # Usage: python scripts/run_pipeline.py ingest path/to/audio.mp3 [source] [target]
    #        python scripts/run_pipeline.py complete <transcription-job-name>
    if len(sys.argv) < 3 or sys.argv[1] not in ("ingest", "complete"):
        print("Usage: python scripts/run_pipeline.py ingest <audio> [source] [target]")
        print("       python scripts/run_pipeline.py complete <job-name>")
        return

    try:
        settings.ensure_runtime_ready()
    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
        return

    if sys.argv[1] == "complete":
        try:
            outcome = await on_job_event(sys.argv[2])
        except PipelineError as e:
            print(f"\n{e.code} at stage {e.stage}: {e}")
            return
        print("\n--- Pipeline Result ---")
        print(f"Transcript:  {outcome.transcript.text}")
        print(f"Translation: {outcome.translation.text}")
        print(f"Audio key:   {outcome.synthesis.audio_key} (voice {outcome.synthesis.voice_id})")
        print(f"Delivery:    {outcome.status} on {outcome.notification.topic}")
        print(f"URL:         {outcome.notification.access_reference}")
        print("-----------------------")
        return

    file_path = sys.argv[2]
    if not os.path.exists(file_path):
        print(f"File '{file_path}' not found. Please provide a path to an audio file.")
        return

    source = sys.argv[3] if len(sys.argv) > 3 else None
    target = sys.argv[4] if len(sys.argv) > 4 else None
    language_pair = resolve_language_pair(source, target)

    print(f"Reading {file_path}...")
    with open(file_path, "rb") as f:
        audio_bytes = f.read()

    print(f"Ingesting {len(audio_bytes)} bytes as {language_pair}...")
    try:
        handle = await ingest(audio_bytes, language_pair)
    except PipelineError as e:
        print(f"\n{e.code}: {e}")
        return

    print(f"Stored {handle.artifact_key}")
    print(f"Transcription job {handle.job_name} submitted.")
    print(f"Once it completes run: python scripts/run_pipeline.py complete {handle.job_name}")


if __name__ == "__main__":
    asyncio.run(main())
