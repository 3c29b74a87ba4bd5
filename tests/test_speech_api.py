"""HTTP surface: ingestion endpoint and the event consumers."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.controllers import events as events_controller
from app.controllers import speech as speech_controller
from app.config.settings import settings
from app.main import app
from app.pipelines.speech import naming


@pytest.fixture
def client(monkeypatch, storage, transcriber, translator, polly, publisher):
    monkeypatch.setattr(speech_controller, "_storage", storage)
    monkeypatch.setattr(speech_controller, "_transcribe_service", transcriber)
    monkeypatch.setattr(events_controller, "_storage", storage)
    monkeypatch.setattr(events_controller, "_transcribe_service", transcriber)
    monkeypatch.setattr(events_controller, "_translate_service", translator)
    monkeypatch.setattr(events_controller, "_polly_service", polly)
    monkeypatch.setattr(events_controller, "_publisher", publisher)
    with TestClient(app) as test_client:
        yield test_client


def _job_event(job_name: str, status: str = "COMPLETED") -> dict:
    return {
        "version": "0",
        "source": "aws.transcribe",
        "detail-type": "Transcribe Job State Change",
        "detail": {"TranscriptionJobName": job_name, "TranscriptionJobStatus": status},
    }


def test_ingest_acknowledges_and_names_the_job(client, storage, transcriber):
    response = client.post(
        "/speech",
        content=b"ID3-recording",
        headers={"X-Source-Language": "en-US", "X-Target-Language": "it-IT"},
    )

    assert response.status_code == 200
    assert response.json() == "Started transcribing!"
    job_name = response.headers["X-Transcription-Job"]
    [key] = storage.objects
    assert job_name == naming.job_name_for(key)
    assert naming.decode(key) == naming.decode(naming.key_from_job_name(job_name))
    assert transcriber.submissions[0]["language_code"] == "en-US"


def test_ingest_uses_default_pair_without_headers(client, storage):
    response = client.post("/speech", content=b"ID3-recording")

    assert response.status_code == 200
    [key] = storage.objects
    pair = naming.decode(key)
    assert (pair.source, pair.target) == ("zh-TW", "en-US")


def test_empty_recording_is_rejected(client, storage):
    response = client.post("/speech", content=b"")

    assert response.status_code == 400
    assert response.json()["code"] == "InvalidIngestRequest"
    assert storage.objects == {}


def test_submission_failure_returns_raw_error(client, transcriber):
    transcriber.fail_submit = True

    response = client.post("/speech", content=b"ID3-recording")

    assert response.status_code == 500
    assert "LimitExceededException" in response.text


def test_stages_endpoint_lists_five_stages(client):
    response = client.get("/speech/stages")

    assert response.status_code == 200
    assert [stage["order"] for stage in response.json()] == [1, 2, 3, 4, 5]


def test_job_event_runs_through_delivery(client, storage, transcriber, publisher, make_transcript):
    client.post(
        "/speech",
        content=b"ID3-recording",
        headers={"X-Source-Language": "en-US", "X-Target-Language": "zh-TW"},
    )
    job_name = transcriber.submissions[0]["job_name"]
    transcript_key = transcriber.complete(job_name)
    storage.objects[transcript_key] = (make_transcript("hello"), "application/json")

    response = client.post("/events/transcription", json=_job_event(job_name))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "delivered"
    assert naming.kind_of(body["audio_key"]) == "translation"
    assert len(publisher.published) == 1


def test_job_event_failure_is_acknowledged(client):
    response = client.post("/events/transcription", json=_job_event("audio-transcription-job-unknown"))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["stage"] == "completion"
    assert body["error"] == "JobStateError"


def test_unexpected_event_shape_is_rejected(client):
    response = client.post("/events/transcription", json={"detail": {"jobName": "x"}})

    assert response.status_code == 422


def test_storage_event_delivers_translation_audio(storage_event_mode, client, publisher):
    event = {
        "Records": [
            {
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": "test-bucket"}, "object": {"key": "translation-1700000000000.mp3"}},
            },
            {
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": "test-bucket"}, "object": {"key": "speech-1.en-US.it-IT.mp3"}},
            },
            {
                "eventName": "ObjectRemoved:Delete",
                "s3": {"bucket": {"name": "test-bucket"}, "object": {"key": "translation-2.mp3"}},
            },
        ]
    }

    response = client.post("/events/storage", json=event)

    assert response.status_code == 200
    assert response.json() == [
        {"key": "translation-1700000000000.mp3", "published": True, "topic": "translate"}
    ]
    assert len(publisher.published) == 1


def test_health_reports_configuration(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["missing_settings"] == []


def test_job_event_with_missing_setting_is_service_unavailable(
    monkeypatch, client, storage, transcriber, publisher, make_transcript
):
    job_name = "audio-transcription-job-speech-1700000000000.en-US.it-IT.mp3"
    transcript_key = transcriber.complete(job_name)
    storage.objects[transcript_key] = (make_transcript("hello"), "application/json")
    monkeypatch.setattr(settings.polly, "output_format", None)

    response = client.post("/events/transcription", json=_job_event(job_name))

    assert response.status_code == 503
    assert "POLLY_OUTPUT_FORMAT" in response.json()["detail"]
    assert publisher.published == []


def test_job_event_in_storage_event_mode_is_pending(
    storage_event_mode, client, storage, transcriber, publisher, make_transcript
):
    job_name = "audio-transcription-job-speech-1700000000000.en-US.it-IT.mp3"
    transcript_key = transcriber.complete(job_name)
    storage.objects[transcript_key] = (make_transcript("hello"), "application/json")

    body = client.post("/events/transcription", json=_job_event(job_name)).json()
    deliveries = client.post(
        "/events/storage",
        json={
            "Records": [
                {
                    "eventName": "ObjectCreated:Put",
                    "s3": {"bucket": {"name": "test-bucket"}, "object": {"key": body["audio_key"]}},
                }
            ]
        },
    ).json()

    assert body["status"] == "pending"
    assert [delivery["key"] for delivery in deliveries] == [body["audio_key"]]
    assert len(publisher.published) == 1
