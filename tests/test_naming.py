"""Artifact key encoding: the only carrier of the language pair across Transcribe."""

from __future__ import annotations

import re
import time

import pytest

from app.pipelines.speech import AUTO, LanguagePair, MalformedKey, naming

PAIRS = [
    LanguagePair("en-US", "zh-TW"),
    LanguagePair("zh-TW", "en-US"),
    LanguagePair("it-IT", "en-US"),
    LanguagePair(AUTO, "it-IT"),
]


@pytest.mark.parametrize("pair", PAIRS, ids=str)
def test_decode_recovers_encoded_pair(pair):
    key = naming.encode("speech", pair, "mp3")

    assert naming.decode(key) == pair


def test_encode_layout_is_positional():
    key = naming.encode("speech", LanguagePair("en-US", "zh-TW"), "mp3", timestamp=1700000000000)

    assert key == "speech-1700000000000.en-US.zh-TW.mp3"


def test_auto_source_keeps_its_field():
    key = naming.encode("speech", LanguagePair(AUTO, "en-US"), ".mp3", timestamp=1)

    assert key == "speech-1.auto.en-US.mp3"
    assert naming.decode(key).detect_source


def test_consecutive_keys_sort_by_time():
    first = naming.encode("speech", PAIRS[0], "mp3", timestamp=1000)
    second = naming.encode("speech", PAIRS[0], "mp3", timestamp=2000)

    assert sorted([second, first]) == [first, second]


def test_derived_key_has_no_language_fields():
    key = naming.encode_derived("translation", "mp3", timestamp=42)

    assert key == "translation-42.mp3"
    assert naming.kind_of(key) == "translation"
    with pytest.raises(MalformedKey):
        naming.decode(key)


@pytest.mark.parametrize(
    "key",
    [
        "",
        "speech-1.mp3",
        "speech-1.en-US.mp3",
        "speech-1.en-US.zh-TW.mp3.json",
        "speech-1..zh-TW.mp3",
        "speech-1.en-US..mp3",
        "speech-1.en-US.zh-TW.",
        "speech.en-US.zh-TW.mp3",
        "speech-abc.en-US.zh-TW.mp3",
        "-1.en-US.zh-TW.mp3",
    ],
)
def test_decode_rejects_malformed_keys(key):
    with pytest.raises(MalformedKey):
        naming.decode(key)


@pytest.mark.parametrize("bad", ["en.US", ""])
def test_encode_refuses_fields_that_break_decoding(bad):
    with pytest.raises(ValueError):
        naming.encode("speech", LanguagePair(bad, "zh-TW"), "mp3")


def test_job_name_round_trip():
    key = "speech-1.en-US.zh-TW.mp3"

    job_name = naming.job_name_for(key)

    assert job_name == "audio-transcription-job-speech-1.en-US.zh-TW.mp3"
    assert naming.key_from_job_name(job_name) == key


def test_key_from_job_name_requires_prefix():
    with pytest.raises(MalformedKey):
        naming.key_from_job_name("someone-elses-job")


@pytest.mark.parametrize(
    "uri",
    [
        "https://s3.us-east-1.amazonaws.com/test-bucket/audio-transcription-job-speech-1.en-US.zh-TW.mp3.json",
        "https://test-bucket.s3.eu-west-1.amazonaws.com/audio-transcription-job-speech-1.en-US.zh-TW.mp3.json",
        "s3://test-bucket/audio-transcription-job-speech-1.en-US.zh-TW.mp3.json",
    ],
)
def test_key_from_transcript_uri(uri):
    key = naming.key_from_transcript_uri(uri)

    assert key == "speech-1.en-US.zh-TW.mp3"
    assert naming.decode(key) == LanguagePair("en-US", "zh-TW")


def test_key_from_transcript_uri_rejects_non_json():
    with pytest.raises(MalformedKey):
        naming.key_from_transcript_uri("s3://test-bucket/audio-transcription-job-speech-1.en-US.zh-TW.mp3")


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("https://s3.us-east-1.amazonaws.com/test-bucket/job.json", "job.json"),
        ("https://test-bucket.s3.us-east-1.amazonaws.com/job.json", "job.json"),
        ("s3://test-bucket/job.json", "job.json"),
    ],
)
def test_transcript_object_key(uri, expected):
    assert naming.transcript_object_key(uri) == expected


def test_ingestion_key_shape_matches_client_contract():
    key = naming.encode("speech", LanguagePair("en-US", "zh-TW"), "mp3")

    assert re.fullmatch(r"speech-\d+\.en-US\.zh-TW\.mp3", key)


def test_generated_timestamps_are_epoch_microseconds():
    before = time.time_ns() // 1_000
    key = naming.encode("speech", LanguagePair("en-US", "it-IT"), "mp3")
    after = time.time_ns() // 1_000

    stamp = int(key.split(".", 1)[0].rpartition("-")[2])
    assert before <= stamp <= after
