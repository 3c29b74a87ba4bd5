"""Artifact naming scheme.

The language pair of a run has no home other than the storage key of the
uploaded recording: there is no job table. Ingestion artifacts are named
``{kind}-{timestamp}.{source}.{target}.{extension}``, the transcription job is
named ``{job_prefix}{key}`` and Transcribe writes its output to
``{job_name}.json``, so the pair can be rebuilt from the job name or the
transcript location alone.

Derived artifacts that never cross an async boundary carrying a language
pair use ``{kind}-{timestamp}.{extension}``.

Everything that knows about this encoding lives here.
"""

from __future__ import annotations

import time
from pathlib import PurePosixPath
from typing import Final
from urllib.parse import unquote, urlparse

from app.config.settings import settings

from .errors import MalformedKey
from .types import ArtifactKey, LanguagePair

DELIMITER: Final[str] = "."
_TRANSCRIPT_SUFFIX: Final[str] = ".json"
_ENCODED_FIELDS: Final[int] = 4


def _timestamp() -> int:
    # Microseconds keep keys sortable and make same-millisecond uploads distinct.
    return time.time_ns() // 1_000


def _check_field(name: str, value: str) -> str:
    if not value:
        raise ValueError(f"Artifact {name} must not be empty.")
    if DELIMITER in value:
        raise ValueError(f"Artifact {name} {value!r} must not contain {DELIMITER!r}.")
    return value


def encode(
    kind: str,
    language_pair: LanguagePair,
    extension: str,
    *,
    timestamp: int | None = None,
) -> ArtifactKey:
    """Build a key that carries ``language_pair`` positionally."""

    fields = (
        f"{_check_field('kind', kind)}-{timestamp if timestamp is not None else _timestamp()}",
        _check_field("source language", language_pair.source),
        _check_field("target language", language_pair.target),
        _check_field("extension", extension.lstrip(DELIMITER)),
    )
    return DELIMITER.join(fields)


def encode_derived(kind: str, extension: str, *, timestamp: int | None = None) -> ArtifactKey:
    """Build a key for an artifact that does not need to carry a language pair."""

    stamp = timestamp if timestamp is not None else _timestamp()
    return (
        f"{_check_field('kind', kind)}-{stamp}"
        f"{DELIMITER}{_check_field('extension', extension.lstrip(DELIMITER))}"
    )


def decode(key: ArtifactKey) -> LanguagePair:
    """Recover the language pair from an ingestion artifact key.

    Raises ``MalformedKey`` when the key does not have exactly the four
    delimited fields or a field is empty; the pair is unrecoverable then.
    """

    fields = key.split(DELIMITER)
    if len(fields) != _ENCODED_FIELDS:
        raise MalformedKey(
            f"Artifact key {key!r} has {len(fields)} fields, expected {_ENCODED_FIELDS}.",
            key=key,
        )
    stem, source, target, extension = fields
    kind, _, stamp = stem.rpartition("-")
    if not kind or not stamp.isdigit():
        raise MalformedKey(f"Artifact key {key!r} has no '<kind>-<timestamp>' stem.", key=key)
    if not source or not target or not extension:
        raise MalformedKey(f"Artifact key {key!r} has an empty field.", key=key)
    return LanguagePair(source=source, target=target)


def kind_of(key: ArtifactKey) -> str | None:
    """Return the ``kind`` prefix of a key, or ``None`` if it has none."""

    stem = PurePosixPath(key).name.split(DELIMITER, 1)[0]
    kind, _, stamp = stem.rpartition("-")
    if not kind or not stamp.isdigit():
        return None
    return kind


def job_name_for(key: ArtifactKey, *, prefix: str | None = None) -> str:
    """Derive the transcription job name from the artifact key."""

    return f"{prefix if prefix is not None else settings.transcribe.job_prefix}{key}"


def key_from_job_name(job_name: str, *, prefix: str | None = None) -> ArtifactKey:
    """Invert ``job_name_for``."""

    job_prefix = prefix if prefix is not None else settings.transcribe.job_prefix
    if not job_name.startswith(job_prefix) or len(job_name) == len(job_prefix):
        raise MalformedKey(
            f"Job name {job_name!r} does not start with {job_prefix!r}.",
            job_name=job_name,
        )
    return job_name[len(job_prefix):]


def key_from_transcript_uri(uri: str, *, prefix: str | None = None) -> ArtifactKey:
    """Recover the ingestion key from where Transcribe wrote its output.

    Works for ``https://s3.<region>.amazonaws.com/<bucket>/<job>.json`` and
    ``s3://<bucket>/<job>.json`` style locations.
    """

    if not uri:
        raise MalformedKey("Transcript location is empty.")
    filename = unquote(PurePosixPath(urlparse(uri).path).name)
    if not filename.endswith(_TRANSCRIPT_SUFFIX):
        raise MalformedKey(f"Transcript location {uri!r} is not a JSON object.", uri=uri)
    return key_from_job_name(filename[: -len(_TRANSCRIPT_SUFFIX)], prefix=prefix)


def transcript_object_key(uri: str) -> str:
    """Return the object key (inside the output bucket) of a transcript location."""

    parsed = urlparse(uri)
    path = unquote(parsed.path).lstrip("/")
    if parsed.scheme == "s3":
        return path
    # Path-style https URLs embed the bucket as the first segment.
    host = parsed.netloc
    if host.startswith("s3.") or host.startswith("s3-") or host == "s3.amazonaws.com":
        _, _, path = path.partition("/")
    return path


__all__ = [
    "DELIMITER",
    "decode",
    "encode",
    "encode_derived",
    "job_name_for",
    "key_from_job_name",
    "key_from_transcript_uri",
    "kind_of",
    "transcript_object_key",
]
