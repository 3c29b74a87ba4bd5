"""TTS synthesis stage (Stage 04) of the speech pipeline."""

from __future__ import annotations

import logging
from typing import Final, Mapping, Sequence

from app.config.settings import ConfigurationError, settings
from app.services import (
    ObjectStorage,
    PollyService,
    SpeechSynthesisError,
    StorageError,
    Voice,
    get_polly_service,
    get_storage,
)

from . import naming
from .errors import SynthesisFailed
from .types import SynthesisResult

logger = logging.getLogger("app.services.speech_pipeline")

SYNTHESIS_KIND: Final[str] = "translation"

# Tags without a dedicated Polly voice, mapped to the closest macro-language voice.
VOICE_FALLBACKS: Final[Mapping[str, str]] = {
    "zh-TW": "cmn-CN",
    "zh-CN": "cmn-CN",
    "zh": "cmn-CN",
    "zh-HK": "yue-CN",
    "ar": "arb",
    "ar-SA": "arb",
    "no": "nb-NO",
    "nb": "nb-NO",
}

_OUTPUT_FORMATS: Final[Mapping[str, tuple[str, str]]] = {
    "mp3": ("mp3", "audio/mpeg"),
    "ogg_vorbis": ("ogg", "audio/ogg"),
    "pcm": ("pcm", "audio/pcm"),
    "json": ("json", "application/json"),
}


def _primary_subtag(tag: str) -> str:
    return tag.split("-", 1)[0].lower()


def select_voice(
    voices: Sequence[Voice],
    target_language: str,
    *,
    default_voice_id: str | None = None,
) -> Voice | None:
    """Pick a voice for ``target_language``; never fails while any voice exists.

    Order: exact language match, documented fallback language, a voice sharing
    the primary subtag, the configured default voice, the first catalogued voice.
    """

    by_language: dict[str, Voice] = {}
    for voice in voices:
        by_language.setdefault(voice.language_code, voice)

    exact = by_language.get(target_language)
    if exact is not None:
        return exact

    fallback_code = VOICE_FALLBACKS.get(target_language)
    if fallback_code and fallback_code in by_language:
        logger.info("No %s voice; using fallback language %s", target_language, fallback_code)
        return by_language[fallback_code]

    primary = _primary_subtag(target_language)
    for code, voice in by_language.items():
        if _primary_subtag(code) == primary:
            logger.info("No %s voice; using related language %s", target_language, code)
            return voice

    if default_voice_id:
        for voice in voices:
            if voice.id == default_voice_id:
                logger.warning(
                    "No voice for %s; using configured default %s", target_language, voice.id
                )
                return voice

    if voices:
        logger.warning("No voice for %s; using first catalogued voice %s", target_language, voices[0].id)
        return voices[0]
    return None


def output_extension(output_format: str) -> tuple[str, str]:
    """Return ``(extension, content_type)`` for a Polly output format."""

    return _OUTPUT_FORMATS.get(output_format, (output_format, "application/octet-stream"))


async def synthesize(
    text: str,
    target_language: str,
    *,
    synthesizer: PollyService | None = None,
    storage: ObjectStorage | None = None,
) -> SynthesisResult:
    """Synthesize translated text and store the audio under a fresh key."""

    synthesizer = synthesizer or get_polly_service()
    storage = storage or get_storage()
    engine = settings.polly.engine
    output_format = settings.polly.output_format
    if not output_format:
        raise ConfigurationError("POLLY_OUTPUT_FORMAT is not configured.")

    try:
        voices = await synthesizer.list_voices(engine)
    except SpeechSynthesisError as exc:
        # The catalogue is only needed for selection; a default voice still works.
        logger.warning("Voice catalogue unavailable: %s", exc)
        voices = []

    voice = select_voice(
        voices,
        target_language,
        default_voice_id=settings.polly.default_voice_id,
    )
    if voice is not None:
        voice_id, voice_language = voice.id, voice.language_code
    elif settings.polly.default_voice_id:
        voice_id, voice_language = settings.polly.default_voice_id, target_language
    else:
        raise SynthesisFailed(
            f"No Polly voice available for {target_language}.",
            target=target_language,
        )

    try:
        audio_bytes = await synthesizer.synthesize(
            text,
            voice_id,
            output_format,
            engine=engine,
        )
    except SpeechSynthesisError as exc:
        raise SynthesisFailed(str(exc), target=target_language, voice=voice_id) from exc

    extension, content_type = output_extension(output_format)
    audio_key = naming.encode_derived(SYNTHESIS_KIND, extension)
    try:
        await storage.put(audio_key, audio_bytes, content_type)
    except StorageError as exc:
        raise SynthesisFailed(str(exc), key=audio_key, target=target_language) from exc

    logger.info(
        "Synthesized %d bytes key=%s voice=%s (%s)",
        len(audio_bytes),
        audio_key,
        voice_id,
        voice_language,
    )
    return SynthesisResult(
        audio_key=audio_key,
        voice_id=voice_id,
        language_code=voice_language,
        content_type=content_type,
    )


__all__ = [
    "SYNTHESIS_KIND",
    "VOICE_FALLBACKS",
    "output_extension",
    "select_voice",
    "synthesize",
]
