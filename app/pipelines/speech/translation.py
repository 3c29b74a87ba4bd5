"""Translation stage (Stage 03) of the speech pipeline."""

from __future__ import annotations

import logging
from typing import Final, Mapping

from app.services import TranslateService, TranslateServiceError, get_translate_service

from .errors import TranslationFailed
from .types import AUTO, TranslatedText

logger = logging.getLogger("app.services.speech_pipeline")

# Fixed content policy applied to every request.
TRANSLATION_POLICY: Final[Mapping[str, str]] = {
    "Profanity": "MASK",
    "Formality": "FORMAL",
}

# Region variants Amazon Translate distinguishes; everything else uses the primary subtag.
_REGIONAL_CODES: Final[frozenset[str]] = frozenset(
    {"zh-TW", "fr-CA", "es-MX", "pt-PT", "fa-AF"}
)


def translate_language_code(tag: str) -> str:
    """Map a BCP-47 style tag (``en-US``) to an Amazon Translate code (``en``)."""

    if tag == AUTO or tag in _REGIONAL_CODES:
        return tag
    return tag.split("-", 1)[0].lower()


async def translate(
    text: str,
    source: str,
    target: str,
    *,
    translator: TranslateService | None = None,
) -> TranslatedText:
    """Translate ``text``; empty output ends the run before synthesis."""

    translator = translator or get_translate_service()
    source_code = translate_language_code(source)
    target_code = translate_language_code(target)

    try:
        translated = await translator.translate(
            text,
            source_code,
            target_code,
            TRANSLATION_POLICY,
        )
    except TranslateServiceError as exc:
        raise TranslationFailed(str(exc), source=source, target=target) from exc

    if not translated or not translated.strip():
        raise TranslationFailed(
            "Translation service returned no text.", source=source, target=target
        )

    logger.info("Translated %s -> %s: %s", source, target, translated)
    return TranslatedText(text=translated, target_language=target)


__all__ = ["TRANSLATION_POLICY", "translate", "translate_language_code"]
