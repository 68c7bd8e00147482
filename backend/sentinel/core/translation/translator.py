"""Chunk-aware translation service.

Translates human-readable text across the supported languages while
respecting the wire API's per-request byte limit and never touching code:

- translate: one text, one language (chunked above the byte limit)
- translate_to_many: one text fanned out to several languages
- translate_review: the prose fields of a MentorReview
- translate_preserving_code: free text with fenced code blocks passed through

Failures of individual chunks, fields or prose segments fall back to the
original text; only ``translate`` itself raises TranslationError.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from sentinel.config import Settings
from sentinel.core.errors import TranslationError

from .chunking import (
    TextChunk,
    byte_length,
    is_code_fence,
    join_chunks,
    split_code_fences,
    split_into_chunks,
)
from .detector import LanguageDetector
from .languages import DEFAULT_LANGUAGE, get_language_display_name, is_supported_language
from .models import (
    BatchTranslation,
    DetectedLanguage,
    MentorReview,
    TranslatedMentorReview,
    TranslationUnit,
)

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


class Translator:
    """Translation over an injected wire client (see AwsTranslateClient)."""

    def __init__(
        self,
        client: Any,
        *,
        default_language: str = DEFAULT_LANGUAGE,
        byte_limit: int = 10_000,
        chunk_bytes: int = 8_000,
        formality: Optional[str] = "FORMAL",
        profanity: Optional[str] = "MASK",
    ):
        self._client = client
        self.default_language = default_language
        self.byte_limit = byte_limit
        self.chunk_bytes = chunk_bytes
        self._wire_settings: Dict[str, str] = {}
        if formality:
            self._wire_settings["Formality"] = formality
        if profanity:
            self._wire_settings["Profanity"] = profanity
        self.detector = LanguageDetector(client, default_language)

    @classmethod
    def from_settings(cls, settings: Settings, client: Any) -> "Translator":
        return cls(
            client,
            default_language=settings.default_language,
            byte_limit=settings.translate_byte_limit,
            chunk_bytes=settings.translate_chunk_bytes,
            formality=settings.translate_formality,
            profanity=settings.translate_profanity,
        )

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str] = None,
    ) -> TranslationUnit:
        """Translate text into target_language.

        Returns the text unchanged, without a wire call, when source and
        target are the same language. Text above the byte limit is chunked.

        Raises:
            TranslationError: If the language is unsupported or the wire call fails
        """
        source_language = source_language or self.default_language

        if source_language == target_language:
            logger.info(
                f"translate: source and target are the same ({target_language}), skipping"
            )
            return TranslationUnit(
                source_text=text,
                translated_text=text,
                source_language=source_language,
                target_language=target_language,
                character_count=len(text),
                latency_ms=0,
            )

        if not is_supported_language(target_language):
            raise TranslationError(
                target_language, ValueError(f"Unsupported language code: {target_language!r}")
            )

        size = byte_length(text)
        if size > self.byte_limit:
            logger.warning(
                f"translate: text exceeds {self.byte_limit} byte limit ({size} bytes), chunking"
            )
            return await self._translate_long_text(text, target_language, source_language)

        return await self._translate_single(text, target_language, source_language)

    async def _translate_single(
        self,
        text: str,
        target_language: str,
        source_language: str,
    ) -> TranslationUnit:
        start_time = time.monotonic()
        logger.info(
            f"translate: sending request target={target_language}, characters={len(text)}"
        )

        try:
            response = await self._client.translate_text(
                text, source_language, target_language, self._wire_settings
            )
            translated = response.get("TranslatedText") or text
            detected_source = response.get("SourceLanguageCode") or source_language
        except Exception as e:
            logger.error(
                f"translate: translation failed target={target_language}, error={e}, "
                f"latency={_elapsed_ms(start_time)}ms"
            )
            raise TranslationError(target_language, e) from e

        latency_ms = _elapsed_ms(start_time)
        logger.info(f"translate: complete target={target_language}, latency={latency_ms}ms")
        return TranslationUnit(
            source_text=text,
            translated_text=translated,
            source_language=detected_source,
            target_language=target_language,
            character_count=len(text),
            latency_ms=latency_ms,
        )

    async def _translate_chunk(
        self,
        chunk: TextChunk,
        target_language: str,
        source_language: str,
    ) -> str:
        if not chunk.text.strip():
            return chunk.text
        unit = await self._translate_single(chunk.text, target_language, source_language)
        return unit.translated_text

    async def _translate_long_text(
        self,
        text: str,
        target_language: str,
        source_language: str,
    ) -> TranslationUnit:
        start_time = time.monotonic()
        chunks = split_into_chunks(text, self.chunk_bytes)

        logger.info(
            f"translate: split long text into {len(chunks)} chunks "
            f"({byte_length(text)} bytes)"
        )

        settled = await asyncio.gather(
            *(self._translate_chunk(c, target_language, source_language) for c in chunks),
            return_exceptions=True,
        )

        translated_chunks: List[TextChunk] = []
        for index, (chunk, outcome) in enumerate(zip(chunks, settled)):
            if isinstance(outcome, BaseException):
                logger.warning(f"translate: chunk {index} failed, using original: {outcome}")
                translated_chunks.append(chunk)
            else:
                translated_chunks.append(TextChunk(outcome, chunk.separator))

        return TranslationUnit(
            source_text=text,
            translated_text=join_chunks(translated_chunks),
            source_language=source_language,
            target_language=target_language,
            character_count=len(text),
            latency_ms=_elapsed_ms(start_time),
        )

    async def translate_to_many(
        self,
        text: str,
        target_languages: List[str],
        source_language: Optional[str] = None,
    ) -> BatchTranslation:
        """Translate one text into several languages concurrently.

        Failed languages are reported in ``failed_languages``; this never
        raises because of a per-language failure.
        """
        start_time = time.monotonic()
        logger.info(
            f"translate_to_many: starting batch targets={target_languages}, "
            f"characters={len(text)}"
        )

        settled = await asyncio.gather(
            *(self.translate(text, lang, source_language) for lang in target_languages),
            return_exceptions=True,
        )

        batch = BatchTranslation()
        for lang, outcome in zip(target_languages, settled):
            if isinstance(outcome, BaseException):
                logger.warning(f"translate_to_many: failed for language {lang}: {outcome}")
                batch.failed_languages.append(lang)
                continue
            batch.results[lang] = outcome
            batch.total_characters += outcome.character_count

        batch.total_latency_ms = _elapsed_ms(start_time)
        logger.info(
            f"translate_to_many: batch complete success={len(batch.results)}, "
            f"failed={len(batch.failed_languages)}, latency={batch.total_latency_ms}ms"
        )
        return batch

    async def translate_review(
        self,
        review: MentorReview,
        target_language: str,
    ) -> TranslatedMentorReview:
        """Translate the summary, explanation and suggestion of a review.

        Severity and code snippet are copied verbatim. Each prose field falls
        back to its original text independently if its translation fails.
        """
        if target_language == self.default_language:
            return TranslatedMentorReview(
                original=review,
                translated=review.model_copy(),
                target_language=target_language,
                language_display_name=get_language_display_name(target_language),
                latency_ms=0,
            )

        start_time = time.monotonic()
        fields = ("summary", "explanation", "suggestion")
        settled = await asyncio.gather(
            *(self.translate(getattr(review, name), target_language) for name in fields),
            return_exceptions=True,
        )

        translated_fields: Dict[str, str] = {}
        status: Dict[str, bool] = {}
        for name, outcome in zip(fields, settled):
            ok = not isinstance(outcome, BaseException)
            translated_fields[name] = outcome.translated_text if ok else getattr(review, name)
            status[f"{name}_ok"] = ok

        latency_ms = _elapsed_ms(start_time)
        logger.info(
            f"translate_review: review translated target={target_language}, "
            f"latency={latency_ms}ms, {status}"
        )

        return TranslatedMentorReview(
            original=review,
            translated=MentorReview(
                **translated_fields,
                severity=review.severity,
                code_snippet=review.code_snippet,
            ),
            target_language=target_language,
            language_display_name=get_language_display_name(target_language),
            latency_ms=latency_ms,
        )

    async def _translate_segment(self, segment: str, target_language: str) -> str:
        if is_code_fence(segment) or not segment.strip():
            return segment
        try:
            unit = await self.translate(segment, target_language)
        except TranslationError as e:
            logger.warning(f"translate_preserving_code: segment failed, using original: {e}")
            return segment
        return unit.translated_text

    async def translate_preserving_code(self, text: str, target_language: str) -> str:
        """Translate free text, passing fenced code blocks through untouched."""
        if target_language == self.default_language:
            return text

        segments = split_code_fences(text)
        translated = await asyncio.gather(
            *(self._translate_segment(segment, target_language) for segment in segments)
        )
        return "".join(translated)

    async def detect_language(self, text: str) -> DetectedLanguage:
        """Best-effort dominant language; falls back to the default language."""
        return await self.detector.detect(text)
