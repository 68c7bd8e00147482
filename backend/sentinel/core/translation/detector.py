"""Dominant-language detection."""

import logging
import time
from typing import Any

from .languages import DEFAULT_LANGUAGE
from .models import DetectedLanguage

logger = logging.getLogger(__name__)


class LanguageDetector:
    """Best-effort language detection that never raises.

    Detection is advisory: on any failure the default language is reported
    with a score of 0.
    """

    def __init__(self, client: Any, default_language: str = DEFAULT_LANGUAGE):
        self._client = client
        self.default_language = default_language

    async def detect(self, text: str) -> DetectedLanguage:
        start_time = time.monotonic()
        try:
            response = await self._client.detect_dominant_language(text)
            languages = response.get("Languages") or []
            top = languages[0] if languages else {}
            detected = top.get("LanguageCode") or self.default_language
            score = min(1.0, max(0.0, float(top.get("Score") or 0.0)))
        except Exception as e:
            latency_ms = int((time.monotonic() - start_time) * 1000)
            logger.error(f"detect_language: detection failed: {e}, latency={latency_ms}ms")
            return DetectedLanguage(
                detected_language=self.default_language, score=0.0, latency_ms=latency_ms
            )

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"detect_language: detected={detected}, score={score}, latency={latency_ms}ms"
        )
        return DetectedLanguage(detected_language=detected, score=score, latency_ms=latency_ms)
