"""Translation package.

This package provides:
- Translator: chunked, code-preserving translation with partial-failure tolerance
- LanguageDetector: best-effort dominant-language detection
- The supported language table
"""

from .detector import LanguageDetector
from .languages import (
    DEFAULT_LANGUAGE,
    LANGUAGE_DISPLAY_NAMES,
    SUPPORTED_LANGUAGES,
    get_language_display_name,
    get_supported_language_options,
    is_supported_language,
)
from .models import (
    BatchTranslation,
    DetectedLanguage,
    MentorReview,
    TranslatedMentorReview,
    TranslationUnit,
)
from .translator import Translator

__all__ = [
    "LanguageDetector",
    "Translator",
    "DEFAULT_LANGUAGE",
    "LANGUAGE_DISPLAY_NAMES",
    "SUPPORTED_LANGUAGES",
    "get_language_display_name",
    "get_supported_language_options",
    "is_supported_language",
    "BatchTranslation",
    "DetectedLanguage",
    "MentorReview",
    "TranslatedMentorReview",
    "TranslationUnit",
]
