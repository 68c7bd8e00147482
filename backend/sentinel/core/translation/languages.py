"""Supported language codes (ISO 639-1) for the mentorship hub."""

from typing import Dict, List

DEFAULT_LANGUAGE = "en"

LANGUAGE_DISPLAY_NAMES: Dict[str, str] = {
    "en": "English",
    "hi": "हिन्दी (Hindi)",
    "ta": "தமிழ் (Tamil)",
    "te": "తెలుగు (Telugu)",
    "kn": "ಕನ್ನಡ (Kannada)",
    "ml": "മലയാളം (Malayalam)",
    "bn": "বাংলা (Bengali)",
    "mr": "मराठी (Marathi)",
    "gu": "ગુજરાતી (Gujarati)",
}

SUPPORTED_LANGUAGES = frozenset(LANGUAGE_DISPLAY_NAMES)


def is_supported_language(code: object) -> bool:
    return isinstance(code, str) and code in SUPPORTED_LANGUAGES


def get_language_display_name(code: str) -> str:
    """Return the display name for a language code, or the code itself."""
    return LANGUAGE_DISPLAY_NAMES.get(code, code)


def get_supported_language_options() -> List[Dict[str, str]]:
    """All supported languages as [{code, display_name}], for language pickers."""
    return [
        {"code": code, "display_name": name}
        for code, name in LANGUAGE_DISPLAY_NAMES.items()
    ]
