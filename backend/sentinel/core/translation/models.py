"""Translation data models."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Severity = Literal["critical", "warning", "info"]


class TranslationUnit(BaseModel):
    """Result of translating one piece of text into one language."""

    source_text: str
    translated_text: str
    source_language: str
    target_language: str
    character_count: int = Field(..., ge=0, description="Length of the source text")
    latency_ms: int = Field(default=0, ge=0)


class BatchTranslation(BaseModel):
    """Fan-out result: successes by language plus the languages that failed."""

    results: Dict[str, TranslationUnit] = Field(default_factory=dict)
    failed_languages: List[str] = Field(default_factory=list)
    total_characters: int = 0
    total_latency_ms: int = 0


class MentorReview(BaseModel):
    """Structured code review. Only the prose fields are ever translated."""

    summary: str
    explanation: str
    suggestion: str
    severity: Severity
    code_snippet: Optional[str] = None


class TranslatedMentorReview(BaseModel):
    """A review with its translated counterpart.

    ``translated.severity`` and ``translated.code_snippet`` are always the
    original values.
    """

    original: MentorReview
    translated: MentorReview
    target_language: str
    language_display_name: str
    latency_ms: int = 0


class DetectedLanguage(BaseModel):
    """Best-effort dominant language of a text."""

    detected_language: str
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    latency_ms: int = 0
