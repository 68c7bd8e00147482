"""Translation API routes."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from sentinel.api.dependencies import ServicesDep
from sentinel.core.translation.languages import (
    get_supported_language_options,
    is_supported_language,
)
from sentinel.core.translation.models import (
    BatchTranslation,
    DetectedLanguage,
    MentorReview,
    TranslatedMentorReview,
    TranslationUnit,
)

router = APIRouter()


class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1)
    target_language: str
    source_language: Optional[str] = None


class BatchTranslateRequest(BaseModel):
    text: str = Field(..., min_length=1)
    target_languages: List[str] = Field(..., min_length=1)
    source_language: Optional[str] = None


class TranslateReviewRequest(BaseModel):
    review: MentorReview
    target_language: str


class DetectLanguageRequest(BaseModel):
    text: str = Field(..., min_length=1)


@router.get("/languages")
async def list_languages():
    """Supported languages for the language picker."""
    return get_supported_language_options()


@router.post("/translate", response_model=TranslationUnit)
async def translate_text(request: TranslateRequest, services: ServicesDep):
    if not is_supported_language(request.target_language):
        raise HTTPException(
            status_code=400, detail=f"Unsupported language: {request.target_language}"
        )
    return await services.translator.translate(
        request.text, request.target_language, request.source_language
    )


@router.post("/translate/batch", response_model=BatchTranslation)
async def translate_batch(request: BatchTranslateRequest, services: ServicesDep):
    """Translate one text into several languages; failures are listed, not raised."""
    return await services.translator.translate_to_many(
        request.text, request.target_languages, request.source_language
    )


@router.post("/translate/review", response_model=TranslatedMentorReview)
async def translate_review(request: TranslateReviewRequest, services: ServicesDep):
    """Translate a structured review. Code and severity are never translated."""
    return await services.translator.translate_review(request.review, request.target_language)


@router.post("/detect-language", response_model=DetectedLanguage)
async def detect_language(request: DetectLanguageRequest, services: ServicesDep):
    return await services.translator.detect_language(request.text)
