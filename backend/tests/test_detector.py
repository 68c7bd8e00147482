from sentinel.core.translation.detector import LanguageDetector


async def test_returns_top_language(translate_client):
    detector = LanguageDetector(translate_client)

    result = await detector.detect("यह फ़ंक्शन धीमा है")

    assert result.detected_language == "hi"
    assert result.score == 0.97


async def test_failure_falls_back_to_default(translate_client):
    translate_client.detect_error = RuntimeError("comprehend unavailable")
    detector = LanguageDetector(translate_client, default_language="en")

    result = await detector.detect("anything")

    assert result.detected_language == "en"
    assert result.score == 0.0


async def test_empty_result_falls_back_to_default(translate_client):
    translate_client.detect_response = {"Languages": []}

    result = await LanguageDetector(translate_client).detect("?")

    assert result.detected_language == "en"
    assert result.score == 0.0


async def test_score_is_clamped(translate_client):
    translate_client.detect_response = {"Languages": [{"LanguageCode": "ta", "Score": 1.3}]}

    result = await LanguageDetector(translate_client).detect("text")

    assert result.score == 1.0


async def test_translator_delegates_detection(translator):
    result = await translator.detect_language("text")
    assert result.detected_language == "hi"
