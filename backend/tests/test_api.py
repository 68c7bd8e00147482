import pytest
from fastapi.testclient import TestClient

from sentinel.api.dependencies import build_services
from sentinel.main import create_app


@pytest.fixture
def services(test_settings, store, model_client, translate_client):
    return build_services(
        test_settings,
        store,
        model_client=model_client,
        translate_client=translate_client,
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client


CHAT_BODY = {"repoId": "repo-1", "sessionId": "session-1", "message": "Review this."}


class TestChatEndpoint:
    def test_success_uses_camel_case_and_omits_empty_fields(self, client, store):
        response = client.post("/api/v1/chat", json=CHAT_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "sentinel"
        assert data["repoId"] == "repo-1"
        assert data["sessionId"] == "session-1"
        assert data["content"] == "Looks good to me."
        assert data["language"] == "en"
        assert "messageId" in data
        assert "translatedContent" not in data
        assert "issues" not in data

    def test_validation_error_is_400_with_error_body(self, client, model_client):
        response = client.post(
            "/api/v1/chat",
            json={"sessionId": "session-1", "message": "hi"},
            headers={"x-request-id": "req-123"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "errorKind": "ValidationError",
            "message": "repoId is required and must be a non-empty string.",
            "requestId": "req-123",
        }
        assert model_client.calls == []

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/v1/chat",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["errorKind"] == "ValidationError"

    def test_upstream_failure_is_500_without_leaking_cause(self, client, model_client):
        model_client.error = RuntimeError("AccessDeniedException: secret detail")

        response = client.post("/api/v1/chat", json=CHAT_BODY)

        assert response.status_code == 500
        data = response.json()
        assert data["errorKind"] == "InvocationError"
        assert data["message"] == "Bedrock chat invocation failed"
        assert "secret detail" not in response.text
        assert data["requestId"]

    def test_empty_model_response_is_500(self, client, model_client):
        model_client.chat_text = "   "

        response = client.post("/api/v1/chat", json=CHAT_BODY)

        assert response.status_code == 500
        assert response.json()["errorKind"] == "EmptyResponseError"

    def test_turn_is_persisted_by_shutdown(self, services, store):
        with TestClient(create_app(services)) as test_client:
            response = test_client.post("/api/v1/chat", json=CHAT_BODY)

        message_id = response.json()["messageId"]
        assert store.records[("session-1", message_id)]["user_message"] == "Review this."


class TestTranslationEndpoints:
    def test_languages(self, client):
        response = client.get("/api/v1/languages")

        codes = [item["code"] for item in response.json()]
        assert codes == ["en", "hi", "ta", "te", "kn", "ml", "bn", "mr", "gu"]

    def test_translate(self, client):
        response = client.post(
            "/api/v1/translate",
            json={"text": "Add input validation.", "target_language": "hi"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["translated_text"] == "[hi] Add input validation."
        assert data["source_language"] == "en"
        assert data["character_count"] == 21

    def test_translate_unsupported_language_is_400(self, client, translate_client):
        response = client.post(
            "/api/v1/translate", json={"text": "Hello", "target_language": "xx"}
        )

        assert response.status_code == 400
        assert translate_client.calls == []

    def test_translate_wire_failure_is_500(self, client, translate_client):
        translate_client.fail_languages = {"hi"}

        response = client.post(
            "/api/v1/translate", json={"text": "Hello", "target_language": "hi"}
        )

        assert response.status_code == 500
        data = response.json()
        assert data["errorKind"] == "TranslationError"
        assert data["message"] == "Translation failed for language 'hi'"
        assert "service unavailable" not in response.text

    def test_batch(self, client):
        response = client.post(
            "/api/v1/translate/batch",
            json={"text": "Refactor this loop.", "target_languages": ["hi", "xx"]},
        )

        data = response.json()
        assert list(data["results"]) == ["hi"]
        assert data["failed_languages"] == ["xx"]

    def test_review(self, client):
        review = {
            "summary": "Unbounded query.",
            "explanation": "No pagination.",
            "suggestion": "Add LIMIT.",
            "severity": "warning",
            "code_snippet": "SELECT * FROM events LIMIT 100",
        }

        response = client.post(
            "/api/v1/translate/review", json={"review": review, "target_language": "kn"}
        )

        translated = response.json()["translated"]
        assert translated["summary"] == "[kn] Unbounded query."
        assert translated["severity"] == "warning"
        assert translated["code_snippet"] == review["code_snippet"]

    def test_detect_language(self, client):
        response = client.post("/api/v1/detect-language", json={"text": "नमस्ते"})

        assert response.json()["detected_language"] == "hi"


class TestEmbeddingEndpoints:
    def test_batch_embeddings_report_failures(self, client, model_client):
        model_client.embedding_failures = {"bad text"}

        response = client.post(
            "/api/v1/embeddings/batch",
            json={"documents": {"a": "good text", "b": "bad text"}, "concurrency": 2},
        )

        data = response.json()
        assert list(data["results"]) == ["a"]
        assert data["results"]["a"]["embedding"] == [0.1, 0.2, 0.3]
        assert data["failed"] == ["b"]

    def test_index_file_feeds_chat_context(self, client, store, model_client):
        client.put(
            "/api/v1/repos/repo-1/files",
            json={"file_path": "src/db.ts", "content": "const q = 1;"},
        )

        client.post("/api/v1/chat", json={**CHAT_BODY, "filePath": "src/db.ts"})

        assert store.files[("repo-1", "src/db.ts")]["content"] == "const q = 1;"
        assert "const q = 1;" in model_client.calls[0]["messages"][0]["content"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
