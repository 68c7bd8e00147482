import json
from datetime import timedelta

import pytest

from sentinel.core.chat.orchestrator import ChatOrchestrator, validate_chat_request
from sentinel.core.errors import EmptyResponseError, InputValidationError, InvocationError

from .conftest import RecordingSink, stream_event

REVIEW_ANSWER = (
    "**Issue: CRITICAL** Possible SQL injection on line 12.\n\n"
    "```ts\nconst rows = await db.query(sql, [id]);\n```"
)


def body(**overrides):
    payload = {
        "repoId": "repo-1",
        "sessionId": "session-1",
        "message": "  Is this query safe?  ",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


@pytest.fixture
def make_orchestrator(gateway, translator, store, test_settings):
    def factory(transport=None):
        return ChatOrchestrator(
            gateway=gateway,
            translator=translator,
            context_store=store,
            persistence_store=store,
            transport=transport,
            settings=test_settings,
        )

    return factory


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()


class TestValidation:
    @pytest.mark.parametrize("field", ["repoId", "sessionId", "message"])
    def test_missing_required_field(self, field):
        payload = body()
        del payload[field]

        with pytest.raises(InputValidationError) as exc_info:
            validate_chat_request(payload)

        assert exc_info.value.field == field

    def test_whitespace_message_is_rejected(self):
        with pytest.raises(InputValidationError):
            validate_chat_request(body(message="   \n "))

    def test_non_string_field_is_rejected(self):
        with pytest.raises(InputValidationError):
            validate_chat_request(body(repoId=42))

    def test_message_over_limit_is_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            validate_chat_request(body(message="a" * 10_001))
        assert exc_info.value.field == "message"

    def test_message_at_limit_is_accepted(self):
        request = validate_chat_request(body(message="a" * 10_000))
        assert len(request.message) == 10_000

    def test_non_object_body_is_rejected(self):
        with pytest.raises(InputValidationError):
            validate_chat_request(["not", "an", "object"])

    def test_message_is_trimmed_and_unknown_language_defaults(self):
        request = validate_chat_request(body(language="fr"))

        assert request.message == "Is this query safe?"
        assert request.language == "en"
        assert request.file_path is None
        assert request.connection_id is None

    def test_supported_language_and_optional_fields(self):
        request = validate_chat_request(
            body(language="ta", filePath="src/db.ts", connectionId="conn-1")
        )

        assert request.language == "ta"
        assert request.file_path == "src/db.ts"
        assert request.connection_id == "conn-1"


class TestSyncPipeline:
    async def test_history_is_chronological_and_ends_with_new_message(
        self, orchestrator, store, model_client
    ):
        store.turns = [
            {"user_message": "second question", "model_response": "second answer"},
            {"user_message": "first question", "model_response": "first answer"},
        ]

        await orchestrator.handle(body())

        messages = model_client.calls[0]["messages"]
        assert [(m["role"], m["content"]) for m in messages[1:]] == [
            ("user", "first question"),
            ("assistant", "first answer"),
            ("user", "second question"),
            ("assistant", "second answer"),
            ("user", "Is this query safe?"),
        ]
        assert store.query_calls == [("session-1", 10, True)]

    async def test_code_context_is_added_to_system_prompt(self, orchestrator, store, model_client):
        store.files[("repo-1", "src/db.ts")] = {"content": "const q = 1;", "language": "typescript"}

        await orchestrator.handle(body(filePath="src/db.ts"))

        system = model_client.calls[0]["messages"][0]
        assert system["role"] == "system"
        assert "File: src/db.ts (typescript)" in system["content"]
        assert "const q = 1;" in system["content"]

    async def test_context_failures_degrade_to_empty_context(self, orchestrator, store, model_client):
        store.fail_query = True
        store.fail_get = True

        response = await orchestrator.handle(body(filePath="src/db.ts"))

        messages = model_client.calls[0]["messages"]
        assert len(messages) == 2
        assert "## Current File Context" not in messages[0]["content"]
        assert response.content == "Looks good to me."

    async def test_response_fields_and_persisted_turn(self, orchestrator, store, model_client):
        model_client.chat_text = REVIEW_ANSWER

        response = await orchestrator.handle(body(filePath="src/db.ts"))
        await orchestrator.wait_for_pending()

        assert response.role == "sentinel"
        assert response.content == REVIEW_ANSWER
        assert response.translated_content is None
        assert response.language == "en"
        assert response.issues[0].severity == "critical"
        assert response.issues[0].line == 12
        assert response.code_snippets[0].file_path == "src/db.ts"

        record = store.records[("session-1", response.message_id)]
        assert record["user_message"] == "Is this query safe?"
        assert record["model_response"] == REVIEW_ANSWER
        assert record["repo_id"] == "repo-1"
        expected_ttl = int((response.timestamp + timedelta(days=30)).timestamp())
        assert record["ttl"] == expected_ttl

    async def test_no_findings_become_absent_fields(self, orchestrator):
        response = await orchestrator.handle(body())

        assert response.issues is None
        assert response.code_snippets is None

    async def test_empty_model_response_raises_and_is_not_persisted(
        self, orchestrator, store, model_client
    ):
        model_client.chat_text = ""

        with pytest.raises(EmptyResponseError):
            await orchestrator.handle(body())
        await orchestrator.wait_for_pending()

        assert store.records == {}

    async def test_invocation_error_propagates(self, orchestrator, model_client):
        model_client.error = RuntimeError("throttled")

        with pytest.raises(InvocationError):
            await orchestrator.handle(body())

    async def test_persistence_failure_does_not_affect_response(self, orchestrator, store):
        store.fail_upsert = True

        response = await orchestrator.handle(body())
        await orchestrator.wait_for_pending()

        assert response.content == "Looks good to me."
        assert store.records == {}


class TestTranslation:
    async def test_non_default_language_gets_translated_content(
        self, orchestrator, model_client, translate_client
    ):
        model_client.chat_text = REVIEW_ANSWER

        response = await orchestrator.handle(body(language="hi"))

        assert response.content == REVIEW_ANSWER
        assert response.translated_content.startswith("[hi] **Issue: CRITICAL**")
        assert "```ts\nconst rows = await db.query(sql, [id]);\n```" in response.translated_content
        # Findings come from the untranslated text
        assert response.issues[0].description == "Possible SQL injection on line 12."
        assert all("```" not in call["text"] for call in translate_client.calls)

    async def test_failed_prose_segments_fall_back_to_original(
        self, orchestrator, translate_client
    ):
        translate_client.fail_languages = {"bn"}

        response = await orchestrator.handle(body(language="bn"))

        assert response.content == "Looks good to me."
        assert response.translated_content == "Looks good to me."


class TestStreaming:
    async def test_tokens_are_relayed_in_order_then_stream_end(
        self, make_orchestrator, model_client
    ):
        sink = RecordingSink()
        model_client.stream_events = [
            stream_event("Use "),
            stream_event("a "),
            stream_event("prepared statement."),
            stream_event(finish_reason="stop"),
        ]

        response = await make_orchestrator(sink).handle(body(connectionId="conn-1"))

        frames = [json.loads(frame) for frame in sink.frames]
        assert frames == [
            {"type": "token", "content": "Use "},
            {"type": "token", "content": "a "},
            {"type": "token", "content": "prepared statement."},
            {"type": "stream_end"},
        ]
        assert response.content == "Use a prepared statement."
        assert model_client.calls[0]["stream"] is True
        assert model_client.stream_closed is True

    async def test_disconnect_stops_relay_but_answer_is_complete(
        self, make_orchestrator, model_client, store
    ):
        sink = RecordingSink(fail_after=1)

        orchestrator = make_orchestrator(sink)
        response = await orchestrator.handle(body(connectionId="conn-1"))
        await orchestrator.wait_for_pending()

        assert len(sink.frames) == 1
        assert sink.attempts == 2
        assert response.content == "Looks good."
        assert model_client.events_consumed == 3
        assert len(store.records) == 1

    async def test_without_transport_connection_id_uses_sync_call(self, orchestrator, model_client):
        response = await orchestrator.handle(body(connectionId="conn-1"))

        assert "stream" not in model_client.calls[0]
        assert response.content == "Looks good to me."

    async def test_stream_with_no_text_is_empty_response(self, make_orchestrator, model_client):
        model_client.stream_events = [stream_event(finish_reason="stop")]

        with pytest.raises(EmptyResponseError):
            await make_orchestrator(RecordingSink()).handle(body(connectionId="conn-1"))
