"""Shared fixtures and in-memory fakes for the model, translate and store clients."""

import asyncio
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Use litellm's bundled model cost map; the remote fetch hangs offline.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from sentinel.config import Settings
from sentinel.core.chat.collaborators import ContextStore, PersistenceStore, TransportSink
from sentinel.core.llm.gateway import BedrockModelGateway
from sentinel.core.translation.translator import Translator

CHAT_MODEL = "anthropic.claude-3-5-sonnet-20241022-v2:0"
COMPLETION_MODEL = "meta.llama3-70b-instruct-v1:0"
EMBEDDING_MODEL = "amazon.titan-embed-text-v2:0"


def stream_event(content: Optional[str] = None, finish_reason: Optional[str] = None):
    """One upstream streaming event in the litellm chunk shape."""
    delta = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


class FakeModelClient:
    """Stands in for the litellm module: acompletion, atext_completion, aembedding."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.chat_text = "Looks good to me."
        self.completion_text = "Completion output."
        self.stream_events: List[Any] = [
            stream_event("Looks "),
            stream_event("good."),
            stream_event(finish_reason="stop"),
        ]
        self.stream_error_after: Optional[int] = None
        self.return_none_stream = False
        self.error: Optional[Exception] = None
        self.events_consumed = 0
        self.stream_closed = False
        self.embedding_failures = set()
        self.embedding_delay = 0.0
        self.embedding_delays: Dict[str, float] = {}
        self.embedding_events: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def acompletion(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            if self.return_none_stream:
                return None
            return self._stream()
        message = SimpleNamespace(content=self.chat_text)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason="stop")],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=45),
        )

    async def _stream(self):
        try:
            for index, event in enumerate(self.stream_events):
                if self.stream_error_after is not None and index >= self.stream_error_after:
                    raise ConnectionError("stream reset by peer")
                self.events_consumed += 1
                yield event
        finally:
            self.stream_closed = True

    async def atext_completion(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(text=self.completion_text, finish_reason="length")],
            usage=SimpleNamespace(prompt_tokens=30, completion_tokens=10),
        )

    async def aembedding(self, **kwargs):
        self.calls.append(kwargs)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        text = kwargs["input"][0]
        self.embedding_events.append(("start", text))
        try:
            await asyncio.sleep(self.embedding_delays.get(text, self.embedding_delay))
            if text in self.embedding_failures:
                raise RuntimeError(f"throttled: {text}")
            return SimpleNamespace(
                data=[{"embedding": [0.1, 0.2, 0.3], "index": 0}],
                usage=SimpleNamespace(prompt_tokens=len(text.split()), completion_tokens=0),
            )
        finally:
            self.in_flight -= 1
            self.embedding_events.append(("end", text))


class FakeTranslateClient:
    """Stands in for AwsTranslateClient. Translation prefixes the text with [lang]."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.fail_languages = set()
        self.fail_markers: List[str] = []
        self.detect_response: Dict[str, Any] = {
            "Languages": [{"LanguageCode": "hi", "Score": 0.97}]
        }
        self.detect_error: Optional[Exception] = None

    async def translate_text(self, text, source_language, target_language, settings=None):
        self.calls.append(
            {
                "text": text,
                "source": source_language,
                "target": target_language,
                "settings": settings,
            }
        )
        if target_language in self.fail_languages:
            raise RuntimeError(f"service unavailable for {target_language}")
        if any(marker in text for marker in self.fail_markers):
            raise RuntimeError("text rejected")
        return {
            "TranslatedText": f"[{target_language}] {text}",
            "SourceLanguageCode": source_language,
            "TargetLanguageCode": target_language,
        }

    async def detect_dominant_language(self, text):
        if self.detect_error is not None:
            raise self.detect_error
        return self.detect_response


class InMemoryStore(ContextStore, PersistenceStore):
    """Conversation turns and indexed files kept in dicts."""

    def __init__(self):
        self.turns: List[Dict[str, Any]] = []  # newest first
        self.files: Dict[tuple, Dict[str, Any]] = {}
        self.records: Dict[tuple, Dict[str, Any]] = {}
        self.query_calls: List[tuple] = []
        self.fail_query = False
        self.fail_get = False
        self.fail_upsert = False

    async def query(self, session_id, limit, newest_first=True):
        self.query_calls.append((session_id, limit, newest_first))
        if self.fail_query:
            raise RuntimeError("table unavailable")
        turns = self.turns[:limit]
        return turns if newest_first else list(reversed(turns))

    async def get(self, repo_id, file_path):
        if self.fail_get:
            raise RuntimeError("table unavailable")
        return self.files.get((repo_id, file_path))

    async def upsert(self, partition_key, sort_key, record):
        if self.fail_upsert:
            raise RuntimeError("write throttled")
        self.records[(partition_key, sort_key)] = record

    async def save_file_context(self, repo_id, file_path, content, language="typescript"):
        self.files[(repo_id, file_path)] = {"content": content, "language": language}


class RecordingSink(TransportSink):
    """Records frames; optionally fails every send after the first N."""

    def __init__(self, fail_after: Optional[int] = None):
        self.frames: List[bytes] = []
        self.fail_after = fail_after
        self.attempts = 0

    async def send(self, connection_id, frame):
        self.attempts += 1
        if self.fail_after is not None and len(self.frames) >= self.fail_after:
            raise ConnectionError(f"connection {connection_id} is gone")
        self.frames.append(frame)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, websocket_endpoint=None)


@pytest.fixture
def model_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def translate_client() -> FakeTranslateClient:
    return FakeTranslateClient()


@pytest.fixture
def gateway(model_client) -> BedrockModelGateway:
    return BedrockModelGateway(
        model_client,
        chat_model_id=CHAT_MODEL,
        completion_model_id=COMPLETION_MODEL,
        embedding_model_id=EMBEDDING_MODEL,
        region_name="ap-south-1",
    )


@pytest.fixture
def translator(translate_client) -> Translator:
    return Translator(translate_client)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
