"""Chat orchestrator for the Sentinel workspace.

Turns one inbound chat message into one structured response:

Validate -> FetchContext (parallel) -> BuildPrompt -> Dispatch (stream | sync)
-> RequireNonEmpty -> TranslateIfNeeded -> ExtractStructuredFindings
-> PersistAsync -> Respond

Validation, invocation and empty-response failures propagate to the caller.
Context lookup, translation, transport and persistence failures are logged
and absorbed so the caller still gets the best available answer.
"""

import asyncio
import json
import logging
import uuid
from contextlib import aclosing
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from sentinel.config import Settings
from sentinel.config import settings as default_settings
from sentinel.core.errors import EmptyResponseError, InputValidationError
from sentinel.core.llm.gateway import BedrockModelGateway
from sentinel.core.llm.models import ChatMessage, ChatRequest
from sentinel.core.translation.languages import is_supported_language
from sentinel.core.translation.translator import Translator

from .collaborators import ContextStore, PersistenceStore, TransportSink
from .findings import ResponseParser
from .models import ChatMessageRequest, CodeContext, ConversationTurn, SentinelResponse
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)


def _require_string(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(key, f"{key} is required and must be a non-empty string.")
    return value


def _optional_string(body: Dict[str, Any], key: str) -> Optional[str]:
    value = body.get(key)
    return value if isinstance(value, str) and value else None


def validate_chat_request(
    body: Any,
    max_message_chars: int = 10_000,
    default_language: str = "en",
) -> ChatMessageRequest:
    """Validate a raw request body.

    Missing or malformed required fields raise InputValidationError. An
    unknown or absent language silently becomes the default language, and
    malformed optional fields are dropped.
    """
    if not isinstance(body, dict):
        raise InputValidationError("body", "Request body is missing or not an object.")

    repo_id = _require_string(body, "repoId")
    session_id = _require_string(body, "sessionId")
    message = _require_string(body, "message")
    if len(message) > max_message_chars:
        raise InputValidationError(
            "message", f"message exceeds {max_message_chars:,} character limit."
        )

    language = body.get("language")
    if not is_supported_language(language):
        language = default_language

    return ChatMessageRequest(
        repo_id=repo_id,
        session_id=session_id,
        message=message.strip(),
        language=language,
        file_path=_optional_string(body, "filePath"),
        connection_id=_optional_string(body, "connectionId"),
    )


class ChatOrchestrator:
    """End-to-end handler for one chat message.

    Persistence runs as a detached task. ``wait_for_pending`` lets shutdown
    hooks and tests wait for those writes to settle.
    """

    def __init__(
        self,
        gateway: BedrockModelGateway,
        translator: Translator,
        context_store: ContextStore,
        persistence_store: PersistenceStore,
        transport: Optional[TransportSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.gateway = gateway
        self.translator = translator
        self.context_store = context_store
        self.persistence_store = persistence_store
        self.transport = transport
        self.settings = settings or default_settings
        self.parser = ResponseParser()
        self._pending: Set[asyncio.Task] = set()

    async def handle(self, body: Any) -> SentinelResponse:
        """Process one raw chat request body.

        Raises:
            InputValidationError: If a required field is invalid
            InvocationError: If the model call fails
            EmptyResponseError: If the model returns no text
        """
        request = validate_chat_request(
            body,
            max_message_chars=self.settings.max_message_chars,
            default_language=self.settings.default_language,
        )

        history, code_context = await asyncio.gather(
            self._fetch_history(request.session_id),
            self._fetch_code_context(request.repo_id, request.file_path),
        )
        logger.info(
            f"Fetched {len(history)} history messages. Code context: "
            f"{code_context.file_path if code_context else 'none'}"
        )

        chat_request = ChatRequest(
            system_prompt=build_system_prompt(
                code_context, self.settings.max_code_context_chars
            ),
            messages=[*history, ChatMessage(role="user", content=request.message)],
            max_tokens=self.settings.chat_max_tokens,
            temperature=self.settings.chat_temperature,
            top_p=0.9,
        )

        if request.connection_id and self.transport is not None:
            raw_response = await self._stream_to_connection(chat_request, request.connection_id)
        else:
            response = await self.gateway.invoke_chat(chat_request)
            raw_response = response.text

        if not raw_response or not raw_response.strip():
            raise EmptyResponseError()

        translated_content = await self._translate_if_needed(raw_response, request.language)
        findings = self.parser.parse(raw_response, request.file_path)

        timestamp = datetime.now(timezone.utc)
        turn = ConversationTurn(
            session_id=request.session_id,
            message_id=str(uuid.uuid4()),
            repo_id=request.repo_id,
            user_message=request.message,
            model_response=raw_response,
            timestamp=timestamp,
            ttl=int((timestamp + timedelta(days=self.settings.conversation_ttl_days)).timestamp()),
        )
        self._persist_in_background(turn)

        logger.info(
            f"Sentinel responded successfully. MessageId: {turn.message_id}, "
            f"Issues found: {len(findings.issues)}"
        )

        return SentinelResponse(
            message_id=turn.message_id,
            session_id=request.session_id,
            repo_id=request.repo_id,
            content=raw_response,
            translated_content=translated_content,
            language=request.language,
            code_snippets=findings.code_snippets or None,
            issues=findings.issues or None,
            timestamp=timestamp,
        )

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    async def _fetch_history(self, session_id: str) -> List[ChatMessage]:
        """Last N turns, newest-first from the store, returned chronologically."""
        try:
            turns = await self.context_store.query(
                session_id, self.settings.max_history_turns, newest_first=True
            )
        except Exception as e:
            logger.warning(f"Could not fetch conversation history for {session_id}: {e}")
            return []

        history: List[ChatMessage] = []
        for turn in reversed(turns):
            if turn.get("user_message"):
                history.append(ChatMessage(role="user", content=turn["user_message"]))
            if turn.get("model_response"):
                history.append(ChatMessage(role="assistant", content=turn["model_response"]))
        return history

    async def _fetch_code_context(
        self, repo_id: str, file_path: Optional[str]
    ) -> Optional[CodeContext]:
        if not file_path:
            return None
        try:
            item = await self.context_store.get(repo_id, file_path)
        except Exception as e:
            logger.warning(f"Could not fetch code context for {file_path}: {e}")
            return None
        if not item or not item.get("content"):
            return None
        return CodeContext(
            file_path=file_path,
            content=item["content"],
            language=item.get("language") or "typescript",
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _send_frame(self, connection_id: str, frame: Dict[str, Any]) -> bool:
        try:
            await self.transport.send(connection_id, json.dumps(frame).encode("utf-8"))
        except Exception as e:
            logger.warning(f"Stopped relaying to connection {connection_id}: {e}")
            return False
        return True

    async def _stream_to_connection(self, chat_request: ChatRequest, connection_id: str) -> str:
        """Relay tokens to the connection in arrival order and return the full text.

        If the client disconnects, relaying stops but the stream is still read
        to the end so the full answer can be returned and persisted.
        """
        parts: List[str] = []
        connected = True

        async with aclosing(self.gateway.invoke_chat_stream(chat_request)) as stream:
            async for chunk in stream:
                if chunk.is_complete:
                    if connected:
                        await self._send_frame(connection_id, {"type": "stream_end"})
                    break
                parts.append(chunk.text)
                if connected:
                    connected = await self._send_frame(
                        connection_id, {"type": "token", "content": chunk.text}
                    )

        return "".join(parts)

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    async def _translate_if_needed(self, raw_response: str, language: str) -> Optional[str]:
        if language == self.settings.default_language:
            return None
        logger.info(f"Translating Sentinel response to {language}...")
        try:
            return await self.translator.translate_preserving_code(raw_response, language)
        except Exception as e:
            logger.warning(f"Translation to {language} failed, returning original only: {e}")
            return None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_in_background(self, turn: ConversationTurn) -> None:
        task = asyncio.create_task(self._persist_turn(turn))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist_turn(self, turn: ConversationTurn) -> None:
        try:
            await self.persistence_store.upsert(turn.session_id, turn.message_id, turn.to_record())
        except Exception as e:
            logger.error(f"Failed to save conversation turn {turn.message_id}: {e}")

    async def wait_for_pending(self) -> None:
        """Wait for all scheduled persistence writes to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
