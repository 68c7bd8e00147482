"""Chat pipeline package.

This package provides:
- ChatOrchestrator: end-to-end handling of one chat message
- ResponseParser: best-effort findings/snippet extraction
- Collaborator interfaces for the context store, persistence store and transport
"""

from .collaborators import ContextStore, PersistenceStore, TransportSink
from .findings import ExtractedFindings, ResponseParser, extract_findings
from .models import (
    ChatMessageRequest,
    CodeContext,
    CodeSnippet,
    ConversationTurn,
    SentinelResponse,
    StructuredFinding,
)
from .orchestrator import ChatOrchestrator, validate_chat_request
from .prompts import SENTINEL_PERSONA, build_system_prompt

__all__ = [
    "ContextStore",
    "PersistenceStore",
    "TransportSink",
    "ExtractedFindings",
    "ResponseParser",
    "extract_findings",
    "ChatMessageRequest",
    "CodeContext",
    "CodeSnippet",
    "ConversationTurn",
    "SentinelResponse",
    "StructuredFinding",
    "ChatOrchestrator",
    "validate_chat_request",
    "SENTINEL_PERSONA",
    "build_system_prompt",
]
