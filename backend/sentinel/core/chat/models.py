"""Chat pipeline data models.

API-facing models serialize with camelCase aliases (``repoId``,
``sessionId``...) and accept either spelling on input.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["critical", "warning", "info"]
Category = Literal["security", "logic", "scalability", "style"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessageRequest(CamelModel):
    """A validated inbound chat message."""

    repo_id: str
    session_id: str
    message: str
    language: str = "en"
    file_path: Optional[str] = None
    connection_id: Optional[str] = None


class CodeContext(BaseModel):
    """Indexed file content used to ground the prompt."""

    file_path: str
    content: str
    language: str = "typescript"


class StructuredFinding(CamelModel):
    """Severity/category-tagged issue extracted from model text."""

    severity: Severity
    category: Category
    description: str
    line: Optional[int] = None


class CodeSnippet(CamelModel):
    """Fenced code block extracted from model text."""

    file_path: str
    original_code: str = ""
    suggested_code: str
    explanation: str


class ConversationTurn(BaseModel):
    """One persisted chat exchange. Never mutated once written."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    message_id: str
    repo_id: str
    user_message: str
    model_response: str
    timestamp: datetime
    ttl: int = Field(..., description="Expiry as epoch seconds")

    def to_record(self) -> Dict[str, Any]:
        record = self.model_dump()
        record["timestamp"] = self.timestamp.isoformat()
        return record


class SentinelResponse(CamelModel):
    """Structured response returned for one chat message."""

    message_id: str
    session_id: str
    repo_id: str
    role: Literal["sentinel"] = "sentinel"
    content: str
    translated_content: Optional[str] = None
    language: str
    code_snippets: Optional[List[CodeSnippet]] = None
    issues: Optional[List[StructuredFinding]] = None
    timestamp: datetime
