"""Conversation history and indexed code context tables."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sentinel.models.database.base import Base


class ConversationTurnRecord(Base):
    """One chat exchange, keyed by (session_id, message_id)."""

    __tablename__ = "conversation_turns"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    message_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    repo_id: Mapped[str] = mapped_column(String(128), nullable=False)

    user_message: Mapped[str] = mapped_column(Text, nullable=False)
    model_response: Mapped[str] = mapped_column(Text, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ttl: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch seconds

    __table_args__ = (
        Index("ix_conversation_turns_session_timestamp", "session_id", "timestamp"),
    )


class CodebaseFile(Base):
    """Indexed file content used as grounding context."""

    __tablename__ = "codebase_context"

    repo_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    file_path: Mapped[str] = mapped_column(String(1024), primary_key=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(50), default="typescript")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
