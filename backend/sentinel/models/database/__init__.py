"""Database models package."""

from sentinel.models.database.base import Base, async_session_maker, init_db
from sentinel.models.database.conversation import CodebaseFile, ConversationTurnRecord

__all__ = [
    "Base",
    "async_session_maker",
    "init_db",
    "CodebaseFile",
    "ConversationTurnRecord",
]
