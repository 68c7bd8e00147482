"""Storage adapters for the chat pipeline collaborators."""

from .conversation_store import SqlConversationStore

__all__ = ["SqlConversationStore"]
