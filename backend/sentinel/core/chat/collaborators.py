"""Interfaces of the external collaborators used by the chat pipeline."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ContextStore(ABC):
    """Read-only access to conversation history and indexed file content."""

    @abstractmethod
    async def query(
        self,
        session_id: str,
        limit: int,
        newest_first: bool = True,
    ) -> List[Dict[str, Any]]:
        """Return up to ``limit`` turns as dicts with user_message/model_response."""

    @abstractmethod
    async def get(self, repo_id: str, file_path: str) -> Optional[Dict[str, Any]]:
        """Return {content, language} for a file, or None if it is not indexed."""


class PersistenceStore(ABC):
    """Write access for conversation turns."""

    @abstractmethod
    async def upsert(self, partition_key: str, sort_key: str, record: Dict[str, Any]) -> None:
        pass


class TransportSink(ABC):
    """Pushes frames to a live client connection."""

    @abstractmethod
    async def send(self, connection_id: str, frame: bytes) -> None:
        """Send one frame.

        Raises:
            TransportError: If the connection is gone or the send fails
        """
