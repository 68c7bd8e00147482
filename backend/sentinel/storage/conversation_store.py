"""SQLAlchemy-backed context and persistence store."""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sentinel.core.chat.collaborators import ContextStore, PersistenceStore
from sentinel.models.database.conversation import CodebaseFile, ConversationTurnRecord

logger = logging.getLogger(__name__)


class SqlConversationStore(ContextStore, PersistenceStore):
    """Conversation turns and indexed files in a relational database.

    Turns past their ``ttl`` are treated as expired and not returned.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def query(
        self,
        session_id: str,
        limit: int,
        newest_first: bool = True,
    ) -> List[Dict[str, Any]]:
        order = ConversationTurnRecord.timestamp.desc() if newest_first else ConversationTurnRecord.timestamp.asc()
        stmt = (
            select(ConversationTurnRecord)
            .where(
                ConversationTurnRecord.session_id == session_id,
                ConversationTurnRecord.ttl > int(time.time()),
            )
            .order_by(order, ConversationTurnRecord.message_id)
            .limit(limit)
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [
            {
                "message_id": row.message_id,
                "user_message": row.user_message,
                "model_response": row.model_response,
                "timestamp": row.timestamp,
            }
            for row in rows
        ]

    async def get(self, repo_id: str, file_path: str) -> Optional[Dict[str, Any]]:
        async with self._session_maker() as session:
            row = await session.get(CodebaseFile, (repo_id, file_path))
        if row is None:
            return None
        return {"content": row.content, "language": row.language}

    async def upsert(self, partition_key: str, sort_key: str, record: Dict[str, Any]) -> None:
        timestamp = record["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        async with self._session_maker() as session:
            await session.merge(
                ConversationTurnRecord(
                    session_id=partition_key,
                    message_id=sort_key,
                    repo_id=record["repo_id"],
                    user_message=record["user_message"],
                    model_response=record["model_response"],
                    timestamp=timestamp,
                    ttl=record["ttl"],
                )
            )
            await session.commit()
        logger.debug(f"Saved conversation turn {partition_key}/{sort_key}")

    async def save_file_context(
        self,
        repo_id: str,
        file_path: str,
        content: str,
        language: str = "typescript",
    ) -> None:
        """Index (or re-index) the content of one file."""
        async with self._session_maker() as session:
            await session.merge(
                CodebaseFile(
                    repo_id=repo_id,
                    file_path=file_path,
                    content=content,
                    language=language,
                )
            )
            await session.commit()
