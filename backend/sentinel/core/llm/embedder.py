"""Windowed batch embedding for bulk indexing."""

import asyncio
import logging
from typing import Dict, List, Tuple

from .gateway import BedrockModelGateway
from .models import EmbeddingRequest, EmbeddingResponse

logger = logging.getLogger(__name__)


class BatchEmbedder:
    """Embeds a named collection of documents under a concurrency ceiling.

    Documents are processed in fixed-size windows. Calls inside a window run
    concurrently; the next window starts only after every call in the current
    one has settled. A failed document is logged and left out of the result.
    """

    def __init__(self, gateway: BedrockModelGateway):
        self.gateway = gateway

    async def _embed_one(self, doc_id: str, text: str) -> Tuple[str, EmbeddingResponse]:
        response = await self.gateway.invoke_embedding(EmbeddingRequest(text=text))
        return doc_id, response

    async def embed_all(
        self,
        documents: Dict[str, str],
        concurrency: int = 5,
    ) -> Dict[str, EmbeddingResponse]:
        """Embed every document, returning {id: response} for the successes.

        Args:
            documents: Map of document id to text
            concurrency: Window size, i.e. max in-flight embedding calls

        Returns:
            Map of document id to embedding for each document that succeeded
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        entries: List[Tuple[str, str]] = list(documents.items())
        results: Dict[str, EmbeddingResponse] = {}

        logger.info(
            f"embed_all: starting batch embedding total={len(entries)}, "
            f"concurrency={concurrency}"
        )

        for start in range(0, len(entries), concurrency):
            window = entries[start:start + concurrency]
            settled = await asyncio.gather(
                *(self._embed_one(doc_id, text) for doc_id, text in window),
                return_exceptions=True,
            )

            for (doc_id, _), outcome in zip(window, settled):
                if isinstance(outcome, BaseException):
                    logger.warning(f"embed_all: document {doc_id} failed to embed: {outcome}")
                    continue
                results[doc_id] = outcome[1]

            logger.info(
                f"embed_all: processed window {start // concurrency + 1}, "
                f"processed={min(start + concurrency, len(entries))}/{len(entries)}"
            )

        return results
