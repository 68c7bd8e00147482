"""Embedding and indexing API routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from sentinel.api.dependencies import ServicesDep
from sentinel.core.llm.models import EmbeddingResponse

router = APIRouter()


class BatchEmbedRequest(BaseModel):
    documents: Dict[str, str] = Field(..., description="Document id -> text")
    concurrency: Optional[int] = Field(default=None, ge=1, le=50)


class BatchEmbedResponse(BaseModel):
    results: Dict[str, EmbeddingResponse]
    failed: List[str]


class IndexFileRequest(BaseModel):
    file_path: str = Field(..., min_length=1)
    content: str
    language: str = "typescript"


@router.post("/embeddings/batch", response_model=BatchEmbedResponse)
async def embed_batch(request: BatchEmbedRequest, services: ServicesDep):
    """Embed many documents with bounded concurrency."""
    concurrency = request.concurrency or services.settings.embedding_concurrency
    results = await services.embedder.embed_all(request.documents, concurrency=concurrency)
    failed = [doc_id for doc_id in request.documents if doc_id not in results]
    return BatchEmbedResponse(results=results, failed=failed)


@router.put("/repos/{repo_id}/files")
async def index_file(repo_id: str, request: IndexFileRequest, services: ServicesDep):
    """Store a file's content so chat requests can use it as grounding context."""
    await services.store.save_file_context(
        repo_id, request.file_path, request.content, request.language
    )
    return {"repo_id": repo_id, "file_path": request.file_path, "status": "indexed"}
