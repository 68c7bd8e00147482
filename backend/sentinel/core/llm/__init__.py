"""Model invocation package.

This package provides:
- BedrockModelGateway: one invocation contract per model kind
- BatchEmbedder: concurrency-bounded bulk embedding
- Request/response models shared by all callers
"""

from .embedder import BatchEmbedder
from .gateway import BedrockModelGateway, format_llama_prompt
from .models import (
    ChatMessage,
    ChatRequest,
    CompletionRequest,
    CostEstimate,
    EmbeddingRequest,
    EmbeddingResponse,
    ModelKind,
    ModelRequest,
    ModelResponse,
    StreamChunk,
    TextResponse,
)

__all__ = [
    "BatchEmbedder",
    "BedrockModelGateway",
    "format_llama_prompt",
    "ChatMessage",
    "ChatRequest",
    "CompletionRequest",
    "CostEstimate",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "ModelKind",
    "ModelRequest",
    "ModelResponse",
    "StreamChunk",
    "TextResponse",
]
