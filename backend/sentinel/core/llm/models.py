"""Model request and response contracts.

One request shape per model kind (chat, completion, embedding). Callers
build these; the gateway turns them into vendor-specific envelopes.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ModelKind(str, Enum):
    """Invocation shapes supported by the gateway."""

    CHAT = "chat"
    COMPLETION = "completion"
    EMBEDDING = "embedding"


class ChatMessage(BaseModel):
    """Single turn in a chat conversation."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content")


class ChatRequest(BaseModel):
    """Structured message-list request for the chat model."""

    kind: Literal["chat"] = "chat"
    system_prompt: str = Field(..., description="System prompt")
    messages: List[ChatMessage] = Field(
        ..., description="Conversation in chronological order"
    )
    max_tokens: int = Field(default=4096, gt=0)
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    stop_sequences: List[str] = Field(default_factory=list)


class CompletionRequest(BaseModel):
    """Raw-prompt request for the completion model."""

    kind: Literal["completion"] = "completion"
    system_prompt: str
    user_prompt: str
    max_tokens: int = Field(default=4096, gt=0)
    temperature: float = Field(default=0.1, ge=0.0, le=1.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)


class EmbeddingRequest(BaseModel):
    """Text-to-vector request for the embedding model."""

    kind: Literal["embedding"] = "embedding"
    text: str
    dimensions: Literal[256, 512, 1024] = 1024
    normalize: bool = True


ModelRequest = Annotated[
    Union[ChatRequest, CompletionRequest, EmbeddingRequest],
    Field(discriminator="kind"),
]


class TextResponse(BaseModel):
    """Decoded response from a text-producing model."""

    text: str = Field(..., description="Generated text")
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    stop_reason: str = Field(default="unknown")
    model_id: str = Field(..., description="Model identifier used")
    latency_ms: int = Field(default=0, ge=0, description="Wall-clock latency")


class EmbeddingResponse(BaseModel):
    """Decoded response from the embedding model."""

    embedding: List[float] = Field(default_factory=list)
    input_tokens: int = Field(default=0, ge=0)
    model_id: str
    latency_ms: int = Field(default=0, ge=0)


ModelResponse = Union[TextResponse, EmbeddingResponse]


class StreamChunk(BaseModel):
    """One piece of a streamed chat response."""

    text: str = ""
    is_complete: bool = False
    stop_reason: Optional[str] = None


class CostEstimate(BaseModel):
    """Invocation cost in USD, each component rounded to 6 decimals."""

    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float
