"""Bedrock model gateway.

This module provides the single entry point for every model call. Three
model kinds with incompatible prompt formats sit behind it:

- chat: structured message list (Claude on Bedrock)
- completion: one templated prompt string with role-delimiter tokens (Llama 3)
- embedding: text-to-vector (Titan Embeddings v2)

Each kind gets its own envelope builder and decoder; callers only ever see
ChatRequest/CompletionRequest/EmbeddingRequest in and TextResponse/
EmbeddingResponse/StreamChunk out. There is no retry here: every failure is
raised once as InvocationError and retry policy belongs to the caller.
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import litellm

from sentinel.config import Settings
from sentinel.core.errors import InvocationError

from .models import (
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
from .pricing import build_rate_table, compute_cost

logger = logging.getLogger(__name__)


def format_llama_prompt(system_prompt: str, user_prompt: str) -> str:
    """Render the Llama 3 chat template as a single prompt string."""
    return "\n".join(
        [
            "<|begin_of_text|>",
            "<|start_header_id|>system<|end_header_id|>",
            "",
            system_prompt,
            "<|eot_id|>",
            "<|start_header_id|>user<|end_header_id|>",
            "",
            user_prompt,
            "<|eot_id|>",
            "<|start_header_id|>assistant<|end_header_id|>",
        ]
    )


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def _usage_tokens(response: Any) -> Tuple[int, int]:
    usage = getattr(response, "usage", None)
    if not usage:
        return 0, 0
    return (
        getattr(usage, "prompt_tokens", 0) or 0,
        getattr(usage, "completion_tokens", 0) or 0,
    )


def _decode_stream_event(event: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (content delta, stop reason) for one upstream stream event."""
    choices = getattr(event, "choices", None) or []
    if not choices:
        return None, None
    choice = choices[0]
    delta = getattr(choice, "delta", None)
    text = getattr(delta, "content", None) if delta is not None else None
    return text or None, getattr(choice, "finish_reason", None)


async def _close_stream(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


class BedrockModelGateway:
    """Uniform invocation contract over the chat, completion and embedding models.

    The model client is injected so that one client handle is shared across
    requests. By default it is the litellm module itself, which exposes
    ``acompletion``, ``atext_completion`` and ``aembedding``.

    Usage:
        gateway = BedrockModelGateway.from_settings(settings)
        response = await gateway.invoke_chat(
            ChatRequest(system_prompt="You are a reviewer.", messages=[...])
        )
    """

    def __init__(
        self,
        client: Any = None,
        *,
        chat_model_id: str,
        completion_model_id: str,
        embedding_model_id: str,
        region_name: str,
        timeout: Optional[int] = None,
        credentials: Optional[Dict[str, str]] = None,
    ):
        self._client = client if client is not None else litellm
        self.model_ids: Dict[ModelKind, str] = {
            ModelKind.CHAT: chat_model_id,
            ModelKind.COMPLETION: completion_model_id,
            ModelKind.EMBEDDING: embedding_model_id,
        }
        self._region_name = region_name
        self._timeout = timeout
        self._credentials = credentials or {}
        self._rates = build_rate_table(self.model_ids)

        logger.info(
            f"[Model Gateway] Initialized: region={region_name}, "
            f"chat={chat_model_id}, completion={completion_model_id}, "
            f"embedding={embedding_model_id}"
        )

    @classmethod
    def from_settings(cls, settings: Settings, client: Any = None) -> "BedrockModelGateway":
        credentials = {}
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            credentials = {
                "aws_access_key_id": settings.aws_access_key_id,
                "aws_secret_access_key": settings.aws_secret_access_key,
            }
        return cls(
            client,
            chat_model_id=settings.bedrock_chat_model_id,
            completion_model_id=settings.bedrock_completion_model_id,
            embedding_model_id=settings.bedrock_embedding_model_id,
            region_name=settings.resolved_bedrock_region,
            timeout=settings.bedrock_request_timeout,
            credentials=credentials,
        )

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def _connection_kwargs(self, kind: ModelKind) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": f"bedrock/{self.model_ids[kind]}",
            "aws_region_name": self._region_name,
        }
        if self._timeout:
            kwargs["timeout"] = self._timeout
        kwargs.update(self._credentials)
        return kwargs

    def _chat_envelope(self, request: ChatRequest, stream: bool = False) -> Dict[str, Any]:
        messages = [{"role": "system", "content": request.system_prompt}]
        messages.extend({"role": m.role, "content": m.content} for m in request.messages)

        kwargs = self._connection_kwargs(ModelKind.CHAT)
        kwargs.update(
            messages=messages,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            top_p=request.top_p,
        )
        if request.stop_sequences:
            kwargs["stop"] = list(request.stop_sequences)
        if stream:
            kwargs["stream"] = True
        return kwargs

    def _completion_envelope(self, request: CompletionRequest) -> Dict[str, Any]:
        kwargs = self._connection_kwargs(ModelKind.COMPLETION)
        kwargs.update(
            prompt=format_llama_prompt(request.system_prompt, request.user_prompt),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            top_p=request.top_p,
        )
        return kwargs

    def _embedding_envelope(self, request: EmbeddingRequest) -> Dict[str, Any]:
        kwargs = self._connection_kwargs(ModelKind.EMBEDDING)
        kwargs.update(
            input=[request.text],
            dimensions=request.dimensions,
            normalize=request.normalize,
        )
        return kwargs

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def invoke(self, request: ModelRequest) -> ModelResponse:
        """Dispatch a tagged model request to its per-kind entry point."""
        if isinstance(request, ChatRequest):
            return await self.invoke_chat(request)
        if isinstance(request, CompletionRequest):
            return await self.invoke_completion(request)
        if isinstance(request, EmbeddingRequest):
            return await self.invoke_embedding(request)
        raise TypeError(f"Unsupported model request: {type(request).__name__}")

    async def invoke_chat(self, request: ChatRequest) -> TextResponse:
        """Invoke the chat model and return the fully decoded response.

        Raises:
            InvocationError: On any transport, serialization or decode failure
        """
        model_id = self.model_ids[ModelKind.CHAT]
        kwargs = self._chat_envelope(request)
        start_time = time.monotonic()

        logger.info(
            f"invoke_chat: sending request model={model_id}, "
            f"messages={len(request.messages)}, max_tokens={request.max_tokens}, "
            f"temperature={request.temperature}"
        )

        try:
            response = await self._client.acompletion(**kwargs)
            choice = response.choices[0]
            text = choice.message.content or ""
            input_tokens, output_tokens = _usage_tokens(response)
            stop_reason = getattr(choice, "finish_reason", None) or "unknown"
        except Exception as e:
            logger.error(
                f"invoke_chat: invocation failed model={model_id}, error={e}, "
                f"latency={_elapsed_ms(start_time)}ms"
            )
            raise InvocationError(ModelKind.CHAT.value, e) from e

        result = TextResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            stop_reason=stop_reason,
            model_id=model_id,
            latency_ms=_elapsed_ms(start_time),
        )
        logger.info(
            f"invoke_chat: response received latency={result.latency_ms}ms, "
            f"input_tokens={input_tokens}, output_tokens={output_tokens}, "
            f"stop_reason={stop_reason}"
        )
        return result

    async def invoke_chat_stream(self, request: ChatRequest) -> AsyncIterator[StreamChunk]:
        """Stream the chat model's answer as it is generated.

        Content deltas become non-terminal chunks, in upstream order. The
        first stop event becomes the single terminal chunk (empty text,
        ``is_complete=True``) and ends the stream. Any other event shape is
        ignored. If upstream closes without a stop event a terminal chunk
        with no stop reason is still emitted.

        The consumer drives the pace; abandoning the iterator is the only
        cancellation mechanism.

        Raises:
            InvocationError: If the upstream returns no stream body, or the
                stream fails part way through
        """
        model_id = self.model_ids[ModelKind.CHAT]
        kwargs = self._chat_envelope(request, stream=True)
        start_time = time.monotonic()

        logger.info(f"invoke_chat_stream: starting stream model={model_id}")

        try:
            response = await self._client.acompletion(**kwargs)
        except Exception as e:
            logger.error(f"invoke_chat_stream: stream failed to start: {e}")
            raise InvocationError(ModelKind.CHAT.value, e) from e

        if response is None:
            logger.error("invoke_chat_stream: no stream body returned")
            raise InvocationError(
                ModelKind.CHAT.value, RuntimeError("No stream body returned from Bedrock")
            )

        chunk_count = 0
        try:
            async for event in response:
                delta, stop_reason = _decode_stream_event(event)
                if delta:
                    chunk_count += 1
                    yield StreamChunk(text=delta, is_complete=False)
                if stop_reason:
                    logger.info(
                        f"invoke_chat_stream: stream complete chunks={chunk_count}, "
                        f"stop_reason={stop_reason}, latency={_elapsed_ms(start_time)}ms"
                    )
                    yield StreamChunk(text="", is_complete=True, stop_reason=stop_reason)
                    return
        except Exception as e:
            logger.error(f"invoke_chat_stream: stream failed after {chunk_count} chunks: {e}")
            raise InvocationError(ModelKind.CHAT.value, e) from e
        finally:
            await _close_stream(response)

        logger.warning(
            f"invoke_chat_stream: upstream closed without stop event, chunks={chunk_count}"
        )
        yield StreamChunk(text="", is_complete=True, stop_reason=None)

    async def invoke_completion(self, request: CompletionRequest) -> TextResponse:
        """Invoke the completion model with a role-delimited prompt string."""
        model_id = self.model_ids[ModelKind.COMPLETION]
        kwargs = self._completion_envelope(request)
        start_time = time.monotonic()

        logger.info(
            f"invoke_completion: sending request model={model_id}, "
            f"max_tokens={request.max_tokens}, temperature={request.temperature}"
        )

        try:
            response = await self._client.atext_completion(**kwargs)
            choice = response.choices[0]
            text = choice.text or ""
            input_tokens, output_tokens = _usage_tokens(response)
            stop_reason = getattr(choice, "finish_reason", None) or "unknown"
        except Exception as e:
            logger.error(
                f"invoke_completion: invocation failed model={model_id}, error={e}"
            )
            raise InvocationError(ModelKind.COMPLETION.value, e) from e

        result = TextResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            stop_reason=stop_reason,
            model_id=model_id,
            latency_ms=_elapsed_ms(start_time),
        )
        logger.info(
            f"invoke_completion: response received latency={result.latency_ms}ms, "
            f"output_tokens={output_tokens}"
        )
        return result

    async def invoke_embedding(self, request: EmbeddingRequest) -> EmbeddingResponse:
        """Embed one piece of text."""
        model_id = self.model_ids[ModelKind.EMBEDDING]
        kwargs = self._embedding_envelope(request)
        start_time = time.monotonic()

        logger.info(
            f"invoke_embedding: generating embedding model={model_id}, "
            f"dimensions={request.dimensions}, text_length={len(request.text)}"
        )

        try:
            response = await self._client.aembedding(**kwargs)
            item = response.data[0]
            vector = item["embedding"] if isinstance(item, dict) else item.embedding
            embedding = [float(v) for v in vector]
            input_tokens, _ = _usage_tokens(response)
        except Exception as e:
            logger.error(
                f"invoke_embedding: invocation failed model={model_id}, error={e}"
            )
            raise InvocationError(ModelKind.EMBEDDING.value, e) from e

        result = EmbeddingResponse(
            embedding=embedding,
            input_tokens=input_tokens,
            model_id=model_id,
            latency_ms=_elapsed_ms(start_time),
        )
        logger.info(
            f"invoke_embedding: embedding generated latency={result.latency_ms}ms, "
            f"dimensions={len(embedding)}"
        )
        return result

    # ------------------------------------------------------------------
    # Cost accounting
    # ------------------------------------------------------------------

    def estimate_cost(self, model_id: str, input_tokens: int, output_tokens: int) -> CostEstimate:
        """Estimate invocation cost from token counts. Pure, no I/O.

        Raises:
            ValueError: If model_id is not one this gateway knows about
        """
        rates = self._rates.get(model_id)
        if rates is None:
            raise ValueError(f"No pricing for model: {model_id}")
        return compute_cost(rates, input_tokens, output_tokens)
