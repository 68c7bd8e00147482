"""Error taxonomy for the chat gateway.

Every error that can reach the request boundary derives from SentinelError
and carries an ``error_kind`` used in error bodies. Client errors are
distinguished from server errors by ``is_client_error``.
"""

from typing import Optional


class SentinelError(Exception):
    """Base class for all gateway errors."""

    error_kind = "SentinelError"
    is_client_error = False


class InputValidationError(SentinelError):
    """A required request field is missing or malformed."""

    error_kind = "ValidationError"
    is_client_error = True

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvocationError(SentinelError):
    """Transport, serialization or decode failure talking to a model."""

    error_kind = "InvocationError"

    def __init__(self, model_kind: str, cause: Optional[BaseException] = None):
        super().__init__(f"Bedrock {model_kind} invocation failed")
        self.model_kind = model_kind
        self.cause = cause

    @property
    def detail(self) -> str:
        """Full message including the upstream cause, for server-side logs."""
        if self.cause is None:
            return str(self)
        return f"{self}: {self.cause}"


class TranslationError(SentinelError):
    """A single translation unit failed."""

    error_kind = "TranslationError"

    def __init__(self, target_language: str, cause: Optional[BaseException] = None):
        super().__init__(f"Translation failed for language '{target_language}'")
        self.target_language = target_language
        self.cause = cause

    @property
    def detail(self) -> str:
        if self.cause is None:
            return str(self)
        return f"{self}: {self.cause}"


class EmptyResponseError(SentinelError):
    """The model produced no usable text."""

    error_kind = "EmptyResponseError"

    def __init__(self, message: str = "Received empty response from the model."):
        super().__init__(message)


class TransportError(SentinelError):
    """Pushing a frame to a client connection failed."""

    error_kind = "TransportError"

    def __init__(self, connection_id: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to send frame to connection {connection_id}")
        self.connection_id = connection_id
        self.cause = cause
