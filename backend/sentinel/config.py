"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Sentinel Gateway"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["https://velocis.dev"]

    # AWS
    aws_region: str = "ap-south-1"
    bedrock_region: Optional[str] = None  # Falls back to aws_region
    aws_access_key_id: Optional[str] = None  # Only needed for local runs
    aws_secret_access_key: Optional[str] = None

    # Bedrock models
    bedrock_chat_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"
    bedrock_completion_model_id: str = "meta.llama3-70b-instruct-v1:0"
    bedrock_embedding_model_id: str = "amazon.titan-embed-text-v2:0"
    bedrock_request_timeout: int = 120  # seconds

    # Chat pipeline
    max_message_chars: int = 10_000
    max_history_turns: int = 10
    max_code_context_chars: int = 8_000
    conversation_ttl_days: int = 30
    chat_temperature: float = 0.3
    chat_max_tokens: int = 4096

    # Translation
    default_language: str = "en"
    translate_byte_limit: int = 10_000  # Hard wire limit per request
    translate_chunk_bytes: int = 8_000  # Safety margin used when chunking
    translate_formality: str = "FORMAL"
    translate_profanity: str = "MASK"

    # Embedding
    embedding_concurrency: int = 5

    # Realtime transport (API Gateway WebSocket management endpoint)
    websocket_endpoint: Optional[str] = None

    # Storage
    database_url: str = "sqlite+aiosqlite:///./sentinel.db"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def resolved_bedrock_region(self) -> str:
        """Region used for Bedrock calls."""
        return self.bedrock_region or self.aws_region


settings = Settings()
