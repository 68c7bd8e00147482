"""boto3 wire clients for AWS Translate, Comprehend and the WebSocket API.

boto3 is synchronous, so every call is pushed to the default executor to
keep the event loop free. Clients are built once per process and shared;
no per-request state is kept on them.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig

from sentinel.config import Settings
from sentinel.core.chat.collaborators import TransportSink
from sentinel.core.errors import TransportError

logger = logging.getLogger(__name__)

# Retries are left to callers, so the SDK makes exactly one attempt
_NO_RETRY = {"total_max_attempts": 1, "mode": "standard"}


def _client_kwargs(settings: Settings) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "region_name": settings.aws_region,
        "config": BotoConfig(region_name=settings.aws_region, retries=_NO_RETRY),
    }
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return kwargs


class AwsTranslateClient:
    """Shared wire client for translation and dominant-language detection."""

    def __init__(self, translate_client: Any, comprehend_client: Any):
        self._translate = translate_client
        self._comprehend = comprehend_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "AwsTranslateClient":
        kwargs = _client_kwargs(settings)
        client = cls(
            boto3.client("translate", **kwargs),
            boto3.client("comprehend", **kwargs),
        )
        logger.info(f"AwsTranslateClient initialized: region={settings.aws_region}")
        return client

    async def translate_text(
        self,
        text: str,
        source_language: str,
        target_language: str,
        settings: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Call TranslateText and return the raw response dict."""
        params: Dict[str, Any] = {
            "Text": text,
            "SourceLanguageCode": source_language,
            "TargetLanguageCode": target_language,
        }
        if settings:
            params["Settings"] = settings

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self._translate.translate_text(**params)
        )

    async def detect_dominant_language(self, text: str) -> Dict[str, Any]:
        """Call DetectDominantLanguage and return the raw response dict."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self._comprehend.detect_dominant_language(Text=text)
        )


class ApiGatewayConnectionSink(TransportSink):
    """Pushes frames to WebSocket clients through the API Gateway management API."""

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ApiGatewayConnectionSink"]:
        """Build the sink, or return None when no WebSocket endpoint is configured."""
        if not settings.websocket_endpoint:
            return None
        kwargs = _client_kwargs(settings)
        client = boto3.client(
            "apigatewaymanagementapi",
            endpoint_url=settings.websocket_endpoint,
            **kwargs,
        )
        logger.info(f"WebSocket sink initialized: endpoint={settings.websocket_endpoint}")
        return cls(client)

    async def send(self, connection_id: str, frame: bytes) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: self._client.post_to_connection(ConnectionId=connection_id, Data=frame),
            )
        except Exception as e:
            raise TransportError(connection_id, e) from e
