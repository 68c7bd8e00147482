"""Service wiring and FastAPI dependencies.

Long-lived clients (the model client, the AWS translate client and the
WebSocket sink) are created once per process in ``build_services`` and shared
by every request. Nothing on them is mutated per request.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Optional

from fastapi import Depends, Request

from sentinel.config import Settings
from sentinel.core.aws.clients import ApiGatewayConnectionSink, AwsTranslateClient
from sentinel.core.chat.collaborators import TransportSink
from sentinel.core.chat.orchestrator import ChatOrchestrator
from sentinel.core.llm.embedder import BatchEmbedder
from sentinel.core.llm.gateway import BedrockModelGateway
from sentinel.core.translation.translator import Translator
from sentinel.storage.conversation_store import SqlConversationStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide service container."""

    gateway: BedrockModelGateway
    translator: Translator
    embedder: BatchEmbedder
    store: SqlConversationStore
    orchestrator: ChatOrchestrator
    settings: Settings


def build_services(
    settings: Settings,
    store: SqlConversationStore,
    *,
    model_client: Any = None,
    translate_client: Any = None,
    transport: Optional[TransportSink] = None,
) -> Services:
    """Build all services. Clients not passed in are created from settings."""
    gateway = BedrockModelGateway.from_settings(settings, client=model_client)
    translator = Translator.from_settings(
        settings, translate_client or AwsTranslateClient.from_settings(settings)
    )
    if transport is None:
        transport = ApiGatewayConnectionSink.from_settings(settings)
    if transport is None:
        logger.info("No WebSocket endpoint configured, chat will not stream")

    orchestrator = ChatOrchestrator(
        gateway=gateway,
        translator=translator,
        context_store=store,
        persistence_store=store,
        transport=transport,
        settings=settings,
    )
    return Services(
        gateway=gateway,
        translator=translator,
        embedder=BatchEmbedder(gateway),
        store=store,
        orchestrator=orchestrator,
        settings=settings,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]
