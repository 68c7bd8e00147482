"""Main FastAPI application."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sentinel import __version__
from sentinel.api.dependencies import Services, build_services
from sentinel.api.v1.routes import chat, embeddings, translation
from sentinel.config import settings
from sentinel.core.errors import SentinelError
from sentinel.models.database.base import async_session_maker, init_db
from sentinel.storage.conversation_store import SqlConversationStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or str(uuid.uuid4())


async def handle_sentinel_error(request: Request, exc: SentinelError) -> JSONResponse:
    """Map gateway errors to {errorKind, message, requestId} bodies."""
    request_id = _request_id(request)
    if exc.is_client_error:
        logger.warning(f"Validation error ({request_id}): {exc}")
        status_code = 400
    else:
        detail = getattr(exc, "detail", str(exc))
        logger.error(f"Request {request_id} failed: {detail}")
        status_code = 500
    return JSONResponse(
        status_code=status_code,
        content={"errorKind": exc.error_kind, "message": str(exc), "requestId": request_id},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    request_id = _request_id(request)
    logger.exception(f"Unhandled error for request {request_id}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "errorKind": "InternalServerError",
            "message": "Internal server error",
            "requestId": request_id,
        },
    )


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create the application.

    Args:
        services: Prebuilt services (used by tests). When omitted they are
            built from settings during start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            await init_db()
            app.state.services = build_services(
                settings, SqlConversationStore(async_session_maker)
            )
        yield
        # Let detached persistence writes finish before shutdown
        await app.state.services.orchestrator.wait_for_pending()

    app = FastAPI(
        title=settings.app_name,
        description="Sentinel code-review chat gateway",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "PUT", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(SentinelError, handle_sentinel_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
    app.include_router(translation.router, prefix="/api/v1", tags=["translation"])
    app.include_router(embeddings.router, prefix="/api/v1", tags=["embeddings"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging(settings.log_level)
app = create_app()
