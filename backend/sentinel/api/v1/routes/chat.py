"""Chat API routes."""

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sentinel.api.dependencies import ServicesDep
from sentinel.core.errors import InputValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def post_chat_message(request: Request, services: ServicesDep):
    """Send a developer's chat message to Sentinel.

    Body: {repoId, sessionId, message, language?, filePath?, connectionId?}.
    When connectionId is set and a WebSocket endpoint is configured, tokens
    are also pushed to that connection as they are generated.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputValidationError("body", "Request body is not valid JSON.") from e

    response = await services.orchestrator.handle(body)
    return JSONResponse(
        content=response.model_dump(mode="json", by_alias=True, exclude_none=True)
    )
