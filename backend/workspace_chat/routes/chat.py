"""
Chat routes: streaming completion relay and the model list for the selector.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from workspace_chat.dependencies import Providers
from workspace_chat.models.request import ChatRequest
from workspace_chat.models.response import ErrorResponse, ModelInfo, ModelListResponse
from workspace_chat.services.model_registry import default_model, list_models
from workspace_chat.services.relay import ChatRelay
from workspace_chat.utils.exceptions import raise_bad_request, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(request: ChatRequest, registry: Providers):
    """
    POST /api/chat - stream one assistant reply

    Body: {messages: [{role, content}], model?: str, context?: str}

    Returns an SSE stream of `data: {"type":"text","content":...}` frames
    terminated by `data: [DONE]`. A stream that closes without [DONE]
    failed mid-way.

    Errors:
    - 400 {"error": "Messages are required"} for a missing or empty list
    - 500 {"error": "Internal server error"} if the upstream call fails
      before any output
    """
    if not request.messages:
        raise_bad_request("Messages are required")

    relay = ChatRelay(
        messages=[m.model_dump() for m in request.messages],
        model_id=request.model,
        context=request.context,
        registry=registry,
    )

    try:
        await relay.open()
    except Exception as e:
        logger.error(f"Chat API error: {e}")
        raise_internal_error()

    return StreamingResponse(
        relay.frames(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
        background=BackgroundTask(relay.aclose),
    )


@router.get("/models", response_model=ModelListResponse)
async def models():
    """List selectable models for the frontend model picker"""
    return ModelListResponse(
        models=[
            ModelInfo(
                id=m.id,
                name=m.display_name,
                provider=m.provider,
                description=m.description,
                streaming=m.supports_streaming,
            )
            for m in list_models()
        ],
        default=default_model().id,
    )
