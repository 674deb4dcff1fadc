"""Public chat routes."""

import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from portfolio_chatbot.api.client_info import client_info
from portfolio_chatbot.api.dependencies import Services, get_services
from portfolio_chatbot.api.responses import SSE_HEADERS, api_response, format_sse
from portfolio_chatbot.models.chat import ChatRequest, ErrorEvent
from portfolio_chatbot.services.chat_service import APOLOGY_MESSAGE

logger = logging.getLogger(__name__)

chat_router = APIRouter(prefix="/chat", tags=["Chat"])


@chat_router.post("/send")
async def send_message(
    request: Request, body: ChatRequest, services: Services = Depends(get_services)
) -> StreamingResponse:
    """Stream a reply as server-sent events.

    Emits ``chunk`` events while the reply is generated, then a ``complete``
    event with the full message, or an ``error`` event.
    """
    manager = services.chat_manager
    manager.validate_input(body.session_id, body.message)
    client = client_info(request)

    async def event_stream() -> AsyncIterator[str]:
        events = manager.send_message_stream(body.session_id, body.message, client)
        async with contextlib.aclosing(events):
            try:
                async for event in events:
                    yield format_sse(event)
            except Exception:
                logger.exception("Chat stream for session %s aborted.", body.session_id)
                yield format_sse(ErrorEvent(message=APOLOGY_MESSAGE))

    return StreamingResponse(
        event_stream(), media_type="text/event-stream", headers=SSE_HEADERS
    )


@chat_router.post("/send-sync")
async def send_message_sync(
    request: Request, body: ChatRequest, services: Services = Depends(get_services)
) -> JSONResponse:
    """Return the whole reply in one response."""
    reply = await services.chat_manager.send_message(
        body.session_id, body.message, client_info(request)
    )
    return api_response(reply.model_dump(mode="json"), "Message sent successfully")


@chat_router.get("/history/{session_id}")
async def get_history(
    session_id: str, services: Services = Depends(get_services)
) -> JSONResponse:
    """Return a session's messages; unknown sessions have an empty history."""
    messages = await services.chat_manager.history(session_id)
    return api_response(
        {
            "session_id": session_id,
            "messages": [message.model_dump(mode="json") for message in messages],
        },
        "Chat history retrieved successfully" if messages else "No chat history found",
    )


@chat_router.delete("/history/{session_id}")
async def clear_history(
    session_id: str, services: Services = Depends(get_services)
) -> JSONResponse:
    """Clear a session's messages."""
    await services.chat_manager.clear(session_id)
    return api_response({}, "Chat history cleared successfully")
