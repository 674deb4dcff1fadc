"""Response envelope and server-sent-event framing."""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Stops reverse proxies from buffering the stream
    "X-Accel-Buffering": "no",
}


def api_response(data: Any, message: str, status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": status_code < 400,
            "status_code": status_code,
            "message": message,
            "data": jsonable_encoder(data),
        },
    )


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build the error envelope."""
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )


def format_sse(event: BaseModel) -> str:
    """Frame an event as one server-sent-event message."""
    return f"data: {event.model_dump_json()}\n\n"
