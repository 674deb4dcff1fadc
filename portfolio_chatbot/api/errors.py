"""Translate application errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_chatbot.api.responses import error_response
from portfolio_chatbot.exceptions import (
    ConsistencyError,
    PortfolioChatbotError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


async def handle_app_error(request: Request, exc: PortfolioChatbotError) -> JSONResponse:
    if isinstance(exc, (UpstreamError, ConsistencyError)):
        # Internal detail stays in the log, never in the response.
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return error_response(exc.safe_message, exc.status_code)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error['loc'][1:]) or 'body'}: {error['msg']}"
        for error in exc.errors()
    ]
    return error_response("; ".join(messages) or "Invalid request", 400)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``."""
    app.add_exception_handler(PortfolioChatbotError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
