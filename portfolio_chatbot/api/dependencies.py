"""Service container and FastAPI dependencies."""

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_chatbot.exceptions import AuthenticationError
from portfolio_chatbot.models.admin import Admin
from portfolio_chatbot.services.assistant_tools import AssistantTools
from portfolio_chatbot.services.auth_service import AuthenticationService
from portfolio_chatbot.services.chat_service import ChatSessionManager
from portfolio_chatbot.services.connection_registry import ConnectionRegistry
from portfolio_chatbot.services.document_service import DocumentService

ACCESS_TOKEN_COOKIE = "accessToken"

_bearer = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Everything the routers need, built once at startup."""

    document_service: DocumentService
    chat_manager: ChatSessionManager
    assistant_tools: AssistantTools
    auth_service: AuthenticationService
    registry: ConnectionRegistry
    sse_heartbeat_seconds: float = 30.0


def get_services(request: Request) -> Services:
    return request.app.state.services


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Admin:
    """Resolve the admin from a bearer token or the access-token cookie.

    Raises:
        AuthenticationError: If no valid token is presented.
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise AuthenticationError("Unauthorized request")
    admin = await get_services(request).auth_service.validate_token(token)
    if admin is None:
        raise AuthenticationError("Invalid access token")
    return admin
