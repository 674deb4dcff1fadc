"""Admin login."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from portfolio_chatbot.api.dependencies import Services, get_services
from portfolio_chatbot.api.responses import api_response
from portfolio_chatbot.exceptions import AuthenticationError
from portfolio_chatbot.models.admin import AdminLogin

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["Admin"])


@admin_router.post("/login")
async def login(
    body: AdminLogin, services: Services = Depends(get_services)
) -> JSONResponse:
    """Exchange admin credentials for a bearer token."""
    auth_service = services.auth_service
    admin = await auth_service.authenticate(body.email, body.password)
    if admin is None:
        raise AuthenticationError("Invalid email or password")

    logger.info("Admin %s logged in.", admin.email)
    token = auth_service.generate_token(admin)
    return api_response(token.model_dump(), "Login successful")
