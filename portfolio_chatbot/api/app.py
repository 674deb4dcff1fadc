"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_chatbot.api.dependencies import Services
from portfolio_chatbot.api.errors import register_exception_handlers
from portfolio_chatbot.api.routers.admin import admin_router
from portfolio_chatbot.api.routers.assistant import assistant_router
from portfolio_chatbot.api.routers.chat import chat_router
from portfolio_chatbot.api.routers.documents import documents_router
from portfolio_chatbot.config import Settings, get_settings
from portfolio_chatbot.embeddings import get_embedder
from portfolio_chatbot.llm import GeminiClient
from portfolio_chatbot.repositories.admin_repository import AdminRepository
from portfolio_chatbot.repositories.chat_repository import ChatRepository
from portfolio_chatbot.repositories.database import (
    ADMINS,
    CHATS,
    DOCUMENTS,
    EMBEDDINGS,
    DatabaseManager,
)
from portfolio_chatbot.repositories.document_repository import DocumentRepository
from portfolio_chatbot.repositories.vector_repository import VectorRepository
from portfolio_chatbot.services.assistant_tools import AssistantTools
from portfolio_chatbot.services.auth_service import AuthenticationService
from portfolio_chatbot.services.chat_service import ChatSessionManager
from portfolio_chatbot.services.connection_registry import ConnectionRegistry
from portfolio_chatbot.services.document_service import DocumentService
from portfolio_chatbot.services.query_rephraser import QueryRephraser

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
LEGACY_API_PREFIX = "/api/v1"


def build_services(settings: Settings, db_manager: DatabaseManager) -> Services:
    """Wire repositories, models and services together.

    Args:
        settings: Application settings
        db_manager: Connected database manager

    Returns:
        Services: Container stored on ``app.state``
    """
    embedder = get_embedder()
    generation_client = GeminiClient.from_settings(settings)

    document_repository = DocumentRepository(db_manager.get_collection(DOCUMENTS))
    vector_repository = VectorRepository(db_manager.get_collection(EMBEDDINGS))
    chat_repository = ChatRepository(db_manager.get_collection(CHATS))
    admin_repository = AdminRepository(db_manager.get_collection(ADMINS))

    registry = ConnectionRegistry()
    rephraser = QueryRephraser(generation_client) if settings.rephrase_queries else None

    return Services(
        document_service=DocumentService(
            document_repository,
            vector_repository,
            embedder,
            registry=registry,
            max_concurrency=settings.embedding_max_concurrency,
            paragraph_min_chars=settings.paragraph_min_chars,
            sentence_min_chars=settings.sentence_min_chars,
        ),
        chat_manager=ChatSessionManager(
            chat_repository,
            generation_client,
            vector_repository,
            document_repository,
            embedder,
            rephraser=rephraser,
            top_k=settings.retrieval_top_k,
        ),
        assistant_tools=AssistantTools(generation_client),
        auth_service=AuthenticationService(
            admin_repository,
            settings.jwt_secret,
            token_expiry_hours=settings.jwt_expiry_hours,
        ),
        registry=registry,
        sse_heartbeat_seconds=settings.sse_heartbeat_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect to MongoDB and build services unless they were injected."""
    db_manager: DatabaseManager | None = None
    if getattr(app.state, "services", None) is None:
        settings = get_settings()
        db_manager = DatabaseManager(settings.mongo_uri, settings.mongodb_db)
        db_manager.connect()
        await db_manager.create_indexes()
        app.state.services = build_services(settings, db_manager)
        logger.info("Services initialised for database '%s'.", settings.mongodb_db)

    yield

    if db_manager is not None:
        db_manager.close()
        logger.info("MongoDB connection closed.")


def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    """Create the API application.

    Args:
        settings: Settings to use; defaults to the environment
        services: Pre-built services, used by tests to skip MongoDB

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    logging.getLogger("portfolio_chatbot").setLevel(settings.log_level)

    app = FastAPI(title=settings.app_title, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for router in (chat_router, documents_router, assistant_router, admin_router):
        app.include_router(router, prefix=API_PREFIX)
        # Versioned alias for existing frontends; hidden to keep operation IDs unique.
        app.include_router(router, prefix=LEGACY_API_PREFIX, include_in_schema=False)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
