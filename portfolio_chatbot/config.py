"""Application configuration.

Settings are read from environment variables, with a `.env` file picked up for
local development (loaded via python-dotenv before pydantic-settings parses the
environment).
"""

from __future__ import annotations

import logging
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio_chatbot import logger

# Load .env for local development so env vars are available via os.getenv
load_dotenv()

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    mongo_uri: str
    mongodb_db: str = "portfolio"

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = GEMINI_OPENAI_BASE_URL
    gemini_temperature: float = 0.3

    # Embeddings
    embedding_model: str = "nomic-ai/nomic-embed-text-v1.5"
    # 0 means no cap on concurrent embedding calls per document.
    embedding_max_concurrency: int = 4
    embedding_cache_size: int = 256

    # Chunking
    paragraph_min_chars: int = 50
    sentence_min_chars: int = 20

    # Retrieval / chat
    retrieval_top_k: int = 3
    rephrase_queries: bool = False

    # Admin auth
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 24

    # App
    app_title: str = "Portfolio Chatbot"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
    sse_heartbeat_seconds: float = 30.0

    @field_validator("mongo_uri")
    @classmethod
    def _require_mongo_uri(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("MONGO_URI is not set. Provide it via env or .env.")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'.")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    logger.debug("Fetching application settings.")
    return Settings()
