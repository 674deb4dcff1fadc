"""Vector document models for MongoDB storage."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class VectorDocument(BaseModel):
    """One embedded chunk of a document."""

    id: str | None = Field(default=None, alias="_id")
    document_id: str
    content: str
    embedding: list[float]
    chunk_index: int
    page_number: int | None = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        arbitrary_types_allowed = True


class VectorSearchResult(BaseModel):
    """Vector search result model."""

    document_id: str
    content: str
    chunk_index: int
    score: float
    page_number: int | None = None
