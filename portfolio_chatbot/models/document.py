"""Document data models."""

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class Document(BaseModel):
    """Uploaded text document owned by an admin."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str = ""
    content: str
    file_type: str = "text"
    file_size: int | None = None
    uploaded_by: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"str_strip_whitespace": True}


class DocumentCreate(BaseModel):
    """Payload for a new text document."""

    title: str = ""
    content: str = ""
    description: str = ""


class ProcessingLogEvent(BaseModel):
    """Progress message pushed to a document's log stream."""

    type: Literal["info", "success", "error"] = "info"
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DocumentUpdate(BaseModel):
    """Partial update; supplying content triggers reprocessing."""

    title: str | None = None
    description: str | None = None
    content: str | None = None
