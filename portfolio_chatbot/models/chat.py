"""Chat data models."""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MessageRole(str, Enum):
    """Chat message roles."""

    USER = "user"
    ASSISTANT = "assistant"


class RetrievedContext(BaseModel):
    """Chunk that grounded an assistant reply."""

    document_id: str
    document_title: str
    similarity: float
    content: str
    page_number: int | None = None


class ChatMessage(BaseModel):
    """Chat message model.

    ``rephrased_query`` only ever appears on user messages and
    ``retrieved_context`` only on assistant messages.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    rephrased_query: str | None = None
    retrieved_context: list[RetrievedContext] | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> "ChatMessage":
        if self.role == MessageRole.USER and self.retrieved_context is not None:
            raise ValueError("retrieved_context is only valid on assistant messages")
        if self.role == MessageRole.ASSISTANT and self.rephrased_query is not None:
            raise ValueError("rephrased_query is only valid on user messages")
        return self


class ClientInfo(BaseModel):
    """Metadata about the visitor who opened the session."""

    ip_address: str | None = None
    user_agent: str | None = None


class ChatSession(BaseModel):
    """Chat session model."""

    session_id: str
    messages: list[ChatMessage] = []
    client: ClientInfo = Field(default_factory=ClientInfo)
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ChatRequest(BaseModel):
    """Incoming chat message; accepts ``sessionId`` as well as ``session_id``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = ""
    session_id: str = ""


class ChatReply(BaseModel):
    """Completed assistant reply."""

    message: str
    session_id: str
    message_id: str
    relevant_documents: list[RetrievedContext] = []


class ChunkEvent(BaseModel):
    """Incremental text fragment of a streamed reply."""

    type: Literal["chunk"] = "chunk"
    content: str


class CompleteEvent(ChatReply):
    """Final event of a streamed reply."""

    type: Literal["complete"] = "complete"


class ErrorEvent(BaseModel):
    """User-safe error notice ending a streamed reply."""

    type: Literal["error"] = "error"
    message: str


StreamEvent = ChunkEvent | CompleteEvent | ErrorEvent


class PromptTurn(BaseModel):
    """One prior turn in the generation model's role vocabulary."""

    role: Literal["user", "model"]
    text: str


class Prompt(BaseModel):
    """Model input: prior turns plus the message to answer."""

    history: list[PromptTurn] = []
    message: str
    # Replaces the client's default system instruction when set.
    system_instruction: str | None = None


class ConversationTurn(BaseModel):
    """Client-held history entry for stateless answers."""

    message: str = ""
    role: str | None = None


class ChatAnswer(BaseModel):
    """Reply to a stateless question with the chunks that grounded it."""

    response: str
    relevant_documents: list[RetrievedContext] = []
