"""Shared fakes for the test suite.

The fakes mirror the repository and client method signatures so services can
be exercised without MongoDB, the embedding model or the Gemini API.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import pytest

from portfolio_chatbot.exceptions import UpstreamError, VectorDimensionError
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface
from portfolio_chatbot.interfaces.generation_interface import GenerationClientInterface
from portfolio_chatbot.models.chat import ChatSession, Prompt
from portfolio_chatbot.models.document import Document
from portfolio_chatbot.models.vector_document import VectorDocument, VectorSearchResult
from portfolio_chatbot.retrieve import rank_top_k

KEYWORDS = ("python", "design", "music", "travel")


class FakeEmbedder(EmbedderInterface):
    """Keyword-count embeddings: one dimension per entry in ``KEYWORDS``."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise UpstreamError("embedding model unavailable")
        lowered = text.lower()
        return [float(lowered.count(word)) for word in KEYWORDS]

    def embed(self, text: str) -> list[float]:
        return self._vector(text)

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


class FakeGenerationClient(GenerationClientInterface):
    """Returns canned text and records every prompt it receives."""

    def __init__(
        self,
        reply: str = "Here is what I found.",
        fragments: list[str] | None = None,
        fail: bool = False,
        fail_after: int | None = None,
    ) -> None:
        self.reply = reply
        self.fragments = fragments if fragments is not None else ["Here is ", "what I found."]
        self.fail = fail
        self.fail_after = fail_after
        self.prompts: list[Prompt] = []
        self.stream_closed = False

    async def generate(self, prompt: Prompt) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise UpstreamError("Gemini request failed")
        return self.reply

    async def generate_stream(self, prompt: Prompt) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        if self.fail:
            raise UpstreamError("Gemini request failed")
        try:
            for index, fragment in enumerate(self.fragments):
                if self.fail_after is not None and index >= self.fail_after:
                    raise UpstreamError("Gemini stream failed")
                yield fragment
        finally:
            self.stream_closed = True


class InMemoryDocumentRepository:
    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}

    async def create(self, document: Document) -> Document:
        self.documents[document.id] = document.model_copy(deep=True)
        return document

    async def get_by_id(self, document_id: str) -> Document | None:
        document = self.documents.get(document_id)
        return document.model_copy(deep=True) if document else None

    async def list_active(self) -> list[Document]:
        active = [doc for doc in self.documents.values() if doc.is_active]
        return sorted(active, key=lambda doc: doc.created_at, reverse=True)

    async def get_titles(self, document_ids) -> dict[str, str]:
        return {
            doc_id: self.documents[doc_id].title
            for doc_id in document_ids
            if doc_id in self.documents
        }

    async def update(self, document: Document) -> Document:
        self.documents[document.id] = document.model_copy(deep=True)
        return document

    async def soft_delete(self, document_id: str) -> bool:
        if document_id not in self.documents:
            return False
        self.documents[document_id].is_active = False
        return True

    async def delete(self, document_id: str) -> bool:
        return self.documents.pop(document_id, None) is not None


class InMemoryVectorRepository:
    def __init__(self) -> None:
        self.rows: list[VectorDocument] = []

    async def replace_document_chunks(self, document_id: str, vector_docs) -> int:
        others = [row for row in self.rows if row.document_id != document_id]
        dimensions = {len(doc.embedding) for doc in vector_docs}
        dimensions.update(len(row.embedding) for row in others[:1])
        if len(dimensions) > 1:
            raise VectorDimensionError(f"mixed dimensions {sorted(dimensions)}")
        self.rows = others + list(vector_docs)
        return len(vector_docs)

    async def top_k(self, query_embedding: list[float], k: int) -> list[VectorSearchResult]:
        ranked = rank_top_k(query_embedding, self.rows, k, lambda row: row.embedding)
        return [
            VectorSearchResult(
                document_id=row.document_id,
                content=row.content,
                chunk_index=row.chunk_index,
                score=score,
                page_number=row.page_number,
            )
            for row, score in ranked
        ]

    async def delete_document_chunks(self, document_id: str) -> int:
        before = len(self.rows)
        self.rows = [row for row in self.rows if row.document_id != document_id]
        return before - len(self.rows)

    async def count_for_document(self, document_id: str) -> int:
        return sum(1 for row in self.rows if row.document_id == document_id)

    async def get_document_chunks(self, document_id: str) -> list[VectorDocument]:
        rows = [row for row in self.rows if row.document_id == document_id]
        return sorted(rows, key=lambda row: row.chunk_index)


class InMemoryChatRepository:
    """Stores deep copies so tests observe only what was saved."""

    def __init__(self) -> None:
        self.sessions: dict[str, ChatSession] = {}
        self.save_count = 0

    async def get(self, session_id: str) -> ChatSession | None:
        session = self.sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def create(self, session: ChatSession) -> ChatSession:
        existing = self.sessions.get(session.session_id)
        if existing is not None:
            return existing.model_copy(deep=True)
        self.sessions[session.session_id] = session.model_copy(deep=True)
        return session

    async def save(self, session: ChatSession) -> ChatSession:
        self.save_count += 1
        self.sessions[session.session_id] = session.model_copy(deep=True)
        return session

    async def clear(self, session_id: str) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        session.messages = []
        return True


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def document_repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def vector_repository() -> InMemoryVectorRepository:
    return InMemoryVectorRepository()


@pytest.fixture
def chat_repository() -> InMemoryChatRepository:
    return InMemoryChatRepository()


def seed_chunks(
    vector_repository: InMemoryVectorRepository,
    document_repository: InMemoryDocumentRepository,
    title: str,
    texts: list[str],
    embedder: FakeEmbedder,
) -> Document:
    """Store a document and pre-embedded chunks directly, skipping ingestion."""
    document = Document(title=title, content="\n\n".join(texts), uploaded_by="admin-1")
    document_repository.documents[document.id] = document
    vector_repository.rows.extend(
        VectorDocument(
            document_id=document.id,
            content=text,
            embedding=embedder.embed(text),
            chunk_index=index,
        )
        for index, text in enumerate(texts)
    )
    return document


def parse_sse(body: str) -> list[dict[str, Any]]:
    """Decode a server-sent-event body into its JSON payloads."""
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]
