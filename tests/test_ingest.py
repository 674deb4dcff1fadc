"""Tests for the ingestion pipeline."""

import pytest

from portfolio_chatbot.exceptions import NoContentError, UpstreamError
from portfolio_chatbot.ingest import process_document
from conftest import FakeEmbedder

EXAMPLE_CONTENT = (
    "Para one is long enough to pass fifty chars threshold.\n\n"
    "Para two also exceeds the fifty character minimum easily."
)


@pytest.mark.asyncio
async def test_process_document_stores_one_row_per_chunk(vector_repository, embedder):
    """Test that N qualifying chunks become N rows indexed 0..N-1."""
    # Act
    result = await process_document(
        "doc-1", EXAMPLE_CONTENT, embedder=embedder, vector_repository=vector_repository
    )

    # Assert
    assert result.document_id == "doc-1"
    assert result.chunk_count == 2
    chunks = await vector_repository.get_document_chunks("doc-1")
    assert [chunk.chunk_index for chunk in chunks] == [0, 1]
    assert chunks[0].content.startswith("Para one")
    assert chunks[1].content.startswith("Para two")


@pytest.mark.asyncio
async def test_process_document_replaces_previous_chunks(vector_repository, embedder):
    """Test that reprocessing leaves exactly the new chunk set."""
    await process_document(
        "doc-1", EXAMPLE_CONTENT, embedder=embedder, vector_repository=vector_repository
    )
    new_content = "A single replacement paragraph that is comfortably over fifty characters."

    result = await process_document(
        "doc-1", new_content, embedder=embedder, vector_repository=vector_repository
    )

    assert result.chunk_count == 1
    chunks = await vector_repository.get_document_chunks("doc-1")
    assert [(chunk.chunk_index, chunk.content) for chunk in chunks] == [(0, new_content)]


@pytest.mark.asyncio
async def test_process_document_without_content_fails(vector_repository, embedder):
    with pytest.raises(NoContentError, match="No content provided for processing"):
        await process_document(
            "doc-1", "Too short.", embedder=embedder, vector_repository=vector_repository
        )

    assert await vector_repository.count_for_document("doc-1") == 0
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_process_document_embedding_failure_writes_nothing(vector_repository, embedder):
    """Test that one failed embedding leaves the stored chunks untouched."""
    await process_document(
        "doc-1", EXAMPLE_CONTENT, embedder=embedder, vector_repository=vector_repository
    )
    failing = FakeEmbedder(fail_on="broken")
    content = (
        "This paragraph embeds without any trouble at all, honestly.\n\n"
        "This broken paragraph makes the embedding model fall over."
    )

    with pytest.raises(UpstreamError):
        await process_document(
            "doc-1", content, embedder=failing, vector_repository=vector_repository
        )

    chunks = await vector_repository.get_document_chunks("doc-1")
    assert [chunk.content[:8] for chunk in chunks] == ["Para one", "Para two"]


@pytest.mark.asyncio
async def test_process_document_reports_progress(vector_repository, embedder):
    messages = []

    await process_document(
        "doc-1",
        EXAMPLE_CONTENT,
        embedder=embedder,
        vector_repository=vector_repository,
        max_concurrency=1,
        progress_callback=lambda message, level: messages.append((message, level)),
    )

    assert messages[0] == ("Split content into 2 chunks.", "info")
    assert ("Embedded chunk 2/2.", "info") in messages
    assert messages[-1] == ("Stored 2 chunks.", "success")
