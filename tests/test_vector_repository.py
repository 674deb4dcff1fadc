"""Tests for the MongoDB vector repository."""

from unittest.mock import MagicMock

import pytest
from pymongo import ASCENDING

from portfolio_chatbot.exceptions import VectorDimensionError
from portfolio_chatbot.models.vector_document import VectorDocument
from portfolio_chatbot.repositories.vector_repository import VectorRepository


@pytest.fixture
def collection():
    """Mock embeddings collection holding no vectors."""
    mock_collection = MagicMock()
    mock_collection.find_one.return_value = None
    return mock_collection


@pytest.fixture
def vector_repository(collection):
    return VectorRepository(collection)


def _chunk(document_id: str, index: int, embedding: list[float]) -> VectorDocument:
    return VectorDocument(
        document_id=document_id,
        content=f"chunk {index}",
        embedding=embedding,
        chunk_index=index,
    )


@pytest.mark.asyncio
async def test_store_inserts_row(vector_repository, collection):
    """Test storing a single chunk."""
    # Arrange
    collection.insert_one.return_value.inserted_id = "row-1"

    # Act
    row_id = await vector_repository.store("doc-1", "Python work", [0.1, 0.2], 0)

    # Assert
    assert row_id == "row-1"
    stored = collection.insert_one.call_args[0][0]
    assert stored["document_id"] == "doc-1"
    assert stored["embedding"] == [0.1, 0.2]
    assert stored["chunk_index"] == 0
    assert "_id" not in stored


@pytest.mark.asyncio
async def test_store_rejects_dimension_mismatch(vector_repository, collection):
    """Test that a vector of the wrong size never reaches the collection."""
    collection.find_one.return_value = {"embedding": [0.1, 0.2, 0.3]}

    with pytest.raises(VectorDimensionError):
        await vector_repository.store("doc-1", "Python work", [0.1, 0.2], 0)

    collection.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_store_many_rejects_mixed_dimensions(vector_repository, collection):
    docs = [_chunk("doc-1", 0, [1.0, 0.0]), _chunk("doc-1", 1, [1.0, 0.0, 0.0])]

    with pytest.raises(VectorDimensionError):
        await vector_repository.store_many(docs)

    collection.insert_many.assert_not_called()


@pytest.mark.asyncio
async def test_replace_document_chunks_deletes_before_inserting(
    vector_repository, collection
):
    """Test that the old chunk set is removed before the new one is written."""
    # Arrange
    collection.delete_many.return_value.deleted_count = 3
    collection.insert_many.return_value.inserted_ids = ["a", "b"]
    docs = [_chunk("doc-1", 0, [1.0, 0.0]), _chunk("doc-1", 1, [0.0, 1.0])]

    # Act
    stored = await vector_repository.replace_document_chunks("doc-1", docs)

    # Assert
    assert stored == 2
    assert [name for name, _, _ in collection.method_calls] == [
        "find_one",
        "delete_many",
        "insert_many",
    ]
    collection.find_one.assert_called_once_with(
        {"document_id": {"$ne": "doc-1"}}, {"embedding": 1}
    )
    collection.delete_many.assert_called_once_with({"document_id": "doc-1"})
    inserted = collection.insert_many.call_args[0][0]
    assert [row["chunk_index"] for row in inserted] == [0, 1]


@pytest.mark.asyncio
async def test_replace_document_chunks_rejects_foreign_chunks(vector_repository, collection):
    with pytest.raises(ValueError):
        await vector_repository.replace_document_chunks(
            "doc-1", [_chunk("doc-2", 0, [1.0, 0.0])]
        )

    collection.delete_many.assert_not_called()


@pytest.mark.asyncio
async def test_top_k_ranks_all_stored_chunks(vector_repository, collection):
    """Test that search scores every row and closes the cursor."""
    # Arrange
    rows = [
        {"document_id": "doc-1", "content": "music", "embedding": [0.0, 1.0], "chunk_index": 0},
        {"document_id": "doc-2", "content": "python", "embedding": [1.0, 0.0], "chunk_index": 0, "page_number": 0},
        {"document_id": "doc-1", "content": "both", "embedding": [1.0, 1.0], "chunk_index": 1},
    ]
    cursor = MagicMock()
    cursor.__iter__.return_value = iter(rows)
    collection.find.return_value = cursor

    # Act
    results = await vector_repository.top_k([1.0, 0.0], 2)

    # Assert
    assert [result.content for result in results] == ["python", "both"]
    assert results[0].score == pytest.approx(1.0)
    assert results[0].document_id == "doc-2"
    assert results[1].page_number is None
    cursor.close.assert_called_once()


@pytest.mark.asyncio
async def test_delete_document_chunks_returns_count(vector_repository, collection):
    collection.delete_many.return_value.deleted_count = 4

    assert await vector_repository.delete_document_chunks("doc-1") == 4
    collection.delete_many.assert_called_once_with({"document_id": "doc-1"})


@pytest.mark.asyncio
async def test_get_document_chunks_orders_by_index(vector_repository, collection):
    collection.find.return_value.sort.return_value = [
        {"_id": "r0", "document_id": "doc-1", "content": "a", "embedding": [1.0], "chunk_index": 0},
        {"_id": "r1", "document_id": "doc-1", "content": "b", "embedding": [1.0], "chunk_index": 1},
    ]

    chunks = await vector_repository.get_document_chunks("doc-1")

    collection.find.assert_called_once_with({"document_id": "doc-1"})
    collection.find.return_value.sort.assert_called_once_with("chunk_index", ASCENDING)
    assert [chunk.id for chunk in chunks] == ["r0", "r1"]
