"""Tests for MongoDB connection management."""

from unittest.mock import patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from portfolio_chatbot.repositories.database import (
    ADMINS,
    CHATS,
    DOCUMENTS,
    EMBEDDINGS,
    DatabaseManager,
)


@pytest.fixture
def mongo_client():
    with patch("portfolio_chatbot.repositories.database.MongoClient") as client_cls:
        yield client_cls


def test_connect_pings_once_and_reuses_client(mongo_client):
    manager = DatabaseManager("mongodb://localhost:27017", "portfolio_test")

    first = manager.connect()
    second = manager.connect()

    assert first is second
    mongo_client.assert_called_once_with(
        "mongodb://localhost:27017", serverSelectionTimeoutMS=5000
    )
    mongo_client.return_value.admin.command.assert_called_once_with("ping")


def test_connect_failure_closes_client(mongo_client):
    mongo_client.return_value.admin.command.side_effect = ServerSelectionTimeoutError("down")
    manager = DatabaseManager("mongodb://localhost:27017")

    with pytest.raises(ServerSelectionTimeoutError):
        manager.connect()

    mongo_client.return_value.close.assert_called_once()
    assert manager.client is None


@pytest.mark.asyncio
async def test_create_indexes_covers_every_collection(mongo_client):
    """Test that each collection gets its unique key index."""
    # Arrange
    manager = DatabaseManager("mongodb://localhost:27017", "portfolio_test")
    database = mongo_client.return_value.__getitem__.return_value

    # Act
    await manager.create_indexes()

    # Assert
    touched = [call.args[0] for call in database.__getitem__.call_args_list]
    assert set(touched) == {DOCUMENTS, EMBEDDINGS, CHATS, ADMINS}
    index_calls = database.__getitem__.return_value.create_index.call_args_list
    assert any(call.kwargs.get("unique") for call in index_calls)


def test_close_releases_client(mongo_client):
    manager = DatabaseManager("mongodb://localhost:27017")
    manager.connect()

    manager.close()

    mongo_client.return_value.close.assert_called_once()
    assert manager.client is None
    assert manager.database is None
