"""MongoDB connection management."""

import asyncio
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DOCUMENTS = "documents"
EMBEDDINGS = "embeddings"
CHATS = "chats"
ADMINS = "admins"


class DatabaseManager:
    """MongoDB connection manager."""

    def __init__(self, mongo_uri: str, database_name: str = "portfolio") -> None:
        """Initialize database manager.

        Args:
            mongo_uri: MongoDB connection URI
            database_name: Name of the database to use
        """
        self.mongo_uri = mongo_uri
        self.database_name = database_name
        self.client: MongoClient | None = None
        self.database: Database | None = None

    def connect(self) -> Database:
        """Connect to MongoDB and return database instance.

        Returns:
            MongoDB database instance

        Raises:
            PyMongoError: If the server cannot be reached.
        """
        if self.client is None:
            logger.debug("Creating MongoDB client from configured URI.")
            client = MongoClient(self.mongo_uri, serverSelectionTimeoutMS=5000)
            try:
                client.admin.command("ping")
            except PyMongoError:
                logger.exception("MongoDB connection failed.")
                client.close()
                raise
            logger.info("MongoDB connection established.")
            self.client = client
            self.database = client[self.database_name]
        return self.database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection.

        Args:
            collection_name: Name of the collection

        Returns:
            MongoDB collection instance
        """
        if self.database is None:
            self.connect()
        return self.database[collection_name]

    async def create_indexes(self) -> None:
        """Create the indexes the repositories rely on."""
        await asyncio.to_thread(self._create_indexes)

    def _create_indexes(self) -> None:
        db = self.connect()

        db[DOCUMENTS].create_index("id", unique=True)
        db[DOCUMENTS].create_index([("is_active", ASCENDING), ("created_at", DESCENDING)])

        # One row per chunk position within a document
        db[EMBEDDINGS].create_index(
            [("document_id", ASCENDING), ("chunk_index", ASCENDING)], unique=True
        )

        db[CHATS].create_index("session_id", unique=True)

        db[ADMINS].create_index("email", unique=True)
        logger.info("MongoDB indexes ensured on '%s'.", self.database_name)

    def close(self) -> None:
        """Close database connection."""
        if self.client is not None:
            self.client.close()
            self.client = None
            self.database = None
