"""Document repository for uploaded portfolio documents."""

import asyncio
from datetime import UTC, datetime
from typing import Any, Iterable

from pymongo import DESCENDING
from pymongo.collection import Collection

from portfolio_chatbot.models.document import Document


class DocumentRepository:
    """Repository for managing documents in the MongoDB documents collection."""

    def __init__(self, collection: Collection) -> None:
        """Initialize document repository.

        Args:
            collection: MongoDB collection for storing documents
        """
        self.collection = collection

    async def create(self, document: Document) -> Document:
        """Insert a new document.

        Args:
            document: Document to save

        Returns:
            The saved document
        """
        await asyncio.to_thread(self.collection.insert_one, document.model_dump())
        return document

    async def get_by_id(self, document_id: str) -> Document | None:
        """Get document by ID.

        Args:
            document_id: Document ID

        Returns:
            Document if found, None otherwise
        """
        document_dict = await asyncio.to_thread(
            self.collection.find_one, {"id": document_id}
        )
        if document_dict:
            # Remove MongoDB ObjectId before creating model
            document_dict.pop("_id", None)
            return Document(**document_dict)
        return None

    async def list_active(self) -> list[Document]:
        """List active documents, newest first."""

        def _find() -> list[dict[str, Any]]:
            cursor = self.collection.find({"is_active": True}).sort(
                "created_at", DESCENDING
            )
            return list(cursor)

        documents = []
        for document_dict in await asyncio.to_thread(_find):
            document_dict.pop("_id", None)
            documents.append(Document(**document_dict))
        return documents

    async def get_titles(self, document_ids: Iterable[str]) -> dict[str, str]:
        """Map document IDs to titles.

        Args:
            document_ids: IDs to resolve

        Returns:
            Mapping for the IDs that exist
        """
        ids = list(document_ids)
        if not ids:
            return {}
        rows = await asyncio.to_thread(
            lambda: list(
                self.collection.find({"id": {"$in": ids}}, {"id": 1, "title": 1})
            )
        )
        return {row["id"]: row["title"] for row in rows}

    async def update(self, document: Document) -> Document:
        """Persist all fields of an existing document.

        Args:
            document: Document with updated fields

        Returns:
            The saved document
        """
        document.updated_at = datetime.now(UTC)
        await asyncio.to_thread(
            self.collection.replace_one, {"id": document.id}, document.model_dump()
        )
        return document

    async def soft_delete(self, document_id: str) -> bool:
        """Flag a document inactive without removing it.

        Args:
            document_id: Document ID

        Returns:
            True if a document was flagged, False if none matched
        """
        result = await asyncio.to_thread(
            self.collection.update_one,
            {"id": document_id},
            {"$set": {"is_active": False, "updated_at": datetime.now(UTC)}},
        )
        return result.matched_count > 0

    async def delete(self, document_id: str) -> bool:
        """Physically remove a document record.

        Only used to roll back an upload whose processing failed.

        Args:
            document_id: Document ID

        Returns:
            True if deleted, False otherwise
        """
        result = await asyncio.to_thread(self.collection.delete_one, {"id": document_id})
        return result.deleted_count > 0
