"""Vector repository for document embedding operations."""

import asyncio
import logging
from typing import Any, Sequence

from pymongo import ASCENDING
from pymongo.collection import Collection

from portfolio_chatbot.exceptions import VectorDimensionError
from portfolio_chatbot.models.vector_document import VectorDocument, VectorSearchResult
from portfolio_chatbot.retrieve import rank_top_k

logger = logging.getLogger(__name__)

_SEARCH_PROJECTION = {
    "_id": 0,
    "document_id": 1,
    "content": 1,
    "embedding": 1,
    "chunk_index": 1,
    "page_number": 1,
}


class VectorRepository:
    """Repository for chunk embeddings stored in MongoDB."""

    def __init__(self, collection: Collection) -> None:
        """Initialize vector repository.

        Args:
            collection: MongoDB embeddings collection
        """
        self.collection = collection

    async def store(
        self,
        document_id: str,
        content: str,
        embedding: list[float],
        chunk_index: int,
        page_number: int | None = 0,
    ) -> str:
        """Add a single document chunk with its embedding.

        Args:
            document_id: Owning document ID
            content: Chunk text
            embedding: Chunk embedding
            chunk_index: Position of the chunk within the document
            page_number: Optional page the chunk came from

        Returns:
            Inserted row ID

        Raises:
            VectorDimensionError: If the vector does not match the store.
        """
        vector_doc = VectorDocument(
            document_id=document_id,
            content=content,
            embedding=embedding,
            chunk_index=chunk_index,
            page_number=page_number,
        )

        def _insert() -> str:
            self._check_dimension([vector_doc])
            result = self.collection.insert_one(self._to_row(vector_doc))
            return str(result.inserted_id)

        return await asyncio.to_thread(_insert)

    async def store_many(self, vector_docs: Sequence[VectorDocument]) -> int:
        """Add a batch of chunks.

        Args:
            vector_docs: Chunks to store

        Returns:
            Number of inserted rows
        """
        if not vector_docs:
            return 0

        def _insert() -> int:
            self._check_dimension(vector_docs)
            result = self.collection.insert_many([self._to_row(doc) for doc in vector_docs])
            return len(result.inserted_ids)

        return await asyncio.to_thread(_insert)

    async def replace_document_chunks(
        self, document_id: str, vector_docs: Sequence[VectorDocument]
    ) -> int:
        """Swap every stored chunk of a document for a new set.

        Args:
            document_id: Document whose chunks are replaced
            vector_docs: Complete new chunk set for the document

        Returns:
            Number of inserted rows
        """
        if any(doc.document_id != document_id for doc in vector_docs):
            raise ValueError("All chunks must belong to the document being replaced")

        def _replace() -> int:
            self._check_dimension(vector_docs, exclude_document_id=document_id)
            deleted = self.collection.delete_many({"document_id": document_id})
            if deleted.deleted_count:
                logger.debug(
                    "Removed %s stale chunks for document %s.",
                    deleted.deleted_count,
                    document_id,
                )
            if not vector_docs:
                return 0
            result = self.collection.insert_many([self._to_row(doc) for doc in vector_docs])
            return len(result.inserted_ids)

        return await asyncio.to_thread(_replace)

    async def top_k(self, query_embedding: list[float], k: int) -> list[VectorSearchResult]:
        """Return the ``k`` chunks most similar to the query across all documents.

        Args:
            query_embedding: Query embedding vector
            k: Maximum number of results

        Returns:
            Results sorted by cosine similarity, best first
        """

        def _scan() -> list[tuple[dict[str, Any], float]]:
            cursor = self.collection.find({}, _SEARCH_PROJECTION)
            try:
                return rank_top_k(query_embedding, cursor, k, lambda row: row["embedding"])
            finally:
                cursor.close()

        ranked = await asyncio.to_thread(_scan)
        return [
            VectorSearchResult(
                document_id=row["document_id"],
                content=row["content"],
                chunk_index=row["chunk_index"],
                score=score,
                page_number=row.get("page_number"),
            )
            for row, score in ranked
        ]

    async def delete_document_chunks(self, document_id: str) -> int:
        """Delete all chunks for a specific document.

        Args:
            document_id: ID of document to delete chunks for

        Returns:
            Number of deleted rows
        """
        result = await asyncio.to_thread(
            self.collection.delete_many, {"document_id": document_id}
        )
        return result.deleted_count

    async def count_for_document(self, document_id: str) -> int:
        """Count stored chunks of a document."""
        return await asyncio.to_thread(
            self.collection.count_documents, {"document_id": document_id}
        )

    async def get_document_chunks(self, document_id: str) -> list[VectorDocument]:
        """Get all chunks for a specific document ordered by chunk index.

        Args:
            document_id: ID of document to get chunks for

        Returns:
            List of vector documents
        """
        rows = await asyncio.to_thread(
            lambda: list(
                self.collection.find({"document_id": document_id}).sort(
                    "chunk_index", ASCENDING
                )
            )
        )
        for row in rows:
            row["_id"] = str(row["_id"])
        return [VectorDocument.model_validate(row) for row in rows]

    def _check_dimension(
        self,
        vector_docs: Sequence[VectorDocument],
        exclude_document_id: str | None = None,
    ) -> None:
        """Reject vectors whose length differs from each other or from the store."""
        dimensions = {len(doc.embedding) for doc in vector_docs}
        if len(dimensions) > 1:
            raise VectorDimensionError(
                f"Chunk embeddings have mixed dimensions: {sorted(dimensions)}"
            )
        query: dict[str, Any] = {}
        if exclude_document_id is not None:
            query["document_id"] = {"$ne": exclude_document_id}
        existing = self.collection.find_one(query, {"embedding": 1})
        if existing is None or not dimensions:
            return
        stored = len(existing["embedding"])
        (incoming,) = dimensions
        if incoming != stored:
            raise VectorDimensionError(
                f"Embedding has {incoming} dimensions but the store holds {stored}"
            )

    @staticmethod
    def _to_row(vector_doc: VectorDocument) -> dict[str, Any]:
        return vector_doc.model_dump(exclude={"id"}, by_alias=True)
