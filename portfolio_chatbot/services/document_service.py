"""Document lifecycle: upload, reprocess, soft delete."""

from __future__ import annotations

import logging

from portfolio_chatbot.exceptions import (
    ConsistencyError,
    NotFoundError,
    PortfolioChatbotError,
    ValidationError,
)
from portfolio_chatbot.ingest import IngestResult, process_document
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface
from portfolio_chatbot.models.document import Document, DocumentUpdate
from portfolio_chatbot.repositories.document_repository import DocumentRepository
from portfolio_chatbot.repositories.vector_repository import VectorRepository
from portfolio_chatbot.services.connection_registry import ConnectionRegistry
from portfolio_chatbot.utils_text import (
    PARAGRAPH_MIN_CHARS,
    SENTENCE_MIN_CHARS,
    clean_title,
)

logger = logging.getLogger(__name__)


class DocumentService:
    """Owns document records and keeps their chunks consistent with them."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        vector_repository: VectorRepository,
        embedder: EmbedderInterface,
        registry: ConnectionRegistry | None = None,
        max_concurrency: int = 0,
        paragraph_min_chars: int = PARAGRAPH_MIN_CHARS,
        sentence_min_chars: int = SENTENCE_MIN_CHARS,
    ) -> None:
        """Initialize document service.

        Args:
            document_repository: Repository for document records
            vector_repository: Repository for chunk embeddings
            embedder: Embedder for chunk text
            registry: Optional registry receiving processing logs
            max_concurrency: Cap on concurrent embedding calls (0 = none)
            paragraph_min_chars: Paragraph threshold for the chunker
            sentence_min_chars: Sentence threshold for the chunker
        """
        self.document_repository = document_repository
        self.vector_repository = vector_repository
        self.embedder = embedder
        self.registry = registry
        self.max_concurrency = max_concurrency
        self.paragraph_min_chars = paragraph_min_chars
        self.sentence_min_chars = sentence_min_chars

    async def upload(
        self,
        title: str,
        content: str,
        uploaded_by: str,
        description: str = "",
    ) -> tuple[Document, IngestResult]:
        """Create a document and index its content.

        If processing fails the new record and any chunks written for it are
        removed before the error is raised.

        Args:
            title: Document title (required)
            content: Full text (required)
            uploaded_by: ID of the uploading admin
            description: Optional description

        Returns:
            The stored document and its processing summary

        Raises:
            ValidationError: If title or content is empty.
            ConsistencyError: If processing failed and the upload was rolled back.
        """
        if not (title or "").strip():
            raise ValidationError("Title is required")
        if not (content or "").strip():
            raise ValidationError("Content is required")

        content = content.strip()
        document = Document(
            title=clean_title(title),
            description=description or "",
            content=content,
            file_size=len(content),
            uploaded_by=uploaded_by,
        )
        await self.document_repository.create(document)
        self._log(document.id, "Starting document upload process...")
        self._log(document.id, f'Document title: "{document.title}"')
        self._log(document.id, f"Content length: {len(content)} characters")

        try:
            result = await self._process(document)
        except Exception as exc:
            await self._rollback_upload(document.id)
            self._log(document.id, f"Processing failed: {_describe(exc)}", "error")
            if isinstance(exc, ValidationError):
                raise
            raise ConsistencyError(
                f"Failed to process document {document.id}: {exc}"
            ) from exc

        self._log(document.id, "Document processing completed successfully!", "success")
        logger.info(
            "Uploaded document %s ('%s') with %s chunks.",
            document.id,
            document.title,
            result.chunk_count,
        )
        return document, result

    async def update(
        self, document_id: str, changes: DocumentUpdate
    ) -> tuple[Document, IngestResult | None]:
        """Apply changes to a document, reprocessing when content changes.

        A failed reprocess leaves the stored record and chunks untouched.

        Args:
            document_id: Document to update
            changes: Fields to change

        Returns:
            The saved document and, if content changed, its processing summary

        Raises:
            NotFoundError: If the document does not exist or was deleted.
            ValidationError: If content is given but blank.
            ConsistencyError: If reprocessing failed.
        """
        document = await self.get(document_id)
        # Deleted documents must never be re-indexed.
        if not document.is_active:
            raise NotFoundError("Document not found")
        if changes.content is not None and not changes.content.strip():
            raise ValidationError("Content is required")
        self._log(document_id, f'Updating document: "{document.title}"')

        if changes.title is not None and changes.title.strip():
            document.title = clean_title(changes.title)
        if changes.description is not None:
            document.description = changes.description

        result = None
        if changes.content is not None:
            document.content = changes.content.strip()
            document.file_size = len(document.content)
            self._log(document_id, "Re-processing document for AI embeddings...")
            try:
                result = await self._process(document)
            except Exception as exc:
                self._log(document_id, f"Processing failed: {_describe(exc)}", "error")
                if isinstance(exc, ValidationError):
                    raise
                raise ConsistencyError(
                    f"Failed to reprocess document {document_id}: {exc}"
                ) from exc
            self._log(document_id, "Document update completed successfully!", "success")

        await self.document_repository.update(document)
        return document, result

    async def soft_delete(self, document_id: str) -> None:
        """Deactivate a document and withdraw its chunks from retrieval.

        Raises:
            NotFoundError: If the document does not exist.
        """
        if not await self.document_repository.soft_delete(document_id):
            raise NotFoundError("Document not found")
        removed = await self.vector_repository.delete_document_chunks(document_id)
        logger.info(
            "Soft-deleted document %s and withdrew %s chunks.", document_id, removed
        )

    async def get(self, document_id: str) -> Document:
        """Return a document by ID.

        Raises:
            NotFoundError: If the document does not exist.
        """
        document = await self.document_repository.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def list_active(self) -> list[Document]:
        """Return active documents, newest first."""
        return await self.document_repository.list_active()

    async def _process(self, document: Document) -> IngestResult:
        return await process_document(
            document.id,
            document.content,
            embedder=self.embedder,
            vector_repository=self.vector_repository,
            max_concurrency=self.max_concurrency,
            paragraph_min_chars=self.paragraph_min_chars,
            sentence_min_chars=self.sentence_min_chars,
            progress_callback=lambda message, level: self._log(document.id, message, level),
        )

    async def _rollback_upload(self, document_id: str) -> None:
        logger.warning("Rolling back upload of document %s.", document_id)
        await self.vector_repository.delete_document_chunks(document_id)
        await self.document_repository.delete(document_id)

    def _log(self, document_id: str, message: str, level: str = "info") -> None:
        if self.registry is not None:
            self.registry.publish(document_id, message, level)


def _describe(exc: Exception) -> str:
    if isinstance(exc, PortfolioChatbotError):
        return exc.safe_message
    return "internal error"
