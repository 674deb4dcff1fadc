"""Document ingestion pipeline: chunk, embed and store."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from portfolio_chatbot.exceptions import NoContentError
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface
from portfolio_chatbot.models.vector_document import VectorDocument
from portfolio_chatbot.repositories.vector_repository import VectorRepository
from portfolio_chatbot.utils_text import (
    PARAGRAPH_MIN_CHARS,
    SENTENCE_MIN_CHARS,
    chunk_text,
)

logger = logging.getLogger(__name__)

# (message, level) where level is "info", "success" or "error"
ProgressCallback = Callable[[str, str], None]


@dataclass
class IngestResult:
    """Summary of an ingestion run."""

    document_id: str
    chunk_count: int


async def process_document(
    document_id: str,
    content: str,
    *,
    embedder: EmbedderInterface,
    vector_repository: VectorRepository,
    max_concurrency: int = 0,
    paragraph_min_chars: int = PARAGRAPH_MIN_CHARS,
    sentence_min_chars: int = SENTENCE_MIN_CHARS,
    progress_callback: Optional[ProgressCallback] = None,
) -> IngestResult:
    """Chunk a document, embed every chunk, and store the new chunk set.

    Chunks are embedded concurrently. Nothing is written until every embedding
    has succeeded, and the write replaces whatever chunks the document had
    before, so the stored chunk indices are always ``0..N-1``.

    Args:
        document_id: Owning document ID.
        content: Full document text.
        embedder: Embedder used for passage embeddings.
        vector_repository: Store receiving the chunks.
        max_concurrency: Cap on simultaneous embedding calls; 0 means no cap.
        paragraph_min_chars: Paragraph length threshold for the chunker.
        sentence_min_chars: Sentence length threshold for the chunker.
        progress_callback: Optional hook receiving progress messages.

    Returns:
        IngestResult: Number of chunks stored for the document.

    Raises:
        NoContentError: If the text yields no chunks.
        UpstreamError: If an embedding call fails.
    """

    def notify(message: str, level: str = "info") -> None:
        if progress_callback:
            progress_callback(message, level)
        logger.debug("Document %s: %s", document_id, message)

    logger.info(
        "Starting processing for document %s (%s characters).",
        document_id,
        len(content or ""),
    )
    chunks = chunk_text(
        content,
        paragraph_min_chars=paragraph_min_chars,
        sentence_min_chars=sentence_min_chars,
    )
    if not chunks:
        raise NoContentError("No content provided for processing")
    notify(f"Split content into {len(chunks)} chunks.")

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
    embedded = 0

    async def embed_chunk(index: int, chunk: str) -> VectorDocument:
        nonlocal embedded
        guard = semaphore if semaphore is not None else contextlib.nullcontext()
        async with guard:
            vector = await asyncio.to_thread(embedder.embed, chunk)
        embedded += 1
        notify(f"Embedded chunk {embedded}/{len(chunks)}.")
        return VectorDocument(
            document_id=document_id,
            content=chunk,
            embedding=vector,
            chunk_index=index,
            page_number=0,
        )

    vector_docs = await asyncio.gather(
        *(embed_chunk(index, chunk) for index, chunk in enumerate(chunks))
    )

    stored = await vector_repository.replace_document_chunks(document_id, vector_docs)
    notify(f"Stored {stored} chunks.", "success")
    logger.info("Stored %s chunks for document %s.", stored, document_id)
    return IngestResult(document_id=document_id, chunk_count=stored)
