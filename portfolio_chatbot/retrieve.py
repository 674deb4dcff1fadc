"""Similarity search helpers.

Retrieval is an exhaustive scan: every stored chunk vector is scored against
the query with cosine similarity and the best ``k`` are kept. The scan lives
behind ``VectorRepository.top_k`` so an indexed implementation can replace it
without touching callers.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, Tuple, TypeVar

import numpy as np

from portfolio_chatbot.exceptions import VectorDimensionError
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface
from portfolio_chatbot.models.chat import RetrievedContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_DOCUMENT_TITLE = "Untitled document"


@dataclass
class RetrievedChunk:
    """Container for a retrieved chunk and its similarity score."""

    document_id: str
    doc_title: str
    text: str
    score: float
    chunk_index: int
    page_number: int | None = None

    def as_context(self) -> RetrievedContext:
        """Return the record stored on the assistant message."""
        return RetrievedContext(
            document_id=self.document_id,
            document_title=self.doc_title,
            similarity=self.score,
            content=self.text,
            page_number=self.page_number,
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine of the angle between two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        float: Similarity in [-1, 1]; 0.0 when either vector has zero magnitude.

    Raises:
        VectorDimensionError: If the vectors differ in length.
    """
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape:
        raise VectorDimensionError(
            f"Vectors must have the same length ({vec_a.size} != {vec_b.size})"
        )
    norm_product = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
    if norm_product == 0.0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / norm_product)


def rank_top_k(
    query: Sequence[float],
    rows: Iterable[T],
    k: int,
    vector_of: Callable[[T], Sequence[float]],
) -> list[Tuple[T, float]]:
    """Score every row against the query and keep the ``k`` best.

    Args:
        query: Query embedding.
        rows: Candidate rows in storage order.
        k: Maximum number of results.
        vector_of: Extracts the embedding from a row.

    Returns:
        list[tuple[T, float]]: Rows with scores, best first; equal scores keep
        storage order.
    """
    if k <= 0:
        return []
    scored = ((row, cosine_similarity(query, vector_of(row))) for row in rows)
    # nlargest is documented as sorted(..., reverse=True)[:k], which is stable.
    return heapq.nlargest(k, scored, key=lambda pair: pair[1])


async def retrieve_chunks(
    *,
    vector_repository,
    document_repository,
    embedder: EmbedderInterface,
    query: str,
    k: int,
) -> list[RetrievedChunk]:
    """Embed a query and return the ``k`` most similar chunks with titles.

    Args:
        vector_repository: Store exposing ``top_k``.
        document_repository: Used to resolve owning document titles.
        embedder: Embedder used for the query vector.
        query: Text driving retrieval.
        k: Number of chunks to return.

    Returns:
        list[RetrievedChunk]: Ranked retrieval results.
    """
    if not query.strip():
        logger.warning("retrieve_chunks invoked with empty query.")
        return []

    query_vector = await asyncio.to_thread(embedder.embed_query, query)
    results = await vector_repository.top_k(query_vector, k)
    titles = await document_repository.get_titles({r.document_id for r in results})

    chunks = [
        RetrievedChunk(
            document_id=result.document_id,
            doc_title=titles.get(result.document_id, UNKNOWN_DOCUMENT_TITLE),
            text=result.content,
            score=result.score,
            chunk_index=result.chunk_index,
            page_number=result.page_number,
        )
        for result in results
    ]
    logger.debug(
        "Retrieved %s chunks for query '%s' (best score %.3f).",
        len(chunks),
        query,
        chunks[0].score if chunks else 0.0,
    )
    return chunks
