"""Embedding utilities using FastEmbed."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Any, Iterable, List, cast

from fastembed import TextEmbedding

from portfolio_chatbot.config import get_settings
from portfolio_chatbot.exceptions import UpstreamError
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface

logger = logging.getLogger(__name__)

# Task prefixes expected by the nomic embedding family.
_NOMIC_PREFIXES = ("search_document: ", "search_query: ")


def _to_python_floats(vector: Iterable[float]) -> List[float]:
    """Coerce numpy/array outputs into plain Python floats for serialization.

    Args:
        vector: Iterable of numeric values produced by the embedder.

    Returns:
        list[float]: Cleaned list suitable for MongoDB storage.
    """
    if hasattr(vector, "tolist"):
        raw = cast(Any, vector).tolist()
        if isinstance(raw, list):
            return [float(value) for value in raw]
        return [float(raw)]
    return [float(value) for value in vector]


class FastEmbedder(EmbedderInterface):
    """Thin wrapper around FastEmbed with simple query caching."""

    def __init__(
        self,
        model_name: str,
        cache_size: int = 256,
        passage_prefix: str | None = None,
        query_prefix: str | None = None,
    ) -> None:
        """Load the embedding model and configure caching.

        Args:
            model_name: Name of the FastEmbed model to load.
            cache_size: Maximum number of cached query embeddings.
            passage_prefix: Text prepended to chunks before embedding.
            query_prefix: Text prepended to queries before embedding.
        """
        self.model_name = model_name
        self.cache_size = cache_size
        default_passage, default_query = (
            _NOMIC_PREFIXES if "nomic" in model_name.lower() else ("", "")
        )
        self.passage_prefix = default_passage if passage_prefix is None else passage_prefix
        self.query_prefix = default_query if query_prefix is None else query_prefix
        self._model = TextEmbedding(model_name=model_name)
        self._query_cache: OrderedDict[str, List[float]] = OrderedDict()
        self._cache_lock = threading.Lock()
        logger.info("Loaded FastEmbed model '%s'.", model_name)

    def embed(self, text: str) -> List[float]:
        """Embed a single document chunk.

        Args:
            text: Chunk text.

        Returns:
            list[float]: Embedding vector.

        Raises:
            UpstreamError: If the model call fails.
        """
        return self._embed_one(f"{self.passage_prefix}{text.strip()}")

    def embed_query(self, text: str) -> List[float]:
        """Embed a user query with a lightweight LRU cache.

        Args:
            text: Query string supplied by the user.

        Returns:
            list[float]: Embedding vector representing the query.
        """
        key = text.strip()
        # Queries are embedded from worker threads.
        with self._cache_lock:
            if key in self._query_cache:
                self._query_cache.move_to_end(key)
                logger.debug("Cache hit for query embedding.")
                return self._query_cache[key]
        vector = self._embed_one(f"{self.query_prefix}{key}")
        with self._cache_lock:
            self._query_cache[key] = vector
            if len(self._query_cache) > self.cache_size:
                self._query_cache.popitem(last=False)
            logger.debug(
                "Cache miss for query embedding; cache size=%s.", len(self._query_cache)
            )
        return vector

    def _embed_one(self, text: str) -> List[float]:
        try:
            vector = next(iter(self._model.embed([text], batch_size=1)))
        except Exception as exc:
            logger.exception("Embedding model '%s' failed.", self.model_name)
            raise UpstreamError(f"Embedding failed: {exc}") from exc
        return _to_python_floats(vector)


_EMBEDDER: FastEmbedder | None = None


def get_embedder() -> FastEmbedder:
    """Return a cached embedder instance.

    Returns:
        FastEmbedder: Singleton embedder shared across the app.
    """
    global _EMBEDDER  # noqa: PLW0603  # keep singleton for performance
    if _EMBEDDER is None:
        settings = get_settings()
        _EMBEDDER = FastEmbedder(
            settings.embedding_model, cache_size=settings.embedding_cache_size
        )
        logger.debug(
            "Created embedder singleton for model '%s'.", settings.embedding_model
        )
    return _EMBEDDER
