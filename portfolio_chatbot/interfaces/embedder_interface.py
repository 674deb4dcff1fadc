"""Embedder interface for the document and query pipelines."""

from abc import ABC, abstractmethod


class EmbedderInterface(ABC):
    """Abstract interface for text embedding models."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a document chunk.

        Args:
            text: Chunk text

        Returns:
            Fixed-length embedding vector
        """
        pass

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed a search query.

        Args:
            text: Query text

        Returns:
            Embedding vector comparable with chunk embeddings
        """
        pass
