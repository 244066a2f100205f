from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, ConfigDict

from querycraft.asyncio_utils import run_sync


class Embeddings(BaseModel, ABC):
    """
    Abstract base class for embedding models.

    Used by vector retrievers, the vector index and HyDE.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Embed a list of documents.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors, in input order
        """
        pass

    async def embed_query(self, text: str) -> List[float]:
        """
        Embed a single query text.

        Args:
            text: Query text to embed

        Returns:
            Embedding vector
        """
        embeddings = await self.embed_documents([text])
        return embeddings[0]

    def embed_documents_sync(self, texts: List[str]) -> List[List[float]]:
        return run_sync(self.embed_documents(texts))

    def embed_query_sync(self, text: str) -> List[float]:
        return run_sync(self.embed_query(text))

    @property
    @abstractmethod
    def dimension(self) -> int:
        """
        Get the dimension of the embedding vectors.

        Returns:
            Dimension of the embedding vectors
        """
        pass


def mean_embedding(embeddings: List[List[float]]) -> List[float]:
    """Element-wise mean of several embeddings."""
    if not embeddings:
        raise ValueError("Cannot average an empty list of embeddings")
    if len(embeddings) == 1:
        return list(embeddings[0])
    count = len(embeddings)
    return [sum(values) / count for values in zip(*embeddings)]
