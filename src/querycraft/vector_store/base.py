from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, PrivateAttr

from querycraft.filters import FilterLike
from querycraft.node import Node


class VectorStore(BaseModel, ABC):
    """
    Abstract base class for vector store implementations.

    Stores hold nodes with embeddings and answer nearest-neighbour queries.
    Nodes without an embedding are embedded on insert when an embeddings
    model is configured.
    """

    _embeddings: Any = PrivateAttr(default=None)

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @property
    def embeddings(self):
        return self._embeddings

    async def _ensure_embeddings(self, nodes: List[Node]) -> None:
        missing = [node for node in nodes if not node.embedding]
        if not missing:
            return
        if self._embeddings is None:
            raise ValueError("Node missing embedding and no embeddings model configured")
        vectors = await self._embeddings.embed_documents([node.text for node in missing])
        for node, vector in zip(missing, vectors):
            node.embedding = vector

    @abstractmethod
    async def insert_nodes(self, nodes: List[Node], show_progress: bool = False) -> List[str]:
        """
        Add nodes to the store, embedding those that have no embedding yet.

        Args:
            nodes: Nodes to add
            show_progress: Whether to show a progress bar

        Returns:
            IDs of the added nodes
        """
        pass

    @abstractmethod
    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 4,
        filters: Optional[FilterLike] = None,
    ) -> List[Tuple[Node, float]]:
        """
        Search for the nodes closest to a query embedding.

        Args:
            query_embedding: The embedding vector to search with
            k: Maximum number of results
            filters: Metadata filters the results must satisfy

        Returns:
            (node, score) pairs, most similar first
        """
        pass

    @abstractmethod
    async def delete(self, ids: List[str]) -> bool:
        pass

    @abstractmethod
    async def get_node(self, node_id: str) -> Optional[Node]:
        """
        Retrieve a single node by its ID.

        Returns:
            The node if found, None otherwise
        """
        pass
