import uuid
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, Field, PrivateAttr
from qdrant_client import QdrantClient
from qdrant_client.http import models
from tqdm import tqdm

from querycraft.filters import FilterLike
from querycraft.node import Chunk, DocumentNode, IndexNode, Node
from querycraft.vector_store.base import VectorStore
from querycraft.vector_store.qdrant_filter_translator import QdrantFilterTranslator

NODE_CLASSES: Dict[str, Type[Node]] = {
    cls.__name__: cls for cls in (Node, DocumentNode, Chunk, IndexNode)
}


class QdrantConfig(BaseModel):
    """Configuration for Qdrant vector store."""
    url: Optional[str] = None
    api_key: Optional[str] = None
    collection_name: str = "querycraft"
    distance: str = "Cosine"  # Can be "Cosine", "Euclid", or "Dot"


def _point_id(node_id: str) -> str:
    """Qdrant only accepts UUIDs and integers as point IDs."""
    try:
        return str(uuid.UUID(node_id))
    except ValueError:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, node_id))


class QdrantVectorStore(VectorStore):
    """
    Qdrant implementation of the VectorStore interface.

    Example:
        ```python
        client = QdrantClient(":memory:")
        store = QdrantVectorStore(client=client, collection_name="docs", embeddings=embeddings)
        ```
    """

    client: Any = Field(description="QdrantClient instance")
    collection_name: str = Field(description="Name of the collection")
    distance: str = Field(default="Cosine", description="Distance metric (Cosine, Euclid, or Dot)")
    vector_size: Optional[int] = Field(default=None, description="Vector size; taken from the embeddings model when unset")

    _translator: QdrantFilterTranslator = PrivateAttr(default_factory=QdrantFilterTranslator)

    def __init__(
        self,
        client: QdrantClient,
        collection_name: str,
        embeddings: Optional[Any] = None,
        distance: str = "Cosine",
        vector_size: Optional[int] = None,
        **kwargs
    ):
        """
        Initialize the Qdrant vector store.

        Args:
            client: QdrantClient instance
            collection_name: Name of the collection to use
            embeddings: Embeddings model for generating node embeddings
            distance: Distance metric to use ("Cosine", "Euclid", or "Dot")
            vector_size: Vector size of the collection
        """
        super().__init__(
            client=client,
            collection_name=collection_name,
            distance=distance,
            vector_size=vector_size,
            **kwargs
        )
        self._embeddings = embeddings
        self._ensure_collection()

    def _ensure_collection(self) -> None:
        if self.client.collection_exists(self.collection_name):
            return
        size = self.vector_size
        if size is None:
            if self._embeddings is None:
                raise ValueError("vector_size or an embeddings model is required to create a collection")
            size = self._embeddings.dimension
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(
                size=size,
                distance=getattr(models.Distance, self.distance.upper()),
            ),
        )

    def _to_node(self, payload: Dict[str, Any], vector: Any) -> Node:
        data = dict(payload)
        node_class = NODE_CLASSES.get(data.pop("_node_class", None), Node)
        if vector is not None and not isinstance(vector, dict):
            data["embedding"] = vector
        return node_class(**data)

    async def insert_nodes(self, nodes: List[Node], show_progress: bool = False) -> List[str]:
        """
        Upsert nodes into the collection.

        Args:
            nodes: Nodes with or without embeddings
            show_progress: Whether to show progress bar

        Returns:
            List of node IDs that were added or updated
        """
        if not nodes:
            return []
        await self._ensure_embeddings(nodes)

        points = []
        for node in tqdm(nodes, desc="Processing nodes", disable=not show_progress):
            payload = node.model_dump(mode="json")
            vector = payload.pop("embedding")
            payload["_node_class"] = node.__class__.__name__
            points.append(models.PointStruct(id=_point_id(node.id), vector=vector, payload=payload))

        self.client.upsert(collection_name=self.collection_name, points=points)
        return [node.id for node in nodes]

    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 4,
        filters: Optional[FilterLike] = None,
    ) -> List[Tuple[Node, float]]:
        query_filter = self._translator.translate(filters) if filters else None
        search_result = self.client.query_points(
            collection_name=self.collection_name,
            query=query_embedding,
            limit=k,
            query_filter=query_filter,
            with_vectors=True,
        )
        return [(self._to_node(hit.payload, hit.vector), hit.score) for hit in search_result.points]

    async def delete(self, ids: List[str]) -> bool:
        self.client.delete(
            collection_name=self.collection_name,
            points_selector=models.PointIdsList(points=[_point_id(i) for i in ids]),
        )
        return True

    async def get_node(self, node_id: str) -> Optional[Node]:
        result = self.client.retrieve(
            collection_name=self.collection_name,
            ids=[_point_id(node_id)],
            with_vectors=True,
        )
        if not result:
            return None
        return self._to_node(result[0].payload, result[0].vector)

    @classmethod
    def from_config(cls, config: Union[Dict[str, Any], QdrantConfig], embeddings: Optional[Any] = None) -> 'QdrantVectorStore':
        """
        Create a QdrantVectorStore from a configuration.

        Without a URL an in-memory client is used.
        """
        if not isinstance(config, QdrantConfig):
            config = QdrantConfig(**config)
        client = QdrantClient(url=config.url, api_key=config.api_key) if config.url else QdrantClient(":memory:")
        return cls(
            client=client,
            collection_name=config.collection_name,
            embeddings=embeddings,
            distance=config.distance,
        )

    @classmethod
    def from_settings(cls, embeddings: Optional[Any] = None, settings=None) -> 'QdrantVectorStore':
        from querycraft.settings import get_settings
        settings = settings or get_settings()
        return cls.from_config(
            QdrantConfig(url=settings.qdrant_url, collection_name=settings.collection_name),
            embeddings=embeddings,
        )
