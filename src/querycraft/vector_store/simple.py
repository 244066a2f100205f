import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field
from tqdm import tqdm

from querycraft.filters import FilterLike, to_filter
from querycraft.node import Node
from querycraft.vector_store.base import VectorStore


def cosine_similarity(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class SimpleVectorStore(VectorStore):
    """
    In-memory vector store using cosine similarity.

    Example:
        ```python
        store = SimpleVectorStore(embeddings=my_embeddings)
        await store.insert_nodes(nodes)
        hits = await store.similarity_search(await my_embeddings.embed_query("paris"), k=2)
        ```
    """

    nodes: Dict[str, Node] = Field(default_factory=dict, description="Stored nodes by ID")

    def __init__(self, embeddings: Optional[Any] = None, **kwargs):
        super().__init__(**kwargs)
        self._embeddings = embeddings

    async def insert_nodes(self, nodes: List[Node], show_progress: bool = False) -> List[str]:
        if not nodes:
            return []
        await self._ensure_embeddings(nodes)
        ids = []
        for node in tqdm(nodes, desc="Inserting nodes", disable=not show_progress):
            self.nodes[node.id] = node
            ids.append(node.id)
        return ids

    async def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 4,
        filters: Optional[FilterLike] = None,
    ) -> List[Tuple[Node, float]]:
        metadata_filter = to_filter(filters)
        scored = []
        for node in self.nodes.values():
            if not node.has_embedding():
                continue
            if metadata_filter is not None and not metadata_filter.matches(node.metadata):
                continue
            scored.append((node, cosine_similarity(query_embedding, node.embedding)))
        # stable: equal scores keep insertion order
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:k]

    async def delete(self, ids: List[str]) -> bool:
        for node_id in ids:
            self.nodes.pop(node_id, None)
        return True

    async def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def __len__(self) -> int:
        return len(self.nodes)
