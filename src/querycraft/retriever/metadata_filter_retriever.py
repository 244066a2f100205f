import logging
from typing import Any, List, Optional

from pydantic import Field

from querycraft.filters import FilterLike, to_filter
from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever

logger = logging.getLogger(__name__)

MIN_SCORE = 0.1
TERM_BONUS = 0.2
MIN_TERM_LENGTH = 3


class MetadataFilterRetriever(BaseRetriever):
    """
    Retriever that selects nodes by metadata and ranks them by word overlap.

    Every node matching the filters scores at least 0.1; each query word
    longer than three characters found in the node text adds 0.2.
    """

    nodes: List[Node] = Field(default_factory=list, description="Nodes to filter")
    filters: Optional[Any] = Field(default=None, description="Default metadata filters")

    def _score(self, node: Node, query_words: List[str]) -> float:
        text = node.get_content().lower()
        score = sum(TERM_BONUS for word in query_words if word in text)
        return max(score, MIN_SCORE)

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        filters: Optional[FilterLike] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        active = filters if filters is not None else query_bundle.filters
        if active is None:
            active = self.filters
        metadata_filter = to_filter(active)

        query_words = [w for w in query_bundle.query_str.lower().split() if len(w) > MIN_TERM_LENGTH]
        results = []
        for node in self.nodes:
            if metadata_filter is not None and not metadata_filter.matches(node.metadata):
                continue
            results.append(NodeWithScore(node=node, score=self._score(node, query_words)))
        return results

    def with_nodes(self, nodes: List[Node]) -> "MetadataFilterRetriever":
        """A retriever with the same filters over ``nodes``."""
        return type(self)(nodes=nodes, filters=self.filters, top_k=self.top_k, verbose=self.verbose)
