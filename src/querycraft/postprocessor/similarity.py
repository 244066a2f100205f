from typing import List, Optional

from pydantic import Field

from querycraft.node import NodeWithScore, QueryBundle
from querycraft.postprocessor.base import BaseNodePostprocessor
from querycraft.retriever.base import sort_by_score


class SimilarityPostprocessor(BaseNodePostprocessor):
    """Drop nodes scoring below ``similarity_cutoff``."""

    similarity_cutoff: Optional[float] = Field(default=None, description="Minimum score kept; None keeps everything")

    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        if self.similarity_cutoff is None:
            return nodes
        return [n for n in nodes if n.score >= self.similarity_cutoff]


class TopKPostprocessor(BaseNodePostprocessor):
    """Keep the ``top_k`` best scored nodes, best first."""

    top_k: int = Field(gt=0)

    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        if len(nodes) <= self.top_k:
            return nodes
        return sort_by_score(nodes)[:self.top_k]
