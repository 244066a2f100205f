"""
Fusion of the results of several retrievers.
"""
import asyncio
import logging
import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import Field

from querycraft.errors import InvalidConfigError
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever, sort_by_score

logger = logging.getLogger(__name__)

RRF_K = 60.0


class FusionMode(str, Enum):
    """How scores from several retrievers are combined."""

    RELATIVE_SCORE = "relative_score"
    DIST_BASED_SCORE = "dist_based_score"
    RECIPROCAL_RANK = "reciprocal_rank"
    SIMPLE = "simple"


def _min_max(scores: Sequence[float], dist_based: bool) -> Tuple[float, float]:
    if not scores:
        return 0.0, 0.0
    if dist_based:
        mean = sum(scores) / len(scores)
        std = math.sqrt(sum((s - mean) ** 2 for s in scores) / len(scores))
        return mean - 3 * std, mean + 3 * std
    return min(scores), max(scores)


def _normalize(score: float, low: float, high: float) -> float:
    if high == low:
        return 1.0 if high > 0 else 0.0
    return (score - low) / (high - low)


class HybridRetriever(BaseRetriever):
    """
    Runs several retrievers on the same query and fuses their results.

    Fusion modes:
        - ``relative_score``: min-max normalise each retriever's scores and
          add them up weighted (a convex combination)
        - ``dist_based_score``: like ``relative_score`` but normalised over
          mean +/- 3 standard deviations
        - ``reciprocal_rank``: sum of ``1 / (rank + 60)``
        - ``simple``: highest score per node

    Nodes are identified by id across retrievers.

    Example:
        ```python
        retriever = HybridRetriever(
            retrievers=[vector_retriever, bm25_retriever],
            weights=[0.7, 0.3],
            top_k=5,
        )
        ```
    """

    retrievers: List[Any] = Field(description="Retrievers whose results are fused")
    weights: Optional[List[float]] = Field(default=None, description="Per-retriever weights, normalised to sum to 1")
    mode: FusionMode = Field(default=FusionMode.RELATIVE_SCORE)
    top_k: Optional[int] = Field(default=10, description="Number of results to return")
    use_async: bool = Field(default=True, description="Query the retrievers concurrently")

    def __init__(self, **data: Any):
        super().__init__(**data)
        if not self.retrievers:
            raise InvalidConfigError("HybridRetriever needs at least one retriever")
        weights = self.weights
        if weights is None:
            weights = [1.0] * len(self.retrievers)
        if len(weights) != len(self.retrievers):
            raise InvalidConfigError(
                f"Got {len(weights)} weights for {len(self.retrievers)} retrievers"
            )
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise InvalidConfigError(f"Weights must be non-negative and not all zero: {weights}")
        total = sum(weights)
        self.weights = [w / total for w in weights]

    async def _retrieve_all(self, query_bundle: QueryBundle, **kwargs: Any) -> List[List[NodeWithScore]]:
        if self.use_async:
            return list(await asyncio.gather(*(r.aretrieve(query_bundle, **kwargs) for r in self.retrievers)))
        return [await r.aretrieve(query_bundle, **kwargs) for r in self.retrievers]

    def _relative_score_fusion(self, results: List[List[NodeWithScore]], dist_based: bool) -> List[NodeWithScore]:
        fused: Dict[str, NodeWithScore] = {}
        for nodes, weight in zip(results, self.weights):
            low, high = _min_max([n.score for n in nodes], dist_based)
            for n in nodes:
                weighted = _normalize(n.score, low, high) * weight
                if n.node.id in fused:
                    fused[n.node.id].score += weighted
                else:
                    fused[n.node.id] = NodeWithScore(node=n.node, score=weighted)
        return list(fused.values())

    def _reciprocal_rank_fusion(self, results: List[List[NodeWithScore]]) -> List[NodeWithScore]:
        fused: Dict[str, NodeWithScore] = {}
        for nodes in results:
            for rank, n in enumerate(sort_by_score(nodes)):
                score = 1.0 / (rank + RRF_K)
                if n.node.id in fused:
                    fused[n.node.id].score += score
                else:
                    fused[n.node.id] = NodeWithScore(node=n.node, score=score)
        return list(fused.values())

    def _simple_fusion(self, results: List[List[NodeWithScore]]) -> List[NodeWithScore]:
        fused: Dict[str, NodeWithScore] = {}
        for nodes in results:
            for n in nodes:
                existing = fused.get(n.node.id)
                if existing is None or n.score > existing.score:
                    fused[n.node.id] = NodeWithScore(node=n.node, score=n.score)
        return list(fused.values())

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        results = await self._retrieve_all(query_bundle, **kwargs)
        if self.verbose:
            logger.info(f"> Fusing {[len(r) for r in results]} results with mode {self.mode.value}")

        if self.mode == FusionMode.RECIPROCAL_RANK:
            return self._reciprocal_rank_fusion(results)
        if self.mode == FusionMode.SIMPLE:
            return self._simple_fusion(results)
        return self._relative_score_fusion(results, dist_based=self.mode == FusionMode.DIST_BASED_SCORE)
