import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from pydantic import Field

from querycraft.errors import InvalidConfigError
from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TimeWeightedRetriever(BaseRetriever):
    """
    Re-scores the results of another retriever by recency.

    ``score = (1 - decay) * relevance + decay * recency`` where relevance is
    the wrapped retriever's score and recency is
    ``(1 - decay_rate) ** hours_since(metadata[time_key])``. Nodes without
    a usable timestamp get a recency of 0. The two components are recorded
    in the returned nodes' metadata as ``relevance_score`` and
    ``recency_score``.
    """

    retriever: Any = Field(description="Retriever producing the relevance scores")
    decay: float = Field(default=0.5, description="Weight of recency in the final score (0-1)")
    decay_rate: float = Field(default=0.01, description="Fraction of recency lost per hour (0-1)")
    time_key: str = Field(default="timestamp", description="Metadata key holding the node timestamp")
    now_fn: Callable[[], datetime] = Field(default=_utcnow, description="Clock, injectable for tests")

    def __init__(self, **data: Any):
        super().__init__(**data)
        if not 0.0 <= self.decay <= 1.0:
            raise InvalidConfigError(f"decay must be within [0, 1], got {self.decay}")
        if not 0.0 <= self.decay_rate < 1.0:
            raise InvalidConfigError(f"decay_rate must be within [0, 1), got {self.decay_rate}")

    def recency(self, node: Node, now: datetime) -> float:
        timestamp = _to_datetime(node.metadata.get(self.time_key))
        if timestamp is None:
            return 0.0
        hours_passed = max((now - timestamp).total_seconds() / 3600.0, 0.0)
        return (1.0 - self.decay_rate) ** hours_passed

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        nodes = await self.retriever.aretrieve(query_bundle, **kwargs)
        now = self.now_fn()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        results = []
        for n in nodes:
            recency = self.recency(n.node, now)
            score = (1.0 - self.decay) * n.score + self.decay * recency
            metadata = {**n.node.metadata, "relevance_score": n.score, "recency_score": recency}
            results.append(NodeWithScore(node=n.node.model_copy(update={"metadata": metadata}), score=score))
        return results
