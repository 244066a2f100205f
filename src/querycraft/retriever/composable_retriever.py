import logging
from typing import Any, List, Optional

from pydantic import Field

from querycraft.node import NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever

logger = logging.getLogger(__name__)


class ComposableRetriever(BaseRetriever):
    """
    Two-stage retrieval: the second stage only sees what the first returned.

    A second stage that supports ``with_nodes`` (BM25, metadata filter) is
    rebuilt over the first stage's nodes. Any other retriever is queried
    normally and its results are restricted to the first stage's nodes.

    Example:
        ```python
        retriever = ComposableRetriever(
            first=MetadataFilterRetriever(nodes=nodes, filters={"category": "technology"}),
            second=BM25Retriever(top_k=3),
        )
        ```
    """

    first: Any = Field(description="Candidate generating retriever")
    second: Any = Field(description="Retriever ranking the candidates")

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        candidates = await self.first.aretrieve(query_bundle, **kwargs)
        if self.verbose:
            logger.info(f"> First stage returned {len(candidates)} nodes")
        if not candidates:
            return []

        if hasattr(self.second, "with_nodes"):
            second = self.second.with_nodes([n.node for n in candidates])
            results = await second.aretrieve(query_bundle)
        else:
            allowed = {n.node.id for n in candidates}
            results = [n for n in await self.second.aretrieve(query_bundle) if n.node.id in allowed]

        if self.verbose:
            logger.info(f"> Second stage returned {len(results)} nodes")
        return results
