"""
Base retriever interface.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.prompts import PromptMixin

logger = logging.getLogger(__name__)


def sort_by_score(nodes: List[NodeWithScore]) -> List[NodeWithScore]:
    """Descending by score; ties keep their original order."""
    return sorted(nodes, key=lambda n: n.score, reverse=True)


class BaseRetriever(BaseModel, PromptMixin, ABC):
    """
    Abstract base class for retriever implementations.

    Retrievers map a query to scored nodes. Results are always returned in
    descending score order (stable on ties), never contain nodes without
    content, and are cut to ``top_k`` when one is configured.
    """

    top_k: Optional[int] = Field(default=None, description="Maximum number of results; None means no limit")
    verbose: bool = False

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    def retrieve(
        self,
        query: Union[str, QueryBundle],
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        """
        Synchronous version of retrieve.

        Args:
            query: The query text or bundle
            top_k: Number of results to return (overrides default if provided)

        Returns:
            List of NodeWithScore objects, most relevant first
        """
        return run_sync(self.aretrieve(query, top_k=top_k, **kwargs))

    async def aretrieve(
        self,
        query: Union[str, QueryBundle],
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        """
        Retrieve nodes for a query.

        Args:
            query: The query text or bundle
            top_k: Number of results to return (overrides default if provided)
            **kwargs: Additional retrieval parameters

        Returns:
            List of NodeWithScore objects, most relevant first
        """
        query_bundle = QueryBundle.from_query(query)
        limit = top_k if top_k is not None else self.top_k
        nodes = await self._retrieve(query_bundle, top_k=limit, **kwargs)

        nodes = [n for n in nodes if n.node is not None and n.node.text]
        nodes = sort_by_score(nodes)
        if limit is not None:
            nodes = nodes[:limit]
        if self.verbose:
            logger.info(f"> {type(self).__name__} retrieved {len(nodes)} nodes for: {query_bundle.query_str}")
        return nodes

    @abstractmethod
    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        """
        Retrieve candidate nodes; ordering and truncation are applied by the caller.

        Args:
            query_bundle: The query
            top_k: The effective result limit, or None

        Returns:
            List of NodeWithScore objects
        """
        pass
