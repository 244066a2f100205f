"""
Base node postprocessor interface.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

from querycraft.asyncio_utils import run_sync
from querycraft.node import NodeWithScore, QueryBundle

logger = logging.getLogger(__name__)


class BaseNodePostprocessor(BaseModel, ABC):
    """
    Transform retrieved nodes before they reach a response synthesizer.

    Postprocessors filter, reorder or rewrite a list of scored nodes. They
    never modify the nodes they are given; rewritten nodes are copies.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    async def apostprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query: Union[str, QueryBundle, None] = None,
    ) -> List[NodeWithScore]:
        """
        Postprocess nodes retrieved for a query.

        Args:
            nodes: The retrieved nodes
            query: The query the nodes were retrieved for, if known

        Returns:
            The processed nodes
        """
        query_bundle = QueryBundle.from_query(query) if query is not None else None
        result = await self._postprocess_nodes(list(nodes), query_bundle)
        logger.debug(f"{type(self).__name__}: {len(nodes)} -> {len(result)} nodes")
        return result

    def postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query: Union[str, QueryBundle, None] = None,
    ) -> List[NodeWithScore]:
        """Synchronous version of apostprocess_nodes."""
        return run_sync(self.apostprocess_nodes(nodes, query))

    @abstractmethod
    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        pass
