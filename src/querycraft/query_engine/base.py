"""
Base query engine interface.
"""
import logging
from abc import ABC, abstractmethod
from typing import Union

from pydantic import BaseModel, ConfigDict

from querycraft.asyncio_utils import run_sync
from querycraft.node import QueryBundle
from querycraft.prompts import PromptMixin
from querycraft.response import RESPONSE_TYPE

logger = logging.getLogger(__name__)


class BaseQueryEngine(BaseModel, PromptMixin, ABC):
    """
    Answers a query end to end.

    Engines compose: routers, sub-question and transform engines delegate
    to other engines, and the retry engine wraps any of them.
    """

    verbose: bool = False

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    async def aquery(self, query: Union[str, QueryBundle]) -> RESPONSE_TYPE:
        """
        Answer a query.

        Args:
            query: The query text or bundle

        Returns:
            A Response, or a StreamingResponse for streaming engines
        """
        query_bundle = QueryBundle.from_query(query)
        if self.verbose:
            logger.info(f"> {type(self).__name__} query: {query_bundle.query_str}")
        return await self._aquery(query_bundle)

    def query(self, query: Union[str, QueryBundle]) -> RESPONSE_TYPE:
        return run_sync(self.aquery(query))

    @abstractmethod
    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        pass
