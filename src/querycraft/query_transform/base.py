import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Union

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import QueryBundle
from querycraft.prompts import DEFAULT_HYDE_PROMPT, PromptMixin, PromptTemplate

logger = logging.getLogger(__name__)


class BaseQueryTransform(BaseModel, PromptMixin, ABC):
    """Rewrites a query before retrieval. Always returns a new bundle."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def _arun(self, query_bundle: QueryBundle) -> QueryBundle:
        pass

    async def arun(self, query: Union[str, QueryBundle]) -> QueryBundle:
        """
        Transform a query.

        Args:
            query: The query text or bundle

        Returns:
            The transformed query bundle
        """
        return await self._arun(QueryBundle.from_query(query))

    def run(self, query: Union[str, QueryBundle]) -> QueryBundle:
        return run_sync(self.arun(query))


class IdentityQueryTransform(BaseQueryTransform):
    """Returns the query unchanged."""

    async def _arun(self, query_bundle: QueryBundle) -> QueryBundle:
        return query_bundle


class HyDEQueryTransform(BaseQueryTransform):
    """
    Hypothetical Document Embeddings.

    The LLM writes a passage answering the query and retrieval embeds that
    passage instead of the query (and also the original query when
    ``include_original`` is set). ``query_str`` is kept so synthesizers
    still answer the user's question.
    """

    llm: Any = Field(description="LLM writing the hypothetical document")
    hyde_prompt: PromptTemplate = Field(default=DEFAULT_HYDE_PROMPT)
    include_original: bool = Field(default=True, description="Also embed the original query")
    verbose: bool = False

    _prompt_attrs: ClassVar[Dict[str, str]] = {"hyde_prompt": "hyde_prompt"}

    async def _arun(self, query_bundle: QueryBundle) -> QueryBundle:
        hypothetical_doc = await self.llm.complete(self.hyde_prompt.format(query_str=query_bundle.query_str))
        if self.verbose:
            logger.info(f"> Hypothetical document: {hypothetical_doc}")
        embedding_strs = [hypothetical_doc]
        if self.include_original:
            embedding_strs.extend(query_bundle.embedding_strs)
        return QueryBundle(
            query_str=query_bundle.query_str,
            filters=query_bundle.filters,
            custom_embedding_strs=tuple(embedding_strs),
        )
