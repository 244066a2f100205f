"""
Response synthesizers turn a query and retrieved nodes into an answer.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.prompts import PromptMixin
from querycraft.response import EMPTY_RESPONSE, Response, StreamingResponse
from querycraft.text_splitter import ByteTokenizer

logger = logging.getLogger(__name__)

ResponseText = Union[str, AsyncIterator[str]]


class ResponseMode(str, Enum):
    """Reduction strategy used to combine retrieved chunks into an answer."""

    SIMPLE_SUMMARIZE = "simple_summarize"
    REFINE = "refine"
    COMPACT = "compact"
    TREE_SUMMARIZE = "tree_summarize"
    ACCUMULATE = "accumulate"
    COMPACT_ACCUMULATE = "compact_accumulate"
    GENERATION = "generation"
    NO_TEXT = "no_text"
    CONTEXT_ONLY = "context_only"


class BaseSynthesizer(BaseModel, PromptMixin, ABC):
    """
    Base class for response synthesizers.

    Subclasses implement ``aget_response`` over plain text chunks; this class
    turns nodes into chunks and wraps the result with its provenance.

    Chunk compaction measures size with ``tokenizer`` (UTF-8 bytes by default)
    against ``max_chunk_size``.
    """

    llm: Any = Field(default=None, description="LLM used to generate answers")
    streaming: bool = Field(default=False, description="Stream the final LLM call")
    tokenizer: Any = Field(default_factory=ByteTokenizer, description="Size metric used for compaction")
    max_chunk_size: int = Field(default=4096, description="Maximum size of a compacted chunk")
    chunk_separator: str = Field(default="\n\n", description="Separator between compacted chunks")
    verbose: bool = False

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    def _size(self, text: str) -> int:
        return len(self.tokenizer.encode(text))

    def compact_text_chunks(self, text_chunks: Sequence[str]) -> List[str]:
        """
        Greedily join consecutive chunks while they fit into ``max_chunk_size``.

        A chunk that is larger than the maximum on its own is kept as is.
        """
        separator_size = self._size(self.chunk_separator)
        compacted: List[str] = []
        current: List[str] = []
        current_size = 0
        for chunk in text_chunks:
            chunk_size = self._size(chunk)
            if current and current_size + separator_size + chunk_size > self.max_chunk_size:
                compacted.append(self.chunk_separator.join(current))
                current, current_size = [], 0
            if current:
                current_size += separator_size
            current.append(chunk)
            current_size += chunk_size
        if current:
            compacted.append(self.chunk_separator.join(current))
        return compacted

    async def _predict(self, prompt: str) -> str:
        if self.verbose:
            logger.info(f"> LLM prompt:\n{prompt}")
        response = await self.llm.complete(prompt)
        return response if response is not None else ""

    def _stream(self, prompt: str) -> AsyncIterator[str]:
        if self.verbose:
            logger.info(f"> LLM streaming prompt:\n{prompt}")
        return self.llm.stream(prompt)

    @abstractmethod
    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        """
        Produce an answer from plain text chunks.

        Args:
            query_str: The query
            text_chunks: Context chunks in caller order

        Returns:
            The answer text, or an async iterator of deltas when streaming
        """
        pass

    def get_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        return run_sync(self.aget_response(query_str, text_chunks, **kwargs))

    async def asynthesize(
        self,
        query: Union[str, QueryBundle],
        nodes: List[NodeWithScore],
        additional_source_nodes: Optional[Sequence[NodeWithScore]] = None,
        **kwargs: Any,
    ) -> Union[Response, StreamingResponse]:
        """
        Answer ``query`` from ``nodes``.

        Args:
            query: The query text or bundle
            nodes: Retrieved nodes, used in the given order
            additional_source_nodes: Extra provenance appended to the response

        Returns:
            A Response, or a StreamingResponse when ``streaming`` is enabled
        """
        source_nodes = list(nodes) + list(additional_source_nodes or [])
        if not nodes:
            if self.streaming:
                return StreamingResponse.from_text(EMPTY_RESPONSE, source_nodes=source_nodes)
            return Response(response=EMPTY_RESPONSE, source_nodes=source_nodes)

        query_str = query.query_str if isinstance(query, QueryBundle) else query
        text_chunks = [n.node.get_content() for n in nodes]
        result = await self.aget_response(query_str, text_chunks, **kwargs)
        return self._prepare_response_output(result, source_nodes)

    def synthesize(
        self,
        query: Union[str, QueryBundle],
        nodes: List[NodeWithScore],
        additional_source_nodes: Optional[Sequence[NodeWithScore]] = None,
        **kwargs: Any,
    ) -> Union[Response, StreamingResponse]:
        return run_sync(self.asynthesize(query, nodes, additional_source_nodes, **kwargs))

    @staticmethod
    def _metadata_for_response(nodes: Sequence[NodeWithScore]) -> Dict[str, Any]:
        return {n.node.id: n.node.metadata for n in nodes}

    def _prepare_response_output(
        self,
        result: ResponseText,
        source_nodes: List[NodeWithScore],
    ) -> Union[Response, StreamingResponse]:
        metadata = self._metadata_for_response(source_nodes)
        if isinstance(result, str):
            if self.streaming:
                return StreamingResponse.from_text(result, source_nodes=source_nodes, metadata=metadata)
            return Response(response=result, source_nodes=source_nodes, metadata=metadata)
        return StreamingResponse(response_gen=result, source_nodes=source_nodes, metadata=metadata)
