"""
Response types returned by synthesizers and query engines.
"""
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from querycraft.asyncio_utils import run_sync
from querycraft.node import NodeWithScore

EMPTY_RESPONSE = "Empty Response"


class Response(BaseModel):
    """
    A synthesized answer with its provenance.

    ``source_nodes`` are the scored nodes the answer was produced from, in
    retriever order.
    """

    response: str = EMPTY_RESPONSE
    source_nodes: List[NodeWithScore] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __str__(self) -> str:
        return self.response

    def get_formatted_sources(self, length: int = 100) -> str:
        """One line per source node: id, score and the beginning of its text."""
        texts = []
        for source_node in self.source_nodes:
            content = " ".join(source_node.node.text.split())
            if len(content) > length:
                content = content[:length] + "..."
            texts.append(f"> Source (Node id: {source_node.node.id}, score: {source_node.score:.3f}): {content}")
        return "\n\n".join(texts)


class StreamingResponse(BaseModel):
    """
    A response whose text arrives as a stream of deltas.

    The stream can be consumed once; afterwards the concatenated text is
    cached and every further read returns it. Concurrent consumers are not
    supported.

    Example:
        ```python
        streaming = await engine.aquery("What is the capital of France?")
        async for delta in streaming.async_response_gen():
            print(delta, end="")
        response = await streaming.aget_response()
        ```
    """

    response_gen: Any = Field(default=None, description="Async iterator of text deltas")
    source_nodes: List[NodeWithScore] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    _response_txt: Optional[str] = PrivateAttr(default=None)
    _consumed: bool = PrivateAttr(default=False)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_text(cls, text: str, source_nodes: Optional[List[NodeWithScore]] = None, **kwargs) -> "StreamingResponse":
        """A streaming response that is already materialized."""
        response = cls(source_nodes=source_nodes or [], **kwargs)
        response._response_txt = text
        response._consumed = True
        return response

    async def async_response_gen(self) -> AsyncIterator[str]:
        """
        Yield the text deltas.

        After the first full consumption this yields the cached text once.
        """
        if self._consumed:
            if self._response_txt:
                yield self._response_txt
            return
        if self.response_gen is None:
            self._consumed = True
            self._response_txt = ""
            return

        self._consumed = True
        parts: List[str] = []
        async for delta in self.response_gen:
            parts.append(delta)
            yield delta
        self._response_txt = "".join(parts)

    async def aget_response(self) -> Response:
        """Consume the stream if needed and return the materialized response."""
        if not self._consumed:
            async for _ in self.async_response_gen():
                pass
        if self._response_txt is None:
            raise RuntimeError("Stream was not fully consumed")
        return Response(
            response=self._response_txt or EMPTY_RESPONSE,
            source_nodes=self.source_nodes,
            metadata=self.metadata,
        )

    def get_response(self) -> Response:
        return run_sync(self.aget_response())

    @property
    def response_txt(self) -> Optional[str]:
        """The cached text, or None while the stream has not been consumed."""
        return self._response_txt

    def __str__(self) -> str:
        return self._response_txt or ""


RESPONSE_TYPE = Response | StreamingResponse


async def aresolve_response(response: RESPONSE_TYPE) -> Response:
    """Materialize a streaming response; plain responses are returned as is."""
    if isinstance(response, StreamingResponse):
        return await response.aget_response()
    return response


def merge_source_nodes(*groups: List[NodeWithScore]) -> List[NodeWithScore]:
    """Concatenate source node lists, keeping the first occurrence of every node id."""
    seen = set()
    merged = []
    for nodes in groups:
        for n in nodes:
            if n.node.id in seen:
                continue
            seen.add(n.node.id)
            merged.append(n)
    return merged
