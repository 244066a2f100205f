"""
Pytest configuration and shared stubs for the querycraft tests.

Nothing here talks to the network: LLMs, embeddings, retrievers and query
engines are replaced by small scripted stand-ins.
"""

import re
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence

import pytest
from pydantic import Field, PrivateAttr

from querycraft.embeddings import Embeddings
from querycraft.errors import UpstreamError
from querycraft.llms import LLM, ChatMessage, ChatResponse, ToolCall
from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.query_engine import BaseQueryEngine
from querycraft.response import Response
from querycraft.retriever import BaseRetriever


class MockLLM(LLM):
    """
    LLM returning scripted replies.

    Replies are taken from ``responses`` in order; once they run out
    ``default_response`` is used. ``response_fn`` computes the reply from the
    prompt instead when given. Every prompt is recorded.
    """

    responses: List[str] = Field(default_factory=list)
    default_response: str = "mock response"
    response_fn: Optional[Callable[[str], str]] = None

    _prompts: List[str] = PrivateAttr(default_factory=list)
    _messages: List[List[ChatMessage]] = PrivateAttr(default_factory=list)

    @property
    def prompts(self) -> List[str]:
        return self._prompts

    @property
    def calls(self) -> int:
        return len(self._messages)

    @property
    def history(self) -> List[List[ChatMessage]]:
        """The message lists of every call, in call order."""
        return self._messages

    def _next_reply(self, prompt: str) -> str:
        if self.response_fn is not None:
            return self.response_fn(prompt)
        index = len(self._prompts) - 1
        if index < len(self.responses):
            return self.responses[index]
        return self.default_response

    async def chat(self, messages: Sequence[ChatMessage], **kwargs: Any) -> ChatResponse:
        self._messages.append(list(messages))
        prompt = messages[-1].content if messages else ""
        self._prompts.append(prompt)
        return ChatResponse(message=ChatMessage.assistant_message(self._next_reply(prompt)))

    async def stream(self, prompt: str, **kwargs: Any) -> AsyncIterator[str]:
        text = await self.complete(prompt, **kwargs)
        for part in re.findall(r"\S+\s*", text):
            yield part


class ToolCallingMockLLM(MockLLM):
    """
    MockLLM with native tool calling.

    ``tool_calls`` holds one entry per call of ``chat_with_tools``: a list of
    ``ToolCall`` to request, or None for a plain text answer. When the script
    runs out ``repeat_last`` decides whether the last entry is replayed.
    """

    tool_calls: List[Optional[List[ToolCall]]] = Field(default_factory=list)
    repeat_last: bool = False

    _tool_requests: List[List[ChatMessage]] = PrivateAttr(default_factory=list)

    @property
    def tool_requests(self) -> List[List[ChatMessage]]:
        return self._tool_requests

    async def chat_with_tools(self, messages: Sequence[ChatMessage], tools: Sequence[Any], **kwargs: Any) -> ChatResponse:
        index = len(self._tool_requests)
        self._tool_requests.append(list(messages))
        self._prompts.append(messages[-1].content if messages else "")
        if index < len(self.tool_calls):
            calls = self.tool_calls[index]
        elif self.repeat_last and self.tool_calls:
            calls = self.tool_calls[-1]
        else:
            calls = None
        if calls:
            fresh = [call.model_copy(update={"id": f"{call.id}_{index}"}) for call in calls]
            return ChatResponse(message=ChatMessage.assistant_message("", tool_calls=fresh))
        return ChatResponse(message=ChatMessage.assistant_message(self._next_reply(self._prompts[-1])))


class FailingLLM(MockLLM):
    """LLM whose every call fails."""

    async def chat(self, messages: Sequence[ChatMessage], **kwargs: Any) -> ChatResponse:
        self._prompts.append(messages[-1].content if messages else "")
        raise UpstreamError("LLM unavailable")


VOCABULARY = ["paris", "france", "capital", "eiffel", "tower", "python", "java", "code", "berlin", "germany"]


class MockEmbeddings(Embeddings):
    """Bag of words over a fixed vocabulary, plus a constant bias dimension."""

    _calls: List[List[str]] = PrivateAttr(default_factory=list)

    @property
    def dimension(self) -> int:
        return len(VOCABULARY) + 1

    @property
    def calls(self) -> List[List[str]]:
        return self._calls

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self._calls.append(list(texts))
        return [self._embed(text) for text in texts]

    @staticmethod
    def _embed(text: str) -> List[float]:
        words = re.findall(r"\w+", text.lower())
        return [float(words.count(term)) for term in VOCABULARY] + [0.1]


class StaticRetriever(BaseRetriever):
    """Returns a fixed list of scored nodes and counts calls."""

    nodes: List[NodeWithScore] = Field(default_factory=list)

    _queries: List[QueryBundle] = PrivateAttr(default_factory=list)

    @property
    def queries(self) -> List[QueryBundle]:
        return self._queries

    async def _retrieve(self, query_bundle: QueryBundle, top_k: Optional[int] = None, **kwargs: Any) -> List[NodeWithScore]:
        self._queries.append(query_bundle)
        return list(self.nodes)


class StaticQueryEngine(BaseQueryEngine):
    """Answers every query with the same text and source nodes."""

    response_text: str = "ok"
    source_nodes: List[NodeWithScore] = Field(default_factory=list)

    _queries: List[str] = PrivateAttr(default_factory=list)

    @property
    def queries(self) -> List[str]:
        return self._queries

    @property
    def calls(self) -> int:
        return len(self._queries)

    async def _aquery(self, query_bundle: QueryBundle) -> Response:
        self._queries.append(query_bundle.query_str)
        return Response(response=self.response_text, source_nodes=list(self.source_nodes))


class FlakyQueryEngine(BaseQueryEngine):
    """Fails ``failures`` times with ``UpstreamError("transient")``, then answers."""

    failures: int = 0
    response_text: str = "ok"

    _calls: int = PrivateAttr(default=0)

    @property
    def calls(self) -> int:
        return self._calls

    async def _aquery(self, query_bundle: QueryBundle) -> Response:
        self._calls += 1
        if self.failures < 0 or self._calls <= self.failures:
            raise UpstreamError("transient")
        return Response(response=self.response_text)


def scored(node_id: str, text: str, score: float, **metadata: Any) -> NodeWithScore:
    return NodeWithScore(node=Node(id=node_id, text=text, metadata=metadata), score=score)


@pytest.fixture
def mock_llm():
    """Fixture for a scripted LLM."""
    return MockLLM()


@pytest.fixture
def mock_embeddings():
    """Fixture for mock embeddings."""
    return MockEmbeddings()


@pytest.fixture
def paris_nodes():
    """The two nodes of the capital-of-France scenario."""
    return [
        scored("n1", "The capital of France is Paris.", 0.9),
        scored("n2", "Paris is known for the Eiffel Tower.", 0.8),
    ]
