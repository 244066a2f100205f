"""
Abstract LLM capability consumed by synthesizers, selectors and agents.

Every LLM offers ``complete``, ``chat`` and ``stream``. Native tool calling
and JSON output modes are optional capabilities, described by the
``FunctionCallingLLM`` and ``StructuredOutputLLM`` protocols and probed with
``isinstance`` where they are used.
"""
import json
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence, runtime_checkable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A tool invocation requested by the LLM. ``arguments`` is a JSON encoded string."""

    id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:12]}")
    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> Dict[str, Any]:
        """
        Decode the arguments leniently.

        Anything that is not a JSON object is passed on as ``{"input": ...}``.
        """
        if not self.arguments or not self.arguments.strip():
            return {}
        try:
            value = json.loads(self.arguments)
        except json.JSONDecodeError:
            return {"input": self.arguments}
        if isinstance(value, dict):
            return value
        return {"input": value}


class ChatMessage(BaseModel):
    """A message in a conversation with an LLM."""

    role: MessageRole
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    is_error: bool = False
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def system_message(cls, content: str) -> 'ChatMessage':
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user_message(cls, content: str) -> 'ChatMessage':
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant_message(cls, content: str, tool_calls: Optional[List[ToolCall]] = None) -> 'ChatMessage':
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool_message(cls, content: str, tool_call_id: Optional[str], name: str, is_error: bool = False) -> 'ChatMessage':
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name, is_error=is_error)


class ChatResponse(BaseModel):
    """The assistant message returned by a chat call, plus the provider payload."""

    message: ChatMessage
    raw: Any = None

    @property
    def text(self) -> str:
        return self.message.content

    @property
    def tool_calls(self) -> List[ToolCall]:
        return self.message.tool_calls


class LLM(BaseModel, ABC):
    """
    Abstract text generation capability.

    Implementations must be safe to call concurrently. Provider failures are
    raised as ``UpstreamError``.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def chat(self, messages: Sequence[ChatMessage], **kwargs: Any) -> ChatResponse:
        """
        Send a conversation to the LLM.

        Args:
            messages: The conversation so far
            **kwargs: Provider specific options

        Returns:
            The assistant reply
        """
        pass

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """
        Complete a single prompt.

        Args:
            prompt: The prompt text

        Returns:
            The generated text
        """
        response = await self.chat([ChatMessage.user_message(prompt)], **kwargs)
        return response.text

    async def stream(self, prompt: str, **kwargs: Any) -> AsyncIterator[str]:
        """
        Stream the completion of a prompt as text deltas.

        The default implementation yields the full completion at once.
        """
        yield await self.complete(prompt, **kwargs)


@runtime_checkable
class FunctionCallingLLM(Protocol):
    """LLMs that support native tool calling."""

    async def chat_with_tools(
        self,
        messages: Sequence[ChatMessage],
        tools: Sequence[Any],
        **kwargs: Any,
    ) -> ChatResponse:
        """
        Chat with tool definitions attached.

        Args:
            messages: The conversation so far
            tools: ``ToolMetadata`` of the available tools
        """
        ...


@runtime_checkable
class StructuredOutputLLM(Protocol):
    """LLMs that can be constrained to emit JSON matching a schema."""

    async def chat_with_format(
        self,
        messages: Sequence[ChatMessage],
        format: Dict[str, Any],
        **kwargs: Any,
    ) -> str:
        """
        Chat with the reply constrained to the JSON schema ``format``.
        """
        ...
