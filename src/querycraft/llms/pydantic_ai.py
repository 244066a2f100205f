"""
LLM adapter for any model supported by pydantic-ai.

Uses pydantic-ai's direct model request API, so no agent loop from
pydantic-ai is involved: tool calls are returned to the caller.
"""
from typing import Any, AsyncIterator, Iterator, List, Sequence

from pydantic import Field
from pydantic_ai.direct import model_request, model_request_stream
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    PartDeltaEvent,
    PartStartEvent,
    SystemPromptPart,
    TextPart,
    TextPartDelta,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.tools import ToolDefinition

from querycraft.errors import UpstreamError
from querycraft.llms.base import LLM, ChatMessage, ChatResponse, MessageRole, ToolCall
from querycraft.llms.utils import strip_thinking, strip_thinking_stream


def to_pydantic_ai_messages(chat_messages: Sequence[ChatMessage]) -> Iterator[ModelMessage]:
    for m in chat_messages:
        if m.role == MessageRole.SYSTEM:
            yield ModelRequest(parts=[SystemPromptPart(content=m.content)])
        elif m.role == MessageRole.USER:
            yield ModelRequest(parts=[UserPromptPart(content=m.content)])
        elif m.role == MessageRole.ASSISTANT:
            parts: List[Any] = []
            if m.content:
                parts.append(TextPart(content=m.content))
            for call in m.tool_calls:
                parts.append(ToolCallPart(tool_name=call.name, args=call.arguments, tool_call_id=call.id))
            yield ModelResponse(parts=parts or [TextPart(content="")])
        elif m.role == MessageRole.TOOL:
            yield ModelRequest(parts=[
                ToolReturnPart(tool_name=m.name or "", content=m.content, tool_call_id=m.tool_call_id or "")
            ])
        else:
            raise ValueError(f'Unexpected role: {m.role}')


def to_chat_response(response: ModelResponse, strip: bool = True) -> ChatResponse:
    texts = []
    tool_calls = []
    for part in response.parts:
        if isinstance(part, TextPart):
            texts.append(part.content)
        elif isinstance(part, ToolCallPart):
            tool_calls.append(ToolCall(
                id=part.tool_call_id,
                name=part.tool_name,
                arguments=part.args_as_json_str(),
            ))
    content = "".join(texts)
    if strip:
        content = strip_thinking(content)
    return ChatResponse(message=ChatMessage.assistant_message(content, tool_calls), raw=response)


class PydanticAILLM(LLM):
    """
    Wrap a pydantic-ai model (instance or name such as ``"openai:gpt-4o"``).

    Example:
        ```python
        from pydantic_ai.models.openai import OpenAIChatModel
        llm = PydanticAILLM(model=OpenAIChatModel("gpt-4o-mini"))
        answer = await llm.complete("Say hello")
        ```
    """

    model: Model | str = Field(description="pydantic-ai model or model name")
    strip_thinking: bool = True

    async def _request(self, messages: Sequence[ChatMessage], params: ModelRequestParameters | None = None) -> ModelResponse:
        try:
            return await model_request(
                self.model,
                list(to_pydantic_ai_messages(messages)),
                model_request_parameters=params,
            )
        except Exception as e:
            raise UpstreamError(f"Model request failed: {e}", cause=e) from e

    async def chat(self, messages: Sequence[ChatMessage], **kwargs: Any) -> ChatResponse:
        response = await self._request(messages)
        return to_chat_response(response, self.strip_thinking)

    async def chat_with_tools(self, messages: Sequence[ChatMessage], tools: Sequence[Any], **kwargs: Any) -> ChatResponse:
        params = ModelRequestParameters(
            function_tools=[
                ToolDefinition(
                    name=tool.name,
                    description=tool.description,
                    parameters_json_schema=tool.parameters,
                )
                for tool in tools
            ],
            allow_text_output=True,
        )
        response = await self._request(messages, params)
        return to_chat_response(response, self.strip_thinking)

    async def stream(self, prompt: str, **kwargs: Any) -> AsyncIterator[str]:
        deltas = self._stream_deltas(prompt)
        if self.strip_thinking:
            deltas = strip_thinking_stream(deltas)
        async for delta in deltas:
            yield delta

    async def _stream_deltas(self, prompt: str) -> AsyncIterator[str]:
        messages = [ModelRequest(parts=[UserPromptPart(content=prompt)])]
        try:
            async with model_request_stream(self.model, messages) as stream:
                async for event in stream:
                    if isinstance(event, PartStartEvent) and isinstance(event.part, TextPart):
                        if event.part.content:
                            yield event.part.content
                    elif isinstance(event, PartDeltaEvent) and isinstance(event.delta, TextPartDelta):
                        if event.delta.content_delta:
                            yield event.delta.content_delta
        except Exception as e:
            raise UpstreamError(f"Model streaming request failed: {e}", cause=e) from e
