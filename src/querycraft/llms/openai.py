import logging
import os
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI
from pydantic import PrivateAttr

from querycraft.errors import InvalidConfigError, UpstreamError
from querycraft.llms.base import LLM, ChatMessage, ChatResponse, MessageRole, ToolCall
from querycraft.llms.utils import strip_thinking, strip_thinking_stream

logger = logging.getLogger(__name__)


class OpenAILLM(LLM):
    """
    LLM backed by the OpenAI chat completions API.

    Supports compatible endpoints (vLLM, Ollama, Azure) through ``base_url``.
    Implements both optional capabilities: native tool calling and JSON
    schema constrained output.
    """

    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.0
    max_tokens: Optional[int] = None
    timeout: float = 60.0
    strip_thinking: bool = True

    _client: AsyncOpenAI = PrivateAttr()

    def __init__(self, **data: Any):
        """
        Initialize the OpenAI LLM.

        Args:
            model: Model name
            api_key: API key. Falls back to the ``openai_api_key`` setting and the OPENAI_API_KEY env var
            base_url: Base URL for compatible endpoints
            temperature: Sampling temperature
            max_tokens: Maximum number of generated tokens
            timeout: Request timeout in seconds
            strip_thinking: Drop ``<think>`` blocks emitted by reasoning models
        """
        super().__init__(**data)
        from querycraft.settings import get_settings
        settings = get_settings()
        if self.api_key is None:
            self.api_key = settings.openai_api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise InvalidConfigError(
                "OpenAI API key must be provided either via api_key parameter, "
                "QUERYCRAFT_OPENAI_API_KEY or OPENAI_API_KEY environment variable"
            )
        if self.base_url is None:
            self.base_url = settings.openai_base_url
        self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)

    @staticmethod
    def _to_openai_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
        result = []
        for message in messages:
            item: Dict[str, Any] = {"role": message.role.value, "content": message.content}
            if message.role == MessageRole.ASSISTANT and message.tool_calls:
                item["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": call.arguments},
                    }
                    for call in message.tool_calls
                ]
            if message.role == MessageRole.TOOL:
                item["tool_call_id"] = message.tool_call_id
            result.append(item)
        return result

    def _request_kwargs(self, **kwargs: Any) -> Dict[str, Any]:
        request = {"model": self.model, "temperature": self.temperature}
        if self.max_tokens is not None:
            request["max_tokens"] = self.max_tokens
        request.update(kwargs)
        return request

    async def _create(self, messages: Sequence[ChatMessage], **kwargs: Any):
        try:
            return await self._client.chat.completions.create(
                messages=self._to_openai_messages(messages),
                **self._request_kwargs(**kwargs),
            )
        except openai.APIError as e:
            raise UpstreamError(f"OpenAI request failed: {e}", cause=e) from e

    def _to_chat_response(self, completion) -> ChatResponse:
        message = completion.choices[0].message
        content = message.content or ""
        if self.strip_thinking:
            content = strip_thinking(content)
        tool_calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=call.function.arguments or "{}")
            for call in (message.tool_calls or [])
        ]
        return ChatResponse(message=ChatMessage.assistant_message(content, tool_calls), raw=completion)

    async def chat(self, messages: Sequence[ChatMessage], **kwargs: Any) -> ChatResponse:
        completion = await self._create(messages, **kwargs)
        return self._to_chat_response(completion)

    async def chat_with_tools(self, messages: Sequence[ChatMessage], tools: Sequence[Any], **kwargs: Any) -> ChatResponse:
        openai_tools = [tool.to_openai_tool() for tool in tools]
        if openai_tools:
            kwargs["tools"] = openai_tools
        completion = await self._create(messages, **kwargs)
        return self._to_chat_response(completion)

    async def chat_with_format(self, messages: Sequence[ChatMessage], format: Dict[str, Any], **kwargs: Any) -> str:
        kwargs["response_format"] = {
            "type": "json_schema",
            "json_schema": {"name": format.get("title", "response"), "schema": format},
        }
        completion = await self._create(messages, **kwargs)
        return completion.choices[0].message.content or ""

    async def stream(self, prompt: str, **kwargs: Any) -> AsyncIterator[str]:
        deltas = self._stream_deltas(prompt, **kwargs)
        if self.strip_thinking:
            deltas = strip_thinking_stream(deltas)
        async for delta in deltas:
            yield delta

    async def _stream_deltas(self, prompt: str, **kwargs: Any) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                stream=True,
                **self._request_kwargs(**kwargs),
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.APIError as e:
            raise UpstreamError(f"OpenAI streaming request failed: {e}", cause=e) from e

    def __repr__(self) -> str:
        return f"OpenAILLM(model='{self.model}')"
