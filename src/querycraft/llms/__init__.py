from querycraft.llms.base import (
    LLM,
    ChatMessage,
    ChatResponse,
    MessageRole,
    ToolCall,
    FunctionCallingLLM,
    StructuredOutputLLM,
)
from querycraft.llms.openai import OpenAILLM
from querycraft.llms.pydantic_ai import PydanticAILLM

__all__ = [
    "LLM",
    "ChatMessage",
    "ChatResponse",
    "MessageRole",
    "ToolCall",
    "FunctionCallingLLM",
    "StructuredOutputLLM",
    "OpenAILLM",
    "PydanticAILLM",
]
