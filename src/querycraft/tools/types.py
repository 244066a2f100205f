"""
Tool abstractions shared by agents, routers and the sub-question engine.
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.errors import BadInputError


def default_parameters() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"input": {"title": "input query string", "type": "string"}},
        "required": ["input"],
    }


class ToolMetadata(BaseModel):
    """
    Describes a tool to an LLM.

    Names must be unique within one tool set; selectors and agents address
    tools by name.
    """

    name: str = Field(description="Unique name of the tool")
    description: str = Field(default="", description="What the tool does, shown to the LLM")
    parameters: Dict[str, Any] = Field(default_factory=default_parameters, description="JSON schema of the arguments")
    return_direct: bool = Field(default=False, description="End the agent turn with this tool's output")

    def get_parameters_str(self) -> str:
        return json.dumps(self.parameters)

    def to_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolOutput(BaseModel):
    """
    Record of one tool execution.

    ``content`` is what the LLM sees; ``raw_output`` keeps the typed result
    (a Response, a list of nodes, ...).
    """

    content: str
    tool_name: str
    raw_input: Dict[str, Any] = Field(default_factory=dict)
    raw_output: Any = None
    is_error: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __str__(self) -> str:
        return self.content


class BaseTool(BaseModel, ABC):
    """Base class for tools callable by agents."""

    metadata: ToolMetadata

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @property
    def name(self) -> str:
        return self.metadata.name

    @abstractmethod
    async def acall(self, **kwargs: Any) -> ToolOutput:
        """
        Execute the tool.

        Args:
            **kwargs: Arguments matching ``metadata.parameters``

        Returns:
            The tool output
        """
        pass

    def call(self, **kwargs: Any) -> ToolOutput:
        return run_sync(self.acall(**kwargs))


def get_query_str(kwargs: Dict[str, Any], tool_name: Optional[str] = None) -> str:
    """Pick the query string out of tool arguments (``input``, ``query`` or a single value)."""
    for key in ("input", "query", "query_str"):
        if key in kwargs and kwargs[key] is not None:
            return str(kwargs[key])
    if len(kwargs) == 1:
        return str(next(iter(kwargs.values())))
    raise BadInputError(f"Tool {tool_name or ''} expects a single 'input' argument, got {sorted(kwargs)}")
