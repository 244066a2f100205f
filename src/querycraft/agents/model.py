from typing import Any, Dict, List

from pydantic import BaseModel, Field

from querycraft.tools.types import ToolOutput


class AgentChatResponse(BaseModel):
    """Result of one agent turn: the answer and every tool call made on the way."""

    response: str = Field(description="Final assistant text")
    sources: List[ToolOutput] = Field(default_factory=list, description="Tool calls in execution order")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def tool_names(self) -> List[str]:
        return [source.tool_name for source in self.sources]

    def __str__(self) -> str:
        return self.response
