from typing import Any, Optional

from pydantic import Field

from querycraft.response import StreamingResponse
from querycraft.tools.types import BaseTool, ToolMetadata, ToolOutput, get_query_str

DEFAULT_NAME = "query_engine_tool"
DEFAULT_DESCRIPTION = (
    "Useful for running a natural language query against a knowledge base and getting back a natural language response."
)


class QueryEngineTool(BaseTool):
    """Exposes a query engine as a tool taking a single ``input`` query string."""

    query_engine: Any = Field(description="The query engine answering the tool input")

    @classmethod
    def from_defaults(
        cls,
        query_engine: Any,
        name: Optional[str] = None,
        description: Optional[str] = None,
        return_direct: bool = False,
    ) -> "QueryEngineTool":
        metadata = ToolMetadata(
            name=name or DEFAULT_NAME,
            description=description or DEFAULT_DESCRIPTION,
            return_direct=return_direct,
        )
        return cls(query_engine=query_engine, metadata=metadata)

    async def acall(self, **kwargs: Any) -> ToolOutput:
        query_str = get_query_str(kwargs, self.name)
        response = await self.query_engine.aquery(query_str)
        if isinstance(response, StreamingResponse):
            response = await response.aget_response()
        return ToolOutput(
            content=str(response),
            tool_name=self.name,
            raw_input={"input": query_str},
            raw_output=response,
        )
