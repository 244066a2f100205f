from typing import Any, Callable, List, Optional

from pydantic import Field

from querycraft.node import NodeWithScore
from querycraft.tools.types import BaseTool, ToolMetadata, ToolOutput, get_query_str

DEFAULT_NAME = "search_documents"
DEFAULT_DESCRIPTION = "Search for relevant documents. The input is the search query."


def format_nodes(nodes: List[NodeWithScore]) -> str:
    if not nodes:
        return "No relevant documents found."

    formatted_results = []
    for i, node in enumerate(nodes, start=1):
        formatted_results.append(f"Document {i} (relevance: {node.score:.3f}):\n{node.text}\n")
    return "\n".join(formatted_results)


class RetrieverTool(BaseTool):
    """
    Exposes a retriever as a tool.

    The retrieved nodes are rendered as numbered documents for the LLM; the
    nodes themselves are kept in ``ToolOutput.raw_output``. Router
    retrievers use the same type to describe their candidates.
    """

    retriever: Any = Field(description="The retriever to query")
    formatter: Callable[[List[NodeWithScore]], str] = Field(default=format_nodes)

    @classmethod
    def from_defaults(
        cls,
        retriever: Any,
        name: Optional[str] = None,
        description: Optional[str] = None,
        return_direct: bool = False,
        formatter: Optional[Callable[[List[NodeWithScore]], str]] = None,
    ) -> "RetrieverTool":
        metadata = ToolMetadata(
            name=name or DEFAULT_NAME,
            description=description or DEFAULT_DESCRIPTION,
            return_direct=return_direct,
        )
        return cls(retriever=retriever, metadata=metadata, formatter=formatter or format_nodes)

    async def acall(self, **kwargs: Any) -> ToolOutput:
        query_str = get_query_str(kwargs, self.name)
        nodes = await self.retriever.aretrieve(query_str)
        return ToolOutput(
            content=self.formatter(nodes),
            tool_name=self.name,
            raw_input={"input": query_str},
            raw_output=nodes,
        )
