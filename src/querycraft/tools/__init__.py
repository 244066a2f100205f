from querycraft.tools.types import BaseTool, ToolMetadata, ToolOutput
from querycraft.tools.function_tool import FunctionTool
from querycraft.tools.query_engine_tool import QueryEngineTool
from querycraft.tools.retriever_tool import RetrieverTool

__all__ = [
    "BaseTool",
    "ToolMetadata",
    "ToolOutput",
    "FunctionTool",
    "QueryEngineTool",
    "RetrieverTool",
]
