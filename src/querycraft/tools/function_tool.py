import inspect
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import Field, create_model

from querycraft.tools.types import BaseTool, ToolMetadata, ToolOutput

logger = logging.getLogger(__name__)


def parameters_from_fn(fn: Callable[..., Any], name: str) -> Dict[str, Any]:
    """Derive a JSON schema for the arguments of ``fn`` from its signature."""
    fields = {}
    for param in inspect.signature(fn).parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = param.annotation if param.annotation is not inspect.Parameter.empty else Any
        default = param.default if param.default is not inspect.Parameter.empty else ...
        fields[param.name] = (annotation, default)
    model = create_model(name, **fields)
    schema = model.model_json_schema()
    schema.pop("title", None)
    return schema


class FunctionTool(BaseTool):
    """
    Wraps a plain or async Python function as a tool.

    Example:
        ```python
        def multiply(a: int, b: int) -> int:
            \"\"\"Multiply two integers.\"\"\"
            return a * b

        tool = FunctionTool.from_defaults(multiply)
        output = await tool.acall(a=3, b=4)  # output.content == "12"
        ```
    """

    fn: Callable[..., Any] = Field(description="The wrapped function")

    @classmethod
    def from_defaults(
        cls,
        fn: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        return_direct: bool = False,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> "FunctionTool":
        """
        Build a tool from a function.

        Args:
            fn: Function or coroutine function to call
            name: Tool name (defaults to the function name)
            description: Tool description (defaults to the docstring)
            return_direct: End the agent turn with this tool's output
            parameters: JSON schema overriding the one derived from the signature
        """
        name = name or fn.__name__
        description = description or inspect.getdoc(fn) or f"{name}{inspect.signature(fn)}"
        metadata = ToolMetadata(
            name=name,
            description=description,
            parameters=parameters or parameters_from_fn(fn, name),
            return_direct=return_direct,
        )
        return cls(fn=fn, metadata=metadata)

    async def acall(self, **kwargs: Any) -> ToolOutput:
        result = self.fn(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return ToolOutput(
            content=str(result),
            tool_name=self.name,
            raw_input=kwargs,
            raw_output=result,
        )
