"""
Tests for tools.
"""

import pytest

from querycraft.errors import BadInputError
from querycraft.tools import FunctionTool, QueryEngineTool, RetrieverTool, ToolMetadata

from conftest import StaticQueryEngine, StaticRetriever, scored


def multiply(a: int, b: int) -> int:
    """Multiply two integers."""
    return a * b


async def greet(name: str, punctuation: str = "!") -> str:
    return f"Hello {name}{punctuation}"


class TestToolMetadata:
    """Test suite for ToolMetadata"""

    def test_default_parameters(self):
        """Test that tools take a single input string by default"""
        metadata = ToolMetadata(name="search", description="Search things")
        assert metadata.parameters["required"] == ["input"]
        assert '"input"' in metadata.get_parameters_str()

    def test_openai_tool(self):
        """Test the OpenAI function tool rendering"""
        tool = ToolMetadata(name="search", description="Search things").to_openai_tool()
        assert tool["type"] == "function"
        assert tool["function"]["name"] == "search"
        assert tool["function"]["parameters"]["type"] == "object"


class TestFunctionTool:
    """Test suite for FunctionTool"""

    def test_metadata_from_function(self):
        """Test that name, description and schema come from the function"""
        tool = FunctionTool.from_defaults(multiply)
        assert tool.name == "multiply"
        assert tool.metadata.description == "Multiply two integers."
        assert set(tool.metadata.parameters["properties"]) == {"a", "b"}
        assert tool.metadata.parameters["required"] == ["a", "b"]
        assert "title" not in tool.metadata.parameters

    @pytest.mark.asyncio
    async def test_call(self):
        """Test that the result is stringified and kept raw"""
        output = await FunctionTool.from_defaults(multiply).acall(a=3, b=4)
        assert output.content == "12"
        assert output.raw_output == 12
        assert output.raw_input == {"a": 3, "b": 4}
        assert output.tool_name == "multiply"
        assert output.is_error is False

    @pytest.mark.asyncio
    async def test_async_function(self):
        """Test that coroutine functions are awaited"""
        tool = FunctionTool.from_defaults(greet, name="greeter")
        assert tool.metadata.parameters["required"] == ["name"]
        output = await tool.acall(name="Ada")
        assert output.content == "Hello Ada!"
        assert tool.name == "greeter"

    def test_sync_call(self):
        """Test the synchronous wrapper"""
        assert FunctionTool.from_defaults(multiply).call(a=2, b=5).content == "10"


class TestQueryEngineTool:
    """Test suite for QueryEngineTool"""

    @pytest.mark.asyncio
    async def test_query(self):
        """Test that the input is sent to the engine"""
        engine = StaticQueryEngine(response_text="Paris")
        tool = QueryEngineTool.from_defaults(engine, name="geo", description="Geography facts")

        output = await tool.acall(input="capital of France?")

        assert output.content == "Paris"
        assert engine.queries == ["capital of France?"]
        assert output.raw_output.response == "Paris"

    @pytest.mark.asyncio
    async def test_alternative_argument_names(self):
        """Test that a single argument of any name is accepted as the query"""
        engine = StaticQueryEngine()
        tool = QueryEngineTool.from_defaults(engine)
        await tool.acall(query="a")
        await tool.acall(question="b")
        assert engine.queries == ["a", "b"]

    @pytest.mark.asyncio
    async def test_ambiguous_arguments(self):
        """Test that several unknown arguments are rejected"""
        tool = QueryEngineTool.from_defaults(StaticQueryEngine())
        with pytest.raises(BadInputError):
            await tool.acall(a="x", b="y")


class TestRetrieverTool:
    """Test suite for RetrieverTool"""

    @pytest.mark.asyncio
    async def test_formats_documents(self, paris_nodes):
        """Test that retrieved nodes are rendered as numbered documents"""
        tool = RetrieverTool.from_defaults(StaticRetriever(nodes=paris_nodes))
        output = await tool.acall(input="paris")
        assert output.content.startswith("Document 1 (relevance: 0.900):\nThe capital of France is Paris.")
        assert "Document 2 (relevance: 0.800)" in output.content
        assert [n.id for n in output.raw_output] == ["n1", "n2"]
        assert tool.name == "search_documents"

    @pytest.mark.asyncio
    async def test_no_results(self):
        """Test the empty result message"""
        output = await RetrieverTool.from_defaults(StaticRetriever()).acall(input="x")
        assert output.content == "No relevant documents found."

    @pytest.mark.asyncio
    async def test_custom_formatter(self):
        """Test that a custom formatter is used"""
        tool = RetrieverTool.from_defaults(
            StaticRetriever(nodes=[scored("a", "alpha", 1.0)]),
            formatter=lambda nodes: ",".join(n.id for n in nodes),
        )
        assert (await tool.acall(input="x")).content == "a"
