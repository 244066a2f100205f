"""
Tests for the response synthesizers.
"""

from typing import Any, Dict, Sequence

import pytest
from pydantic import BaseModel

from querycraft.errors import InvalidConfigError, StructuredOutputParseError
from querycraft.llms import ChatMessage
from querycraft.prompts import DEFAULT_TEXT_QA_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE, Response, StreamingResponse
from querycraft.synthesizer import (
    Accumulate,
    CompactAndRefine,
    ContextOnly,
    Generation,
    NoText,
    Refine,
    ResponseMode,
    SimpleSummarize,
    StructuredTreeSummarize,
    TreeSummarize,
    get_response_synthesizer,
)

from conftest import MockLLM, scored


class Capital(BaseModel):
    city: str
    country: str


class JsonModeLLM(MockLLM):
    """MockLLM with a native JSON output mode."""

    formats: list = []

    async def chat_with_format(self, messages: Sequence[ChatMessage], format: Dict[str, Any], **kwargs: Any) -> str:
        self.formats.append(format)
        return '{"city": "Paris", "country": "France"}'


class TestEmptyInput:
    """Test suite for the empty node list contract"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [m for m in ResponseMode])
    async def test_empty_nodes(self, mode):
        """Test that every mode answers an empty node list with 'Empty Response' and no provenance"""
        llm = MockLLM()
        synthesizer = get_response_synthesizer(llm=llm, response_mode=mode)
        response = await synthesizer.asynthesize("anything", [])
        assert response.response == EMPTY_RESPONSE
        assert response.source_nodes == []
        assert llm.calls == 0


class TestSimpleSummarize:
    """Test suite for SimpleSummarize"""

    @pytest.mark.asyncio
    async def test_capital_of_france(self, paris_nodes):
        """Test the retriever-to-answer happy path"""
        llm = MockLLM(default_response="Paris is the capital of France.")
        response = await SimpleSummarize(llm=llm).asynthesize("What is the capital of France?", paris_nodes)

        assert isinstance(response, Response)
        assert response.response == "Paris is the capital of France."
        assert [n.id for n in response.source_nodes] == ["n1", "n2"]
        assert llm.calls == 1
        assert "The capital of France is Paris.\n\nParis is known for the Eiffel Tower." in llm.prompts[0]
        assert "Query: What is the capital of France?" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_metadata_per_node(self):
        """Test that response metadata maps node ids to node metadata"""
        llm = MockLLM()
        nodes = [scored("a", "text a", 1.0, source="a.txt")]
        response = await SimpleSummarize(llm=llm).asynthesize("q", nodes)
        assert response.metadata == {"a": {"source": "a.txt"}}

    @pytest.mark.asyncio
    async def test_streaming(self, paris_nodes):
        """Test that streaming yields deltas and caches the concatenation"""
        llm = MockLLM(default_response="Paris is the capital.")
        response = await SimpleSummarize(llm=llm, streaming=True).asynthesize("q", paris_nodes)
        assert isinstance(response, StreamingResponse)

        deltas = [delta async for delta in response.async_response_gen()]
        assert len(deltas) > 1
        assert "".join(deltas) == "Paris is the capital."

        first = await response.aget_response()
        second = await response.aget_response()
        assert first.response == second.response == "Paris is the capital."
        assert response.response_txt == "Paris is the capital."
        assert [n.id for n in first.source_nodes] == ["n1", "n2"]


class TestRefine:
    """Test suite for Refine and CompactAndRefine"""

    @pytest.mark.asyncio
    async def test_refine_calls_per_chunk(self, paris_nodes):
        """Test that refine answers the first chunk and refines with the second"""
        llm = MockLLM(responses=["first answer", "refined answer"])
        response = await Refine(llm=llm).asynthesize("q", paris_nodes)
        assert response.response == "refined answer"
        assert llm.calls == 2
        assert "existing answer: first answer" in llm.prompts[1]
        assert "Paris is known for the Eiffel Tower." in llm.prompts[1]

    @pytest.mark.asyncio
    async def test_refine_template_with_context_str(self, paris_nodes):
        """Test that a refine template may name the new context context_str"""
        llm = MockLLM(responses=["first answer", "refined answer"])
        template = PromptTemplate("Old: {existing_answer}\nNew: {context_str}\nQ: {query_str}")
        await Refine(llm=llm, refine_template=template).asynthesize("q", paris_nodes)
        assert llm.prompts[1] == "Old: first answer\nNew: Paris is known for the Eiffel Tower.\nQ: q"

    @pytest.mark.asyncio
    async def test_compact_saves_calls(self, paris_nodes):
        """Test that compaction fits both chunks into one call"""
        llm = MockLLM(default_response="compact answer")
        response = await CompactAndRefine(llm=llm).asynthesize("q", paris_nodes)
        assert response.response == "compact answer"
        assert llm.calls == 1

    @pytest.mark.asyncio
    async def test_compact_respects_max_chunk_size(self, paris_nodes):
        """Test that chunks exceeding the budget together are refined separately"""
        llm = MockLLM()
        await CompactAndRefine(llm=llm, max_chunk_size=40).asynthesize("q", paris_nodes)
        assert llm.calls == 2

    @pytest.mark.asyncio
    async def test_refine_streams_last_call(self, paris_nodes):
        """Test that only the last refine step is streamed"""
        llm = MockLLM(responses=["first", "second step"])
        response = await Refine(llm=llm, streaming=True).asynthesize("q", paris_nodes)
        assert isinstance(response, StreamingResponse)
        assert (await response.aget_response()).response == "second step"


class TestTreeSummarize:
    """Test suite for TreeSummarize"""

    @pytest.mark.asyncio
    async def test_single_chunk_equals_simple_summarize(self, paris_nodes):
        """Test that one compacted chunk gives the same prompt and call count as simple summarize"""
        tree_llm = MockLLM()
        simple_llm = MockLLM()
        await TreeSummarize(llm=tree_llm, summary_template=DEFAULT_TEXT_QA_PROMPT).asynthesize("q", paris_nodes)
        await SimpleSummarize(llm=simple_llm).asynthesize("q", paris_nodes)
        assert tree_llm.calls == simple_llm.calls == 1
        assert tree_llm.prompts == simple_llm.prompts

    @pytest.mark.asyncio
    async def test_multiple_levels(self):
        """Test that summaries are summarized until one answer remains"""
        llm = MockLLM(default_response="mock response")
        nodes = [scored(f"n{i}", f"chunk text {i:03d}", 1.0) for i in range(4)]
        response = await TreeSummarize(llm=llm, max_chunk_size=20).asynthesize("q", nodes)
        assert response.response == "mock response"
        # 4 leaf summaries, 2 merged summaries, 1 final answer
        assert llm.calls == 7


class TestAccumulate:
    """Test suite for Accumulate"""

    @pytest.mark.asyncio
    async def test_accumulate_format(self, paris_nodes):
        """Test that per-chunk answers are listed"""
        llm = MockLLM(responses=["A", "B"])
        response = await Accumulate(llm=llm).asynthesize("q", paris_nodes)
        assert response.response == "Response 1: A\n---------------------\nResponse 2: B"

    def test_streaming_rejected(self):
        """Test that accumulate refuses streaming"""
        with pytest.raises(InvalidConfigError):
            Accumulate(llm=MockLLM(), streaming=True)


class TestOtherModes:
    """Test suite for generation, no_text and context_only"""

    @pytest.mark.asyncio
    async def test_generation_ignores_context(self, paris_nodes):
        """Test that generation prompts with the query only"""
        llm = MockLLM(default_response="generated")
        response = await Generation(llm=llm).asynthesize("Tell me a joke", paris_nodes)
        assert response.response == "generated"
        assert llm.prompts == ["Tell me a joke"]

    @pytest.mark.asyncio
    async def test_no_text(self, paris_nodes):
        """Test that no_text keeps provenance without calling the LLM"""
        llm = MockLLM()
        response = await NoText(llm=llm).asynthesize("q", paris_nodes)
        assert response.response == EMPTY_RESPONSE
        assert len(response.source_nodes) == 2
        assert llm.calls == 0

    @pytest.mark.asyncio
    async def test_context_only(self, paris_nodes):
        """Test that context_only returns the joined chunk text"""
        response = await ContextOnly().asynthesize("q", paris_nodes)
        assert response.response == "The capital of France is Paris.\n\nParis is known for the Eiffel Tower."


class TestStructuredTreeSummarize:
    """Test suite for StructuredTreeSummarize"""

    @pytest.mark.asyncio
    async def test_parsed_output(self, paris_nodes):
        """Test that a fenced JSON answer is parsed into the output class"""
        llm = MockLLM(default_response='```json\n{"city": "Paris", "country": "France"}\n```')
        response = await StructuredTreeSummarize(llm=llm, output_cls=Capital).asynthesize("q", paris_nodes)
        assert response.metadata["parse_failed"] is False
        assert response.metadata["output"] == Capital(city="Paris", country="France")
        assert Capital.model_validate_json(response.response).city == "Paris"
        assert '"city"' in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_parse_failure_is_reported(self, paris_nodes):
        """Test that unparseable output is kept raw and flagged"""
        llm = MockLLM(default_response="I do not know")
        response = await StructuredTreeSummarize(llm=llm, output_cls=Capital).asynthesize("q", paris_nodes)
        assert response.response == "I do not know"
        assert response.metadata["parse_failed"] is True
        assert "parse_error" in response.metadata

    @pytest.mark.asyncio
    async def test_aget_structured_raises(self):
        """Test that the direct structured API raises on parse failures"""
        synthesizer = StructuredTreeSummarize(llm=MockLLM(default_response="nope"), output_cls=Capital)
        with pytest.raises(StructuredOutputParseError):
            await synthesizer.aget_structured("q", ["chunk"])

    @pytest.mark.asyncio
    async def test_native_json_mode(self, paris_nodes):
        """Test that LLMs with a JSON mode get the schema natively"""
        llm = JsonModeLLM(formats=[])
        response = await StructuredTreeSummarize(llm=llm, output_cls=Capital).asynthesize("q", paris_nodes)
        assert response.metadata["output"].city == "Paris"
        assert llm.formats[0]["title"] == "Capital"
        assert llm.calls == 0

    def test_streaming_rejected(self):
        """Test that structured output cannot stream"""
        with pytest.raises(InvalidConfigError):
            StructuredTreeSummarize(llm=MockLLM(), output_cls=Capital, streaming=True)


class TestFactory:
    """Test suite for get_response_synthesizer"""

    @pytest.mark.parametrize("mode,cls", [
        ("simple_summarize", SimpleSummarize),
        ("refine", Refine),
        ("compact", CompactAndRefine),
        ("tree_summarize", TreeSummarize),
        ("accumulate", Accumulate),
        ("generation", Generation),
        ("no_text", NoText),
        ("context_only", ContextOnly),
    ])
    def test_modes(self, mode, cls):
        """Test that each mode builds the matching class"""
        assert type(get_response_synthesizer(llm=MockLLM(), response_mode=mode)) is cls

    def test_unknown_mode(self):
        """Test that an unknown mode is a configuration error"""
        with pytest.raises(InvalidConfigError):
            get_response_synthesizer(llm=MockLLM(), response_mode="bogus")

    def test_template_override(self):
        """Test that prompt overrides reach the synthesizer"""
        template = PromptTemplate("Q: {query_str} C: {context_str}")
        synthesizer = get_response_synthesizer(llm=MockLLM(), response_mode="simple_summarize", text_qa_template=template)
        assert synthesizer.get_prompts()["text_qa_template"] == template
