"""
Tests for the ReAct agent, its output parser and its memory.
"""

import pytest

from querycraft.agents import (
    MAX_STEPS_RESPONSE,
    ActionReasoningStep,
    ChatMemory,
    ReActAgent,
    ReActChatFormatter,
    ReActOutputParser,
    ResponseReasoningStep,
    parse_action_input,
)
from querycraft.errors import InvalidConfigError, ParseFailedError, UpstreamError
from querycraft.llms import ChatMessage, MessageRole, ToolCall
from querycraft.tools import FunctionTool, QueryEngineTool

from conftest import FailingLLM, MockLLM, StaticQueryEngine, ToolCallingMockLLM


def make_counting_tool(return_direct: bool = False):
    calls = []

    def multiply(a: int, b: int) -> int:
        """Multiply two integers."""
        calls.append((a, b))
        return a * b

    return FunctionTool.from_defaults(multiply, return_direct=return_direct), calls


def explode(input: str) -> str:
    """Always fails."""
    raise ValueError("boom")


MULTIPLY_ACTION = 'Thought: I need to multiply.\nAction: multiply\nAction Input: {"a": 3, "b": 4}'


class TestReActOutputParser:
    """Test suite for ReActOutputParser"""

    @pytest.fixture
    def parser(self):
        return ReActOutputParser()

    def test_action(self, parser):
        """Test the ReAct action format"""
        step = parser.parse(MULTIPLY_ACTION)
        assert isinstance(step, ActionReasoningStep)
        assert step.thought == "I need to multiply."
        assert step.action == "multiply"
        assert step.action_input == {"a": 3, "b": 4}
        assert step.is_done is False

    def test_action_without_thought(self, parser):
        """Test that an action may start the reply and use single quotes"""
        step = parser.parse("Action: search\nAction Input: {'input': 'paris'}")
        assert step.action == "search"
        assert step.action_input == {"input": "paris"}

    def test_action_without_input(self, parser):
        """Test that an action without input fails to parse"""
        with pytest.raises(ParseFailedError):
            parser.parse("Thought: hmm\nAction: search")

    def test_answer(self, parser):
        """Test the ReAct answer format"""
        step = parser.parse("Thought: I can answer now.\nAnswer: 12")
        assert isinstance(step, ResponseReasoningStep)
        assert step.thought == "I can answer now."
        assert step.response == "12"
        assert step.is_done is True

    def test_answer_without_thought(self, parser):
        """Test that a bare Answer prefix is stripped"""
        assert parser.parse("Answer: 42").response == "42"

    def test_implicit_answer(self, parser):
        """Test that plain text is the final answer"""
        step = parser.parse("Paris is the capital of France.")
        assert step.response == "Paris is the capital of France."
        assert step.is_done

    def test_json_call(self, parser):
        """Test the JSON tool call format"""
        step = parser.parse('{"tool": "search", "input": {"query": "weather"}}')
        assert step.action == "search"
        assert step.action_input == {"query": "weather"}

    def test_fenced_json_call_with_string_arguments(self, parser):
        """Test that fenced JSON with encoded arguments is decoded"""
        step = parser.parse('```json\n{"name": "multiply", "arguments": "{\\"a\\": 2, \\"b\\": 5}"}\n```')
        assert step.action == "multiply"
        assert step.action_input == {"a": 2, "b": 5}

    def test_json_without_tool_is_an_answer(self, parser):
        """Test that JSON without a tool name is not a call"""
        step = parser.parse('{"city": "Paris"}')
        assert step.is_done
        assert step.response == '{"city": "Paris"}'

    def test_tool_input_format(self, parser):
        """Test the TOOL/INPUT format"""
        step = parser.parse("Let me look.\nTOOL: search\nINPUT: weather in Paris")
        assert step.action == "search"
        assert step.action_input == {"input": "weather in Paris"}
        assert step.thought == "Let me look."

    def test_action_before_answer_wins(self, parser):
        """Test that an action preceding an answer is executed first"""
        step = parser.parse('Action: search\nAction Input: {"input": "x"}\nObservation: ...\nAnswer: y')
        assert isinstance(step, ActionReasoningStep)


class TestParseActionInput:
    """Test suite for parse_action_input"""

    def test_json(self):
        """Test that JSON objects are used as is"""
        assert parse_action_input('{"a": 1}') == {"a": 1}

    def test_empty(self):
        """Test that empty input means no arguments"""
        assert parse_action_input("{}") == {}
        assert parse_action_input("  ") == {}

    def test_broken_json(self):
        """Test that quoted pairs are scraped from broken JSON"""
        assert parse_action_input('{"city": "Paris", "unit": "C"') == {"city": "Paris", "unit": "C"}

    def test_plain_text(self):
        """Test that other text becomes the input argument"""
        assert parse_action_input("weather in Paris") == {"input": "weather in Paris"}

    def test_non_object_json(self):
        """Test that JSON scalars become the input argument"""
        assert parse_action_input('"paris"') == {"input": "paris"}


class TestChatMemory:
    """Test suite for ChatMemory"""

    def test_put_and_window(self):
        """Test that the window keeps the most recent messages"""
        memory = ChatMemory(max_messages=2)
        for text in ("one", "two", "three"):
            memory.put(ChatMessage.user_message(text))
        assert [m.content for m in memory.get_all()] == ["two", "three"]
        assert len(memory) == 2

    def test_last_user_message_and_reset(self):
        """Test lookup of the last user message and clearing"""
        memory = ChatMemory()
        memory.put(ChatMessage.user_message("question"))
        memory.put(ChatMessage.assistant_message("answer"))
        assert memory.last_user_message().content == "question"
        memory.reset()
        assert memory.get_all() == []
        assert memory.last_user_message() is None


class TestReActAgentText:
    """Test suite for the textual ReAct protocol"""

    @pytest.mark.asyncio
    async def test_tool_then_answer(self):
        """Test a turn with one tool call followed by an answer"""
        tool, calls = make_counting_tool()
        llm = MockLLM(responses=[MULTIPLY_ACTION, "Thought: I know it.\nAnswer: 12"])
        agent = ReActAgent.from_tools([tool], llm=llm)

        response = await agent.achat("What is 3 times 4?")

        assert response.response == "12"
        assert response.tool_names == ["multiply"]
        assert response.sources[0].content == "12"
        assert response.metadata["iterations"] == 2
        assert calls == [(3, 4)]
        assert llm.prompts[1] == "Observation: 12"

        system = llm.history[0][0]
        assert system.role == MessageRole.SYSTEM
        assert "> Tool Name: multiply" in system.content
        assert "one of multiply" in system.content

    @pytest.mark.asyncio
    async def test_iteration_cap(self):
        """Test that an LLM that always calls tools stops at the cap"""
        tool, calls = make_counting_tool()
        llm = MockLLM(default_response=MULTIPLY_ACTION)
        agent = ReActAgent.from_tools([tool], llm=llm, max_iterations=1)

        response = await agent.achat("loop forever")

        assert response.response == MAX_STEPS_RESPONSE
        assert llm.calls == 1
        assert len(calls) == 1
        assert len(response.sources) == 1

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """Test that an unknown tool is reported back to the LLM"""
        tool, calls = make_counting_tool()
        llm = MockLLM(responses=["Action: divide\nAction Input: {}", "Answer: I cannot divide."])
        agent = ReActAgent.from_tools([tool], llm=llm)

        response = await agent.achat("What is 4 / 2?")

        assert response.response == "I cannot divide."
        assert response.sources[0].is_error
        assert response.sources[0].tool_name == "divide"
        assert llm.prompts[1].startswith("Error: tool 'divide' does not exist. Available tools: multiply")
        assert calls == []

    @pytest.mark.asyncio
    async def test_tool_error_is_observed(self):
        """Test that a failing tool becomes an error observation"""
        llm = MockLLM(responses=['Action: explode\nAction Input: {"input": "now"}', "Answer: It failed."])
        agent = ReActAgent.from_tools([FunctionTool.from_defaults(explode)], llm=llm)

        response = await agent.achat("Try it")

        assert response.response == "It failed."
        assert response.sources[0].is_error
        assert response.sources[0].content == "Error: boom"
        assert llm.prompts[1] == "Observation: Error: boom"

    @pytest.mark.asyncio
    async def test_parse_error_is_fed_back(self):
        """Test that malformed output is answered with the expected format"""
        llm = MockLLM(responses=["Thought: hmm\nAction: multiply", "Answer: done"])
        agent = ReActAgent.from_tools([make_counting_tool()[0]], llm=llm)

        response = await agent.achat("q")

        assert response.response == "done"
        assert response.sources == []
        assert llm.prompts[1].startswith("Error while parsing the output:")

    @pytest.mark.asyncio
    async def test_return_direct(self):
        """Test that a return_direct tool ends the turn with its output"""
        tool, _ = make_counting_tool(return_direct=True)
        llm = MockLLM(responses=[MULTIPLY_ACTION])
        agent = ReActAgent.from_tools([tool], llm=llm)

        response = await agent.achat("3 times 4")

        assert response.response == "12"
        assert llm.calls == 1

    @pytest.mark.asyncio
    async def test_query_engine_tool(self):
        """Test an agent answering through a query engine tool"""
        engine = StaticQueryEngine(response_text="The capital of France is Paris.")
        tool = QueryEngineTool.from_defaults(engine, name="geo", description="Geography facts")
        llm = MockLLM(responses=['Action: geo\nAction Input: {"input": "capital of France"}', "Answer: Paris."])

        response = await ReActAgent.from_tools([tool], llm=llm).achat("What is the capital of France?")

        assert response.response == "Paris."
        assert engine.queries == ["capital of France"]

    @pytest.mark.asyncio
    async def test_system_prompt_in_header(self):
        """Test that the system prompt is added to the system header"""
        llm = MockLLM(default_response="Answer: hi")
        agent = ReActAgent.from_tools([], llm=llm, system_prompt="Always be brief.")
        await agent.achat("hello")
        assert "Always be brief." in llm.history[0][0].content

    @pytest.mark.asyncio
    async def test_llm_errors_propagate(self):
        """Test that LLM failures fail the turn"""
        agent = ReActAgent.from_tools([], llm=FailingLLM())
        with pytest.raises(UpstreamError):
            await agent.achat("hello")


class TestReActAgentNative:
    """Test suite for native tool calling"""

    @pytest.mark.asyncio
    async def test_tool_then_answer(self):
        """Test that tool results are sent back as tool messages"""
        tool, calls = make_counting_tool()
        llm = ToolCallingMockLLM(
            tool_calls=[[ToolCall(id="call_1", name="multiply", arguments='{"a": 3, "b": 4}')], None],
            default_response="The answer is 12.",
        )
        agent = ReActAgent.from_tools([tool], llm=llm)

        response = await agent.achat("What is 3 times 4?")

        assert agent.native_tool_calling
        assert response.response == "The answer is 12."
        assert calls == [(3, 4)]
        assert llm.calls == 0

        second_request = llm.tool_requests[1]
        assert second_request[-2].role == MessageRole.ASSISTANT
        assert second_request[-2].tool_calls[0].name == "multiply"
        assert second_request[-1].role == MessageRole.TOOL
        assert second_request[-1].content == "12"
        assert second_request[-1].tool_call_id == "call_1_0"

    @pytest.mark.asyncio
    async def test_iteration_cap(self):
        """Test that native tool calling honours the cap"""
        tool, calls = make_counting_tool()
        llm = ToolCallingMockLLM(
            tool_calls=[[ToolCall(name="multiply", arguments='{"a": 1, "b": 1}')]],
            repeat_last=True,
        )
        agent = ReActAgent.from_tools([tool], llm=llm, max_iterations=2)

        response = await agent.achat("loop")

        assert response.response == MAX_STEPS_RESPONSE
        assert len(llm.tool_requests) == 2
        assert len(calls) == 2
        assert response.metadata["iterations"] == 2

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """Test that unknown tools come back as error tool messages"""
        llm = ToolCallingMockLLM(tool_calls=[[ToolCall(name="nope")], None], default_response="Sorry.")
        agent = ReActAgent.from_tools([make_counting_tool()[0]], llm=llm)

        response = await agent.achat("q")

        assert response.response == "Sorry."
        assert response.sources[0].is_error
        assert llm.tool_requests[1][-1].is_error

    @pytest.mark.asyncio
    async def test_system_prompt_first(self):
        """Test that the system prompt leads the native conversation"""
        llm = ToolCallingMockLLM(default_response="hi")
        agent = ReActAgent.from_tools([], llm=llm, system_prompt="Be brief.")
        await agent.achat("hello")
        assert llm.tool_requests[0][0].role == MessageRole.SYSTEM
        assert llm.tool_requests[0][0].content == "Be brief."

    @pytest.mark.asyncio
    async def test_native_can_be_disabled(self):
        """Test that the textual protocol can be forced"""
        llm = ToolCallingMockLLM(default_response="Answer: text mode")
        agent = ReActAgent.from_tools([], llm=llm, use_native_tools=False)

        response = await agent.achat("hello")

        assert response.response == "text mode"
        assert llm.tool_requests == []
        assert llm.calls == 1


class TestReActAgentMemory:
    """Test suite for conversation memory"""

    @pytest.mark.asyncio
    async def test_history_across_turns(self):
        """Test that earlier turns are sent along and tool traffic is not kept"""
        tool, _ = make_counting_tool()
        llm = MockLLM(responses=[MULTIPLY_ACTION, "Answer: 12", "Answer: You asked about 3 times 4."])
        agent = ReActAgent.from_tools([tool], llm=llm)

        await agent.achat("What is 3 times 4?")
        await agent.achat("What did I ask?")

        assert [m.content for m in agent.memory.get_all()] == [
            "What is 3 times 4?",
            "12",
            "What did I ask?",
            "You asked about 3 times 4.",
        ]
        third_call = [m.content for m in llm.history[2][1:]]
        assert third_call == ["What is 3 times 4?", "12", "What did I ask?"]

    @pytest.mark.asyncio
    async def test_failed_turn_is_not_remembered(self):
        """Test that a turn whose LLM call fails leaves the memory untouched"""
        attempts = []

        def reply(prompt: str) -> str:
            attempts.append(prompt)
            if len(attempts) == 1:
                raise UpstreamError("upstream down")
            return "Answer: fine"

        agent = ReActAgent.from_tools([], llm=MockLLM(response_fn=reply))

        with pytest.raises(UpstreamError):
            await agent.achat("first")
        assert len(agent.memory) == 0

        await agent.achat("second")
        assert [m.role for m in agent.memory.get_all()] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert agent.memory.get_all()[0].content == "second"

    @pytest.mark.asyncio
    async def test_reset(self):
        """Test that reset forgets the conversation"""
        agent = ReActAgent.from_tools([], llm=MockLLM(default_response="Answer: ok"))
        await agent.achat("hello")
        agent.reset()
        assert len(agent.memory) == 0


class TestReActAgentConfiguration:
    """Test suite for agent construction"""

    def test_invalid_iterations(self):
        """Test that the cap must be positive"""
        with pytest.raises(InvalidConfigError):
            ReActAgent(llm=MockLLM(), max_iterations=0)

    def test_duplicate_tool_names(self):
        """Test that tool names must be unique"""
        tool = make_counting_tool()[0]
        with pytest.raises(InvalidConfigError):
            ReActAgent.from_tools([tool, tool], llm=MockLLM())

    def test_default_cap_from_settings(self):
        """Test that the cap defaults to the configured value"""
        assert ReActAgent(llm=MockLLM()).max_iterations == 5

    def test_prompts(self):
        """Test that the system header is addressable"""
        agent = ReActAgent(llm=MockLLM(), formatter=ReActChatFormatter())
        assert "formatter:system_header" in agent.get_prompts()

    def test_shared_formatter_is_not_modified(self):
        """Test that agents sharing a formatter keep their own system prompt"""
        formatter = ReActChatFormatter()
        first = ReActAgent(llm=MockLLM(), formatter=formatter, system_prompt="You are agent A")
        second = ReActAgent(llm=MockLLM(), formatter=formatter, system_prompt="You are agent B")

        assert formatter.context == ""
        assert first.formatter.context == "You are agent A"
        assert second.formatter.context == "You are agent B"
