"""
ReAct style agent loop.

Each turn alternates between asking the LLM what to do and running the tool
it asks for, until the LLM answers without a tool call, a ``return_direct``
tool produces the answer, or the iteration cap is hit. LLMs with native tool
calling get the tool schemas attached to the request; other LLMs are taught
the textual protocol of ``ReActChatFormatter`` and their replies are parsed
with ``ReActOutputParser``.
"""
import logging
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from querycraft.agents.formatter import PARSE_ERROR_TMPL, ReActChatFormatter
from querycraft.agents.memory import ChatMemory
from querycraft.agents.model import AgentChatResponse
from querycraft.agents.output_parser import ObservationReasoningStep, ReActOutputParser
from querycraft.asyncio_utils import run_sync
from querycraft.errors import InvalidConfigError, ParseFailedError
from querycraft.llms.base import ChatMessage, FunctionCallingLLM
from querycraft.prompts import PromptMixin
from querycraft.settings import get_settings
from querycraft.tools.types import BaseTool, ToolOutput

logger = logging.getLogger(__name__)

MAX_STEPS_RESPONSE = "max steps reached"


class ReActAgent(BaseModel, PromptMixin):
    """
    Agent that answers a user turn with zero or more tool calls.

    Tool failures and unknown tool names never fail the turn: they are fed
    back to the LLM as error results, and a model that keeps failing simply
    runs into ``max_iterations``. Errors of the LLM itself propagate.

    Example:
        ```python
        agent = ReActAgent.from_tools(
            [QueryEngineTool.from_defaults(engine, name="docs", description="Product docs")],
            llm=llm,
        )
        response = await agent.achat("How do I rotate the API key?")
        print(response.response, response.tool_names)
        ```
    """

    llm: Any = Field(description="Chat LLM driving the loop")
    tools: List[BaseTool] = Field(default_factory=list)
    max_iterations: int = Field(
        default_factory=lambda: get_settings().agent_max_iterations,
        description="LLM calls allowed per turn",
    )
    system_prompt: Optional[str] = None
    verbose: bool = False
    memory: ChatMemory = Field(default_factory=ChatMemory)
    formatter: ReActChatFormatter = Field(default_factory=ReActChatFormatter)
    output_parser: ReActOutputParser = Field(default_factory=ReActOutputParser)
    use_native_tools: Optional[bool] = Field(
        default=None,
        description="Force native tool calling on or off; detected from the LLM when unset",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {"formatter": "formatter"}

    def __init__(self, **data: Any):
        super().__init__(**data)
        if self.max_iterations < 1:
            raise InvalidConfigError(f"max_iterations must be >= 1, got {self.max_iterations}")
        names = [tool.metadata.name for tool in self.tools]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise InvalidConfigError(f"Tool names must be unique, duplicated: {duplicates}")
        if self.system_prompt and not self.formatter.context:
            self.formatter = self.formatter.model_copy(update={"context": self.system_prompt})

    @classmethod
    def from_tools(cls, tools: Sequence[BaseTool], llm: Any, **kwargs: Any) -> "ReActAgent":
        return cls(llm=llm, tools=list(tools), **kwargs)

    @property
    def native_tool_calling(self) -> bool:
        if self.use_native_tools is not None:
            return self.use_native_tools
        return isinstance(self.llm, FunctionCallingLLM)

    def get_tool(self, name: str) -> Optional[BaseTool]:
        for tool in self.tools:
            if tool.metadata.name == name:
                return tool
        return None

    async def achat(self, message: str) -> AgentChatResponse:
        """
        Run one user turn.

        Args:
            message: The user message

        Returns:
            The final answer and the tool calls made for it
        """
        history = self.memory.get_all()
        user_message = ChatMessage.user_message(message)

        if self.native_tool_calling:
            response, sources, iterations = await self._run_native([*history, user_message])
        else:
            response, sources, iterations = await self._run_text([*history, user_message])

        # The turn is only remembered once it has an answer
        self.memory.put(user_message)
        self.memory.put(ChatMessage.assistant_message(response))
        return AgentChatResponse(response=response, sources=sources, metadata={"iterations": iterations})

    def chat(self, message: str) -> AgentChatResponse:
        return run_sync(self.achat(message))

    def reset(self) -> None:
        """Forget the conversation."""
        self.memory.reset()

    async def _run_native(self, chat: List[ChatMessage]) -> Tuple[str, List[ToolOutput], int]:
        messages = list(chat)
        if self.system_prompt:
            messages.insert(0, ChatMessage.system_message(self.system_prompt))
        tools_metadata = [tool.metadata for tool in self.tools]
        sources: List[ToolOutput] = []

        for iteration in range(1, self.max_iterations + 1):
            result = await self.llm.chat_with_tools(messages, tools_metadata)
            if not result.tool_calls:
                return result.text, sources, iteration

            messages.append(result.message)
            for tool_call in result.tool_calls:
                output = await self._call_tool(tool_call.name, tool_call.parse_arguments())
                sources.append(output)
                messages.append(
                    ChatMessage.tool_message(output.content, tool_call.id, tool_call.name, is_error=output.is_error)
                )
                if self._is_direct(output):
                    return output.content, sources, iteration

        logger.warning(f"Agent stopped after {self.max_iterations} iterations without an answer")
        return MAX_STEPS_RESPONSE, sources, self.max_iterations

    async def _run_text(self, chat: List[ChatMessage]) -> Tuple[str, List[ToolOutput], int]:
        chat = list(chat)
        sources: List[ToolOutput] = []

        for iteration in range(1, self.max_iterations + 1):
            messages = self.formatter.format(self.tools, chat)
            result = await self.llm.chat(messages)
            output_text = result.text
            if self.verbose:
                logger.info(f"> Agent step {iteration}: {output_text}")
            chat.append(ChatMessage.assistant_message(output_text))

            try:
                step = self.output_parser.parse(output_text)
            except ParseFailedError as e:
                logger.warning(f"Could not parse agent output, asking the LLM to fix the format: {e}")
                chat.append(ChatMessage.user_message(PARSE_ERROR_TMPL.format(error=e)))
                continue

            if step.is_done:
                return step.response, sources, iteration

            output = await self._call_tool(step.action, step.action_input)
            sources.append(output)
            if output.is_error and self.get_tool(step.action) is None:
                chat.append(ChatMessage.user_message(output.content))
                continue
            chat.append(ChatMessage.user_message(ObservationReasoningStep(observation=output.content).get_content()))
            if self._is_direct(output):
                return output.content, sources, iteration

        logger.warning(f"Agent stopped after {self.max_iterations} iterations without an answer")
        return MAX_STEPS_RESPONSE, sources, self.max_iterations

    async def _call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolOutput:
        tool = self.get_tool(name)
        if tool is None:
            available = ", ".join(t.metadata.name for t in self.tools)
            logger.warning(f"Agent requested unknown tool '{name}'")
            return ToolOutput(
                content=f"Error: tool '{name}' does not exist. Available tools: {available}",
                tool_name=name,
                raw_input=arguments,
                is_error=True,
            )

        if self.verbose:
            logger.info(f"> Calling tool {name} with {arguments}")
        try:
            output = await tool.acall(**arguments)
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            return ToolOutput(content=f"Error: {e}", tool_name=name, raw_input=arguments, raw_output=e, is_error=True)
        if self.verbose:
            logger.info(f"> Tool {name} returned: {output.content}")
        return output

    def _is_direct(self, output: ToolOutput) -> bool:
        tool = self.get_tool(output.tool_name)
        return tool is not None and tool.metadata.return_direct and not output.is_error
