from typing import ClassVar, Dict, List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from querycraft.llms.base import ChatMessage
from querycraft.prompts import PromptMixin, PromptTemplate, PromptType
from querycraft.tools.types import BaseTool

REACT_SYSTEM_HEADER_TMPL = """You are designed to help with a variety of tasks, from answering questions to providing summaries to other types of analyses.

## Tools

You have access to a wide variety of tools. You are responsible for using the tools in any sequence you deem appropriate to complete the task at hand.
This may require breaking the task into subtasks and using different tools to complete each subtask.

You have access to the following tools:
{tool_desc}
{context_prompt}

## Output Format

Please answer in the same language as the question and use the following format:

```
Thought: The current language of the user is: (user's language). I need to use a tool to help me answer the question.
Action: tool name (one of {tool_names}) if using a tool.
Action Input: the input to the tool, in a JSON format representing the kwargs (e.g. {"input": "hello world", "num_beams": 5})
```

Please ALWAYS start with a Thought.

NEVER surround your response with markdown code markers. You may use code markers within your response if you need to.

Please use a valid JSON format for the Action Input. Do NOT do this {'input': 'hello world', 'num_beams': 5}. If you include the "Action:" line, then you MUST include the "Action Input:" line too, even if the tool does not need kwargs, in that case you MUST use "Action Input: {}".

If this format is used, the tool will respond in the following format:

```
Observation: tool response
```

You should keep repeating the above format till you have enough information to answer the question without using any more tools. At that point, you MUST respond in one of the following two formats:

```
Thought: I can answer without using any more tools. I'll use the user's language to answer
Answer: [your answer here (In the same language as the user's question)]
```

```
Thought: I cannot answer the question with the provided tools.
Answer: [your answer here (In the same language as the user's question)]
```

## Current Conversation

Below is the current conversation consisting of interleaving human and assistant messages.
"""

CONTEXT_PROMPT_TMPL = "\nHere is some context to help you answer the question and plan:\n{context}\n"

PARSE_ERROR_TMPL = (
    "Error while parsing the output: {error}\n\n"
    "The output should be in one of the following formats:\n"
    "1. To call a tool:\n"
    "```\n"
    "Thought: <thought>\n"
    "Action: <action>\n"
    "Action Input: <action_input>\n"
    "```\n"
    "2. To answer the question:\n"
    "```\n"
    "Thought: <thought>\n"
    "Answer: <answer>\n"
    "```\n"
)

DEFAULT_REACT_SYSTEM_HEADER = PromptTemplate(REACT_SYSTEM_HEADER_TMPL, PromptType.CUSTOM)


def get_tool_descriptions(tools: Sequence[BaseTool]) -> List[str]:
    return [
        f"> Tool Name: {tool.metadata.name}\n"
        f"Tool Description: {tool.metadata.description}\n"
        f"Tool Args: {tool.metadata.get_parameters_str()}\n"
        for tool in tools
    ]


class ReActChatFormatter(BaseModel, PromptMixin):
    """
    Builds the message list sent to an LLM without native tool calling.

    The system header describes the tools and the ReAct protocol; ``context``
    (usually the agent system prompt) is appended to it.
    """

    system_header: PromptTemplate = Field(default=DEFAULT_REACT_SYSTEM_HEADER)
    context: str = ""

    model_config = ConfigDict(validate_assignment=True)

    _prompt_attrs: ClassVar[Dict[str, str]] = {"system_header": "system_header"}

    def format_system_header(self, tools: Sequence[BaseTool]) -> str:
        context_prompt = CONTEXT_PROMPT_TMPL.format(context=self.context) if self.context else ""
        return self.system_header.format(
            tool_desc="\n".join(get_tool_descriptions(tools)),
            tool_names=", ".join(tool.metadata.name for tool in tools),
            context_prompt=context_prompt,
            context=self.context,
        )

    def format(self, tools: Sequence[BaseTool], chat_history: Sequence[ChatMessage]) -> List[ChatMessage]:
        return [ChatMessage.system_message(self.format_system_header(tools)), *chat_history]
