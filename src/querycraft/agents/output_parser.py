"""
Parsing of free text LLM replies into reasoning steps.

Used by the agent when the LLM has no native tool calling. Three tool call
protocols are understood, in this order:

1. a JSON object, optionally fenced: ``{"tool": "search", "input": {...}}``
2. ``TOOL: <name>`` followed by ``INPUT: <text or JSON>``
3. ReAct ``Action: <name>`` / ``Action Input: <JSON>`` lines

A reply with none of these is the final answer; an ``Answer:`` prefix is
stripped from it.
"""
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from querycraft.errors import ParseFailedError
from querycraft.synthesizer.structured import extract_json_str

IMPLICIT_THOUGHT = "(Implicit) I can answer without any more tools!"

ACTION_PATTERN = re.compile(
    r"(?:\s*Thought:\s*(.*?)|(.*?))\n+Action:\s*([^\n\(\)\s]+).*?\n+Action Input:\s*(.*)",
    re.DOTALL,
)
ANSWER_PATTERN = re.compile(r"\s*Thought:(.*?)Answer:(.*)", re.DOTALL)
TOOL_PATTERN = re.compile(r"^\s*TOOL:\s*([^\s]+)[^\n]*\n+\s*INPUT:\s*(.*)", re.DOTALL | re.MULTILINE)
KEY_VALUE_PATTERN = re.compile(r"\"(\w+)\":\s*\"([^\"]*)\"")

TOOL_KEYS = ("tool", "tool_name", "name", "action")
INPUT_KEYS = ("input", "tool_input", "action_input", "arguments", "args")


class BaseReasoningStep(BaseModel, ABC):

    @abstractmethod
    def get_content(self) -> str:
        """Text of the step as it would appear in a ReAct transcript."""

    @property
    @abstractmethod
    def is_done(self) -> bool:
        """Whether the step ends the turn."""


class ActionReasoningStep(BaseReasoningStep):
    thought: str = ""
    action: str
    action_input: Dict[str, Any] = Field(default_factory=dict)

    def get_content(self) -> str:
        return (
            f"Thought: {self.thought}\n"
            f"Action: {self.action}\n"
            f"Action Input: {json.dumps(self.action_input)}"
        )

    @property
    def is_done(self) -> bool:
        return False


class ObservationReasoningStep(BaseReasoningStep):
    observation: str
    return_direct: bool = False

    def get_content(self) -> str:
        return f"Observation: {self.observation}"

    @property
    def is_done(self) -> bool:
        return self.return_direct


class ResponseReasoningStep(BaseReasoningStep):
    thought: str = ""
    response: str

    def get_content(self) -> str:
        return f"Thought: {self.thought}\nAnswer: {self.response}"

    @property
    def is_done(self) -> bool:
        return True


def parse_action_input(text: str) -> Dict[str, Any]:
    """
    Decode tool arguments leniently.

    JSON objects are used as is (single quoted JSON is repaired), quoted
    ``"key": "value"`` pairs are scraped from broken JSON, and any other text
    becomes ``{"input": text}``.
    """
    text = text.strip()
    if not text or text == "{}":
        return {}
    json_str = extract_json_str(text)
    for candidate in (json_str, json_str.replace("'", '"')):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
        return {"input": value}
    pairs = dict(KEY_VALUE_PATTERN.findall(json_str))
    if pairs:
        return pairs
    return {"input": text}


def clean_response(text: str) -> str:
    """Strip an ``Answer:`` prefix and surrounding whitespace."""
    index = text.find("Answer:")
    if index != -1:
        return text[index + len("Answer:"):].strip()
    return text.strip()


class ReActOutputParser:
    """Turns a raw LLM reply into an action or a final response."""

    def parse(self, output: str) -> BaseReasoningStep:
        """
        Parse an LLM reply.

        Args:
            output: The raw reply

        Returns:
            An ``ActionReasoningStep`` when the reply requests a tool,
            otherwise a ``ResponseReasoningStep``

        Raises:
            ParseFailedError: The reply contains ``Action:`` but no usable
                ``Action Input:``
        """
        text = output.strip()

        step = self._parse_json_call(text)
        if step is not None:
            return step

        tool_match = TOOL_PATTERN.search(text)
        if tool_match:
            return ActionReasoningStep(
                thought=text[:tool_match.start()].strip(),
                action=tool_match.group(1).strip(),
                action_input=parse_action_input(tool_match.group(2)),
            )

        action_index = text.find("Action:")
        answer_index = text.find("Answer:")
        if action_index != -1 and (answer_index == -1 or action_index < answer_index):
            return self._parse_action(text)

        if answer_index != -1:
            match = ANSWER_PATTERN.search(text)
            if match:
                return ResponseReasoningStep(thought=match.group(1).strip(), response=match.group(2).strip())
            return ResponseReasoningStep(thought=IMPLICIT_THOUGHT, response=clean_response(text))

        return ResponseReasoningStep(thought=IMPLICIT_THOUGHT, response=text)

    def _parse_json_call(self, text: str) -> Optional[ActionReasoningStep]:
        if not (text.startswith("{") or text.startswith("```")):
            return None
        try:
            value = json.loads(extract_json_str(text))
        except json.JSONDecodeError:
            return None
        if not isinstance(value, dict):
            return None

        name = next((value[k] for k in TOOL_KEYS if isinstance(value.get(k), str)), None)
        if not name:
            return None
        raw_input = next((value[k] for k in INPUT_KEYS if k in value), {})
        if isinstance(raw_input, dict):
            action_input = raw_input
        elif isinstance(raw_input, str):
            action_input = parse_action_input(raw_input)
        else:
            action_input = {"input": raw_input}
        return ActionReasoningStep(thought=str(value.get("thought", "")), action=name, action_input=action_input)

    def _parse_action(self, text: str) -> ActionReasoningStep:
        match = ACTION_PATTERN.search("\n" + text)
        if match is None:
            raise ParseFailedError(f"Could not extract tool use from output: {text}", raw_output=text)
        thought = (match.group(1) if match.group(1) is not None else match.group(2)) or ""
        return ActionReasoningStep(
            thought=thought.strip(),
            action=match.group(3).strip(),
            action_input=parse_action_input(match.group(4)),
        )
