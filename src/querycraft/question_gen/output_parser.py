import json
import logging
import re
from typing import Collection, List, Optional

from pydantic import ValidationError

from querycraft.errors import SubQuestionParseFailedError
from querycraft.question_gen.types import SubQuestion, SubQuestionList

logger = logging.getLogger(__name__)

BRACKET_LINE_PATTERN = re.compile(r"^\s*(?:[-*]|\d+[.)])?\s*\[([^\]]+)\]\s*(.+?)\s*$")
CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _parse_bracket_lines(output: str, tool_names: Collection[str]) -> List[SubQuestion]:
    questions = []
    for line in output.splitlines():
        match = BRACKET_LINE_PATTERN.match(line)
        if not match:
            continue
        tool_name, question = match.group(1).strip(), match.group(2).strip()
        if tool_name in tool_names and question:
            questions.append(SubQuestion(sub_question=question, tool_name=tool_name))
    return questions


def _extract_json(output: str) -> Optional[str]:
    match = CODE_BLOCK_PATTERN.search(output)
    if match:
        return match.group(1).strip()
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start = output.find(open_char)
        end = output.rfind(close_char)
        if start != -1 and end > start:
            return output[start:end + 1]
    return None


def _parse_json(output: str, tool_names: Collection[str]) -> List[SubQuestion]:
    json_str = _extract_json(output)
    if json_str is None:
        return []
    try:
        data = json.loads(json_str)
        if isinstance(data, list):
            data = {"items": data}
        items = SubQuestionList.model_validate(data).items
    except (json.JSONDecodeError, ValidationError):
        return []
    return [item for item in items if item.tool_name in tool_names and item.sub_question.strip()]


def parse_sub_questions(output: str, tool_names: Collection[str]) -> List[SubQuestion]:
    """
    Parse sub-questions from an LLM answer.

    ``[tool_name] question`` lines are read first; a JSON answer
    (``{"items": [{"sub_question", "tool_name"}]}`` or a bare list) is
    accepted as well. Only known tool names are kept, in answer order.

    Raises:
        SubQuestionParseFailedError: If no sub-question could be recovered
    """
    questions = _parse_bracket_lines(output, tool_names) or _parse_json(output, tool_names)
    if not questions:
        raise SubQuestionParseFailedError(f"No sub-questions found in: {output!r}", raw_output=output)
    return questions
