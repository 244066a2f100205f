import json
import logging
import re
from typing import Any, List, Optional, Tuple

from querycraft.errors import SelectionParseFailedError

logger = logging.getLogger(__name__)

CHOICE_PATTERN = re.compile(r'"?choice"?\s*[:=]\s*"?(\d+)', re.IGNORECASE)
REASON_PATTERN = re.compile(r'"?reason"?\s*[:=]\s*"?([^"\n]*)', re.IGNORECASE)
LEADING_NUMBER_PATTERN = re.compile(r"^\s*(?:choice\s*)?\(?(\d+)(?:[).:\s]|$)", re.IGNORECASE)

Answer = Tuple[int, str]


def _extract_json(text: str) -> Optional[str]:
    for open_char, close_char in (("[", "]"), ("{", "}")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            return text[start:end + 1]
    return None


def _answer_from_obj(obj: Any) -> Optional[Answer]:
    if not isinstance(obj, dict) or "choice" not in obj:
        return None
    try:
        return int(obj["choice"]), str(obj.get("reason", ""))
    except (TypeError, ValueError):
        return None


def _parse_json_answers(text: str) -> List[Answer]:
    json_str = _extract_json(text)
    if json_str is None:
        return []
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        return []
    items = data if isinstance(data, list) else [data]
    answers = []
    for item in items:
        answer = _answer_from_obj(item)
        if answer is not None:
            answers.append(answer)
    return answers


def _parse_loose_answers(text: str) -> List[Answer]:
    answers = []
    for line in text.splitlines():
        match = CHOICE_PATTERN.search(line) or LEADING_NUMBER_PATTERN.match(line)
        if match:
            reason_match = REASON_PATTERN.search(line)
            answers.append((int(match.group(1)), reason_match.group(1).strip() if reason_match else line.strip()))
    return answers


def parse_selection(output: str, num_choices: int) -> List[Answer]:
    """
    Recover ``(choice, reason)`` pairs from a selector answer.

    JSON (a list of ``{"choice", "reason"}`` objects or a single object) is
    tried first, then ``choice: N`` fragments and numbered lines. Choices
    are 1-based; those outside ``1..num_choices`` are dropped.

    Raises:
        SelectionParseFailedError: If no valid choice can be recovered
    """
    answers = _parse_json_answers(output) or _parse_loose_answers(output)
    valid = [(choice, reason) for choice, reason in answers if 1 <= choice <= num_choices]
    if len(valid) < len(answers):
        logger.warning(f"Dropped {len(answers) - len(valid)} out of range selections from: {output!r}")
    if not valid:
        raise SelectionParseFailedError(f"No valid choice found in selector output: {output!r}", raw_output=output)
    return valid
