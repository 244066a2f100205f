import re
from typing import AsyncIterator

THINKING_PATTERN = re.compile(r"<think>(?P<reasoning>.*)</think>(?P<answer>.*)", flags=re.DOTALL)
THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


def strip_thinking(output: str) -> str:
    """Remove a leading ``<think>...</think>`` reasoning block from model output."""
    match = THINKING_PATTERN.match(output)
    if match:
        return match.group("answer").strip()
    return output


async def strip_thinking_stream(deltas: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Streaming counterpart of ``strip_thinking``.

    Deltas are held back while they may still belong to a leading reasoning
    block. A block that is never closed is emitted unchanged at the end.
    """
    buffer = ""
    state = "start"
    async for delta in deltas:
        if state == "answer":
            yield delta
            continue
        buffer += delta
        if state == "start":
            if THINK_OPEN.startswith(buffer):
                continue
            if not buffer.startswith(THINK_OPEN):
                state = "answer"
                yield buffer
                continue
            state = "thinking"
        if state == "thinking":
            end = buffer.find(THINK_CLOSE)
            if end == -1:
                continue
            buffer = buffer[end + len(THINK_CLOSE):]
            state = "answer_start"
        buffer = buffer.lstrip()
        if buffer:
            state = "answer"
            yield buffer
    if state in ("start", "thinking") and buffer:
        yield buffer
