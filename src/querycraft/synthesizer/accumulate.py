import asyncio
from typing import Any, ClassVar, Dict, List, Sequence

from pydantic import Field

from querycraft.errors import InvalidConfigError
from querycraft.prompts import DEFAULT_TEXT_QA_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE
from querycraft.synthesizer.base import BaseSynthesizer, ResponseText

DEFAULT_ACCUMULATE_SEPARATOR = "\n---------------------\n"


class Accumulate(BaseSynthesizer):
    """
    Answer the query against every chunk separately and list the answers.

    The output reads ``Response 1: ...`` followed by the other answers,
    joined by ``separator``. Streaming is not supported.
    """

    text_qa_template: PromptTemplate = Field(default=DEFAULT_TEXT_QA_PROMPT)
    separator: str = Field(default=DEFAULT_ACCUMULATE_SEPARATOR)
    use_async: bool = False

    _prompt_attrs: ClassVar[Dict[str, str]] = {"text_qa_template": "text_qa_template"}

    def __init__(self, **data: Any):
        super().__init__(**data)
        if self.streaming:
            raise InvalidConfigError(f"{type(self).__name__} does not support streaming")

    def _prepare_chunks(self, text_chunks: Sequence[str]) -> List[str]:
        return list(text_chunks)

    def _format_response(self, outputs: List[str]) -> str:
        return self.separator.join(f"Response {i + 1}: {output}" for i, output in enumerate(outputs))

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        chunks = self._prepare_chunks(text_chunks)
        if not chunks:
            return EMPTY_RESPONSE
        prompts = [self.text_qa_template.format(query_str=query_str, context_str=chunk) for chunk in chunks]
        if self.use_async:
            outputs = list(await asyncio.gather(*(self._predict(p) for p in prompts)))
        else:
            outputs = [await self._predict(p) for p in prompts]
        return self._format_response(outputs)


class CompactAndAccumulate(Accumulate):
    """Accumulate over chunks compacted up to ``max_chunk_size``."""

    def _prepare_chunks(self, text_chunks: Sequence[str]) -> List[str]:
        return self.compact_text_chunks(text_chunks)
