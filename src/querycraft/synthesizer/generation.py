from typing import Any, ClassVar, Dict, Sequence

from pydantic import Field

from querycraft.prompts import DEFAULT_SIMPLE_INPUT_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE
from querycraft.synthesizer.base import BaseSynthesizer, ResponseText


class Generation(BaseSynthesizer):
    """Ignore the context and answer the query with the LLM alone."""

    simple_template: PromptTemplate = Field(default=DEFAULT_SIMPLE_INPUT_PROMPT)

    _prompt_attrs: ClassVar[Dict[str, str]] = {"simple_template": "simple_template"}

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        prompt = self.simple_template.format(query_str=query_str)
        if self.streaming:
            return self._stream(prompt)
        return await self._predict(prompt)


class NoText(BaseSynthesizer):
    """Skip synthesis; the response only carries the retrieved nodes."""

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        return EMPTY_RESPONSE


class ContextOnly(BaseSynthesizer):
    """Return the retrieved text itself, chunks joined by ``chunk_separator``."""

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        if not text_chunks:
            return EMPTY_RESPONSE
        return self.chunk_separator.join(text_chunks)
