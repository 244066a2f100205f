from typing import Any, ClassVar, Dict, Sequence

from pydantic import Field

from querycraft.prompts import DEFAULT_TEXT_QA_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE
from querycraft.synthesizer.base import BaseSynthesizer, ResponseText


class SimpleSummarize(BaseSynthesizer):
    """Join all chunks into one context and answer with a single LLM call."""

    text_qa_template: PromptTemplate = Field(default=DEFAULT_TEXT_QA_PROMPT)

    _prompt_attrs: ClassVar[Dict[str, str]] = {"text_qa_template": "text_qa_template"}

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        if not text_chunks:
            return EMPTY_RESPONSE
        context_str = self.chunk_separator.join(text_chunks)
        prompt = self.text_qa_template.format(query_str=query_str, context_str=context_str)
        if self.streaming:
            return self._stream(prompt)
        return await self._predict(prompt)
