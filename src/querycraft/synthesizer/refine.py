from typing import Any, ClassVar, Dict, List, Sequence

from pydantic import Field

from querycraft.prompts import DEFAULT_REFINE_PROMPT, DEFAULT_TEXT_QA_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE
from querycraft.synthesizer.base import BaseSynthesizer, ResponseText


class Refine(BaseSynthesizer):
    """
    Answer from the first chunk, then refine the answer with every following chunk.

    Makes one LLM call per chunk, in the given chunk order. When streaming,
    only the last call is streamed.
    """

    text_qa_template: PromptTemplate = Field(default=DEFAULT_TEXT_QA_PROMPT)
    refine_template: PromptTemplate = Field(default=DEFAULT_REFINE_PROMPT)

    _prompt_attrs: ClassVar[Dict[str, str]] = {
        "text_qa_template": "text_qa_template",
        "refine_template": "refine_template",
    }

    def _prepare_chunks(self, text_chunks: Sequence[str]) -> List[str]:
        return list(text_chunks)

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        chunks = self._prepare_chunks(text_chunks)
        if not chunks:
            return EMPTY_RESPONSE

        last = len(chunks) - 1
        qa_prompt = self.text_qa_template.format(query_str=query_str, context_str=chunks[0])
        if self.streaming and last == 0:
            return self._stream(qa_prompt)
        answer = await self._predict(qa_prompt)

        for i, chunk in enumerate(chunks[1:], start=1):
            refine_prompt = self.refine_template.format(
                query_str=query_str,
                existing_answer=answer,
                context_msg=chunk,
                context_str=chunk,
            )
            if self.streaming and i == last:
                return self._stream(refine_prompt)
            answer = await self._predict(refine_prompt)
        return answer


class CompactAndRefine(Refine):
    """Refine over chunks compacted up to ``max_chunk_size``, saving LLM calls."""

    def _prepare_chunks(self, text_chunks: Sequence[str]) -> List[str]:
        return self.compact_text_chunks(text_chunks)
