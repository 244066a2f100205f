import asyncio
import logging
from typing import Any, ClassVar, Dict, List, Sequence

from pydantic import Field

from querycraft.prompts import DEFAULT_TREE_SUMMARIZE_PROMPT, PromptTemplate
from querycraft.response import EMPTY_RESPONSE
from querycraft.synthesizer.base import BaseSynthesizer, ResponseText

logger = logging.getLogger(__name__)


class TreeSummarize(BaseSynthesizer):
    """
    Summarize chunks bottom-up until a single answer remains.

    Chunks are compacted; a single compacted chunk is answered directly with
    ``summary_template``. Otherwise every compacted chunk is summarized and
    the summaries are summarized again. When compaction cannot shrink the
    list, neighbouring summaries are merged pairwise so every level is
    strictly shorter than the previous one.
    """

    summary_template: PromptTemplate = Field(default=DEFAULT_TREE_SUMMARIZE_PROMPT)
    use_async: bool = Field(default=True, description="Summarize the chunks of a level concurrently")

    _prompt_attrs: ClassVar[Dict[str, str]] = {"summary_template": "summary_template"}

    def _pairwise(self, chunks: List[str]) -> List[str]:
        return [self.chunk_separator.join(chunks[i:i + 2]) for i in range(0, len(chunks), 2)]

    async def _summarize_level(self, query_str: str, chunks: List[str]) -> List[str]:
        prompts = [self.summary_template.format(query_str=query_str, context_str=chunk) for chunk in chunks]
        if self.use_async:
            return list(await asyncio.gather(*(self._predict(p) for p in prompts)))
        return [await self._predict(p) for p in prompts]

    async def aget_response(self, query_str: str, text_chunks: Sequence[str], **kwargs: Any) -> ResponseText:
        if not text_chunks:
            return EMPTY_RESPONSE

        chunks = self.compact_text_chunks(text_chunks)
        level = 0
        while len(chunks) > 1:
            summaries = await self._summarize_level(query_str, chunks)
            level += 1
            compacted = self.compact_text_chunks(summaries)
            if len(compacted) >= len(chunks):
                compacted = self._pairwise(summaries)
            if self.verbose:
                logger.info(f"> Tree level {level}: {len(chunks)} -> {len(compacted)} chunks")
            chunks = compacted

        return await self._answer(query_str, chunks[0])

    async def _answer(self, query_str: str, context_str: str) -> ResponseText:
        prompt = self.summary_template.format(query_str=query_str, context_str=context_str)
        if self.streaming:
            return self._stream(prompt)
        return await self._predict(prompt)
