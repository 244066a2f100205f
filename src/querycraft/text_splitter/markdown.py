"""Markdown aware text splitting."""
import re
from typing import List, Optional, Tuple

from querycraft.text_splitter.text_splitter import TextSplitter, Tokenizer
from querycraft.text_splitter.token_splitter import TokenTextSplitter

CODE_BLOCK_PATTERN = re.compile(r"(?ms)^(```|~~~)[^\n]*\n.*?^\1[ \t]*$")
HEADER_PATTERN = re.compile(r"(?m)^(#{1,6})\s+(.+)$")


class MarkdownTextSplitter(TextSplitter):
    """
    Split Markdown while keeping fenced code blocks and header sections together.

    Code blocks (``` or ~~~) that fit the budget are kept intact; larger ones
    are split by lines with the opening and closing fence repeated in every
    part. The remaining text is cut at headers (levels 1 to 6) and the sections
    are merged greedily. Sections larger than the budget are split by
    paragraphs, then by lines, and single oversized lines fall back to the
    token splitter.

    Args:
        chunk_size: Maximum number of tokens per chunk
        chunk_overlap: Overlap used by the token splitter fallback
        tokenizer: Token counter; defaults to whitespace splitting
    """

    def __init__(
        self,
        chunk_size: int = 1024,
        chunk_overlap: int = 0,
        tokenizer: Optional[Tokenizer] = None,
    ):
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, tokenizer=tokenizer)

    def _split(self, text: str, chunk_size: int) -> List[str]:
        units: List[str] = []
        for segment, is_code in self._partition_code_blocks(text):
            if is_code:
                if self._token_count(segment) <= chunk_size:
                    units.append(segment)
                else:
                    units.extend(self._split_code_block(segment, chunk_size))
            else:
                units.extend(self._split_sections(segment, chunk_size))

        chunks = self._merge(units, chunk_size)
        return [c.strip() for c in chunks if c.strip()]

    @staticmethod
    def _partition_code_blocks(text: str) -> List[Tuple[str, bool]]:
        segments = []
        last = 0
        for match in CODE_BLOCK_PATTERN.finditer(text):
            if match.start() > last:
                segments.append((text[last:match.start()], False))
            segments.append((match.group(0), True))
            last = match.end()
        if last < len(text):
            segments.append((text[last:], False))
        return segments

    def _split_code_block(self, block: str, chunk_size: int) -> List[str]:
        lines = block.split("\n")
        if len(lines) < 3:
            return [block]
        opening, body, closing = lines[0], lines[1:-1], lines[-1]

        parts = []
        current: List[str] = []
        for line in body:
            candidate = "\n".join([opening, *current, line, closing])
            if current and self._token_count(candidate) > chunk_size:
                parts.append("\n".join([opening, *current, closing]))
                current = []
            current.append(line)
        if current:
            parts.append("\n".join([opening, *current, closing]))
        return parts

    def _split_sections(self, text: str, chunk_size: int) -> List[str]:
        starts = [m.start() for m in HEADER_PATTERN.finditer(text)]
        if not starts or starts[0] != 0:
            starts.insert(0, 0)
        sections = [text[s:e] for s, e in zip(starts, starts[1:] + [len(text)])]

        result = []
        for section in sections:
            if not section.strip():
                continue
            if self._token_count(section) <= chunk_size:
                result.append(section)
            else:
                result.extend(self._split_oversized(section, chunk_size, ["\n\n", "\n"]))
        return result

    def _split_oversized(self, text: str, chunk_size: int, separators: List[str]) -> List[str]:
        if not separators:
            fallback = TokenTextSplitter(
                chunk_size=chunk_size,
                chunk_overlap=min(self.chunk_overlap, chunk_size - 1),
                tokenizer=self.tokenizer,
            )
            return fallback.split(text)

        separator, rest = separators[0], separators[1:]
        parts = [p for p in text.split(separator) if p.strip()]
        if len(parts) <= 1:
            return self._split_oversized(text, chunk_size, rest)

        result = []
        current = ""
        for part in parts:
            if self._token_count(part) > chunk_size:
                if current:
                    result.append(current)
                    current = ""
                result.extend(self._split_oversized(part, chunk_size, rest))
                continue
            candidate = f"{current}{separator}{part}" if current else part
            if current and self._token_count(candidate) > chunk_size:
                result.append(current)
                current = part
            else:
                current = candidate
        if current:
            result.append(current)
        return result

    def _merge(self, units: List[str], chunk_size: int) -> List[str]:
        chunks = []
        current = ""
        for unit in units:
            joiner = "" if not current or current.endswith("\n") or unit.startswith("\n") else "\n\n"
            candidate = current + joiner + unit
            if current and self._token_count(candidate) > chunk_size:
                chunks.append(current)
                current = unit
            else:
                current = candidate
        if current:
            chunks.append(current)
        return chunks
