"""
Sentence-aware text splitting.

Text is broken down with a cascade of increasingly fine splitters
(paragraphs, sentences, clauses, words, characters) and the pieces are then
merged back greedily into chunks that respect the token budget.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from querycraft.text_splitter.text_splitter import TextSplitter, Tokenizer, split_text_keep_separator

DEFAULT_PARAGRAPH_SEPARATOR = "\n\n\n"
DEFAULT_SENTENCE_REGEX = r"[^,.;。？！]+[,.;。？！]?|[,.;。？！]"
DEFAULT_SUB_SENTENCE_REGEX = r"[^,.;。]+[,.;。]?"


@runtime_checkable
class SentenceStrategy(Protocol):
    """Splits text into sentences, keeping all characters of the input."""

    def split_sentences(self, text: str) -> List[str]:
        ...


class RegexSentenceStrategy:
    """Sentence boundaries from a regular expression; every match is a sentence."""

    def __init__(self, pattern: str = DEFAULT_SENTENCE_REGEX):
        self.pattern = re.compile(pattern)

    def split_sentences(self, text: str) -> List[str]:
        return [s for s in self.pattern.findall(text) if s]


class PunktSentenceStrategy:
    """
    Sentence boundaries from nltk's Punkt tokenizer.

    Whitespace between sentences stays attached to the preceding sentence so
    that the pieces concatenate back to the input.
    """

    def __init__(self, tokenizer=None):
        if tokenizer is None:
            from nltk.tokenize.punkt import PunktSentenceTokenizer
            tokenizer = PunktSentenceTokenizer()
        self._tokenizer = tokenizer

    def split_sentences(self, text: str) -> List[str]:
        spans = list(self._tokenizer.span_tokenize(text))
        if not spans:
            return [text] if text else []
        sentences = []
        for i, (start, _end) in enumerate(spans):
            if i == 0:
                start = 0
            if i < len(spans) - 1:
                sentences.append(text[start:spans[i + 1][0]])
            else:
                sentences.append(text[start:])
        return sentences


@dataclass
class _Split:
    text: str
    is_sentence: bool
    token_size: int


class SentenceSplitter(TextSplitter):
    """
    Split text into chunks, preferring to break at sentence and paragraph boundaries.

    Splitters are tried in order until one of them breaks the text apart:
    paragraph separator, sentence strategy, clause regex, ``separator``, and
    finally single characters. Pieces are then merged greedily; whenever a
    chunk is closed the next one is seeded with the trailing pieces of the
    previous chunk that fit into ``chunk_overlap`` tokens.

    Example:
        ```python
        splitter = SentenceSplitter(chunk_size=3, chunk_overlap=1)
        splitter.split("A B C D E")  # ["A B C", "C D E"]
        ```

    Args:
        chunk_size: Maximum number of tokens per chunk
        chunk_overlap: Tokens shared between consecutive chunks
        tokenizer: Token counter; defaults to whitespace splitting
        separator: Word separator used before falling back to characters
        paragraph_separator: Separator between paragraphs
        secondary_chunking_regex: Clause regex used when no sentence boundary is found
        sentence_strategy: Sentence boundary detection; regex based by default
    """

    min_effective_chunk_size = 50

    def __init__(
        self,
        chunk_size: int = 1024,
        chunk_overlap: int = 200,
        tokenizer: Optional[Tokenizer] = None,
        separator: str = " ",
        paragraph_separator: str = DEFAULT_PARAGRAPH_SEPARATOR,
        secondary_chunking_regex: str = DEFAULT_SUB_SENTENCE_REGEX,
        sentence_strategy: Optional[SentenceStrategy] = None,
    ):
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, tokenizer=tokenizer)
        self.separator = separator
        self.paragraph_separator = paragraph_separator
        self.sentence_strategy = sentence_strategy or RegexSentenceStrategy()
        self._sub_sentence_regex = re.compile(secondary_chunking_regex)

        self._split_fns: List[Callable[[str], List[str]]] = [
            lambda t: split_text_keep_separator(t, self.paragraph_separator),
            self.sentence_strategy.split_sentences,
        ]
        self._sub_sentence_split_fns: List[Callable[[str], List[str]]] = [
            lambda t: [s for s in self._sub_sentence_regex.findall(t) if s],
            lambda t: split_text_keep_separator(t, self.separator),
            list,
        ]

    @classmethod
    def from_settings(cls, settings=None, **kwargs) -> "SentenceSplitter":
        from querycraft.settings import get_settings
        settings = settings or get_settings()
        return cls(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap, **kwargs)

    def _split(self, text: str, chunk_size: int) -> List[str]:
        splits = self._split_recursive(text, chunk_size)
        chunks = self._merge(splits, chunk_size)
        return [c.strip() for c in chunks if c.strip()]

    def _get_splits_by_fns(self, text: str) -> Tuple[List[str], bool]:
        for split_fn in self._split_fns:
            splits = split_fn(text)
            if len(splits) > 1:
                return splits, True

        splits = [text]
        for split_fn in self._sub_sentence_split_fns:
            splits = split_fn(text)
            if len(splits) > 1:
                break
        return splits, False

    def _split_recursive(self, text: str, chunk_size: int) -> List[_Split]:
        token_size = self._token_count(text)
        if token_size <= chunk_size:
            return [_Split(text, is_sentence=True, token_size=token_size)]

        text_splits_by_fns, is_sentence = self._get_splits_by_fns(text)
        if len(text_splits_by_fns) <= 1:
            # Nothing left to split on; admitted as is
            return [_Split(text, is_sentence=False, token_size=token_size)]

        text_splits = []
        for text_split in text_splits_by_fns:
            split_size = self._token_count(text_split)
            if split_size <= chunk_size:
                text_splits.append(_Split(text_split, is_sentence=is_sentence, token_size=split_size))
            else:
                text_splits.extend(self._split_recursive(text_split, chunk_size))
        return text_splits

    def _merge(self, splits: List[_Split], chunk_size: int) -> List[str]:
        chunks: List[str] = []
        cur_chunk: List[Tuple[str, int]] = []
        cur_chunk_len = 0
        new_chunk = True

        def close_chunk() -> None:
            nonlocal cur_chunk, cur_chunk_len, new_chunk
            chunks.append("".join(text for text, _ in cur_chunk))
            last_chunk = cur_chunk
            cur_chunk = []
            cur_chunk_len = 0
            new_chunk = True

            # seed the next chunk with the tail of the previous one
            last_index = len(last_chunk) - 1
            while last_index >= 0 and cur_chunk_len + last_chunk[last_index][1] <= self.chunk_overlap:
                text, length = last_chunk[last_index]
                cur_chunk_len += length
                cur_chunk.insert(0, (text, length))
                last_index -= 1

        i = 0
        while i < len(splits):
            cur_split = splits[i]
            if cur_split.token_size > chunk_size:
                # a piece that cannot be split further becomes its own chunk
                if not new_chunk:
                    close_chunk()
                chunks.append(cur_split.text)
                cur_chunk, cur_chunk_len, new_chunk = [], 0, True
                i += 1
                continue

            if cur_chunk_len + cur_split.token_size > chunk_size and not new_chunk:
                close_chunk()
                continue

            if cur_split.is_sentence or cur_chunk_len + cur_split.token_size <= chunk_size or new_chunk:
                # drop overlap that no longer leaves room for the next piece
                while cur_chunk and cur_chunk_len + cur_split.token_size > chunk_size:
                    _, length = cur_chunk.pop(0)
                    cur_chunk_len -= length
                cur_chunk_len += cur_split.token_size
                cur_chunk.append((cur_split.text, cur_split.token_size))
                new_chunk = False
                i += 1
            else:
                close_chunk()

        if not new_chunk:
            chunks.append("".join(text for text, _ in cur_chunk))
        return chunks
