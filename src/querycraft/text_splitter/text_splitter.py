import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from querycraft.errors import BudgetExhaustedError, InvalidConfigError

logger = logging.getLogger(__name__)


@runtime_checkable
class Tokenizer(Protocol):
    """Protocol for tokenizers used by text splitters. Only the length of ``encode`` is used."""

    def encode(self, text: str) -> Sequence[Any]:
        """Encode text into tokens."""
        ...


class WhitespaceTokenizer:
    """Default tokenizer: every whitespace separated word is a token."""

    def encode(self, text: str) -> List[str]:
        return text.split()

    def decode(self, tokens: Sequence[str]) -> str:
        return " ".join(tokens)


class CharacterTokenizer:
    """Tokenizer that treats each character as a token."""

    def encode(self, text: str) -> List[str]:
        return list(text)

    def decode(self, tokens: Sequence[str]) -> str:
        return "".join(tokens)


class ByteTokenizer:
    """Tokenizer that counts UTF-8 bytes. Used as the size metric when compacting prompts."""

    def encode(self, text: str) -> bytes:
        return text.encode("utf-8")

    def decode(self, tokens: bytes) -> str:
        return bytes(tokens).decode("utf-8", errors="ignore")


MetadataLike = Union[str, Dict[str, Any], None]


def metadata_to_str(metadata: MetadataLike) -> str:
    """Render metadata the way it is prepended to chunk text."""
    if not metadata:
        return ""
    if isinstance(metadata, str):
        return metadata
    return "\n".join(f"{key}: {value}" for key, value in metadata.items())


class TextSplitter(ABC):
    """
    Interface for text splitting strategies.

    Subclasses implement ``_split`` for a given token budget; the public
    ``split`` and ``split_metadata_aware`` methods decide which budget to use.

    Args:
        chunk_size: Maximum number of tokens per chunk
        chunk_overlap: Tokens shared between consecutive chunks
        tokenizer: Token counter; defaults to whitespace splitting
    """

    # Smallest budget left for content once metadata is accounted for
    min_effective_chunk_size: int = 1

    def __init__(
        self,
        chunk_size: int,
        chunk_overlap: int = 0,
        tokenizer: Optional[Tokenizer] = None,
    ):
        if chunk_size <= 0:
            raise InvalidConfigError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise InvalidConfigError(f"chunk_overlap must not be negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise InvalidConfigError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.tokenizer = tokenizer if tokenizer is not None else WhitespaceTokenizer()

    def _token_count(self, text: str) -> int:
        return len(self.tokenizer.encode(text))

    def split(self, text: str) -> List[str]:
        """
        Split text into chunks of at most ``chunk_size`` tokens.

        Args:
            text: The text to split

        Returns:
            Non-empty, stripped chunks in source order
        """
        if not text or not text.strip():
            return []
        return self._split(text, self.chunk_size)

    def split_metadata_aware(self, text: str, metadata: MetadataLike) -> List[str]:
        """
        Split text leaving room for ``metadata`` in every chunk.

        Args:
            text: The text to split
            metadata: Metadata string, or a mapping rendered as ``key: value`` lines

        Returns:
            Non-empty, stripped chunks in source order

        Raises:
            BudgetExhaustedError: If the metadata leaves less than the splitter's floor
        """
        metadata_len = self._token_count(metadata_to_str(metadata))
        effective_chunk_size = self.chunk_size - metadata_len
        if effective_chunk_size < self.min_effective_chunk_size:
            raise BudgetExhaustedError(
                f"Metadata length ({metadata_len}) leaves {effective_chunk_size} tokens for content "
                f"with chunk size {self.chunk_size}; at least {self.min_effective_chunk_size} are needed. "
                "Consider increasing the chunk size or decreasing the size of your metadata."
            )
        if effective_chunk_size < 50 <= self.chunk_size:
            logger.warning(
                f"Metadata length ({metadata_len}) is close to chunk size ({self.chunk_size}). "
                f"Resulting chunks are less than 50 tokens."
            )
        if not text or not text.strip():
            return []
        return self._split(text, effective_chunk_size)

    @abstractmethod
    def _split(self, text: str, chunk_size: int) -> List[str]:
        """Split non-blank ``text`` under a budget of ``chunk_size`` tokens."""


def split_text_keep_separator(text: str, separator: str) -> List[str]:
    """Split text on ``separator`` and prepend the separator to every part but the first."""
    parts = text.split(separator)
    result = [separator + s if i > 0 else s for i, s in enumerate(parts)]
    return [s for s in result if s]
