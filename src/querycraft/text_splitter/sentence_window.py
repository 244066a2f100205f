from dataclasses import dataclass
from typing import List, Optional

from querycraft.errors import InvalidConfigError
from querycraft.text_splitter.sentence import RegexSentenceStrategy, SentenceStrategy


@dataclass(frozen=True)
class SentenceWindow:
    """A sentence together with the text of its neighbours."""
    sentence: str
    window: str
    index: int
    window_start: int
    window_end: int


class SentenceWindowSplitter:
    """
    Split text into sentences and attach a window of ``window_size`` sentences on each side.

    Args:
        window_size: Number of neighbouring sentences on each side
        sentence_strategy: Sentence boundary detection; regex based by default
    """

    def __init__(self, window_size: int = 3, sentence_strategy: Optional[SentenceStrategy] = None):
        if window_size < 0:
            raise InvalidConfigError(f"window_size must not be negative, got {window_size}")
        self.window_size = window_size
        self.sentence_strategy = sentence_strategy or RegexSentenceStrategy()

    def split(self, text: str) -> List[SentenceWindow]:
        if not text or not text.strip():
            return []
        sentences = [s.strip() for s in self.sentence_strategy.split_sentences(text)]
        sentences = [s for s in sentences if s]

        windows = []
        for i, sentence in enumerate(sentences):
            start = max(0, i - self.window_size)
            end = min(len(sentences), i + self.window_size + 1)
            windows.append(SentenceWindow(
                sentence=sentence,
                window=" ".join(sentences[start:end]),
                index=i,
                window_start=start,
                window_end=end - 1,
            ))
        return windows
