from querycraft.text_splitter.text_splitter import (
    TextSplitter,
    Tokenizer,
    WhitespaceTokenizer,
    CharacterTokenizer,
    ByteTokenizer,
)
from querycraft.text_splitter.sentence import (
    SentenceSplitter,
    SentenceStrategy,
    RegexSentenceStrategy,
    PunktSentenceStrategy,
)
from querycraft.text_splitter.token_splitter import TokenTextSplitter
from querycraft.text_splitter.tiktoken_tokenizer import TiktokenTokenizer
from querycraft.text_splitter.markdown import MarkdownTextSplitter
from querycraft.text_splitter.sentence_window import SentenceWindowSplitter, SentenceWindow

__all__ = [
    "TextSplitter",
    "Tokenizer",
    "WhitespaceTokenizer",
    "CharacterTokenizer",
    "ByteTokenizer",
    "TiktokenTokenizer",
    "SentenceSplitter",
    "SentenceStrategy",
    "RegexSentenceStrategy",
    "PunktSentenceStrategy",
    "TokenTextSplitter",
    "MarkdownTextSplitter",
    "SentenceWindowSplitter",
    "SentenceWindow",
]
