from typing import List, Optional

import tiktoken


class TiktokenTokenizer:
    """
    Tokenizer backed by tiktoken.

    Args:
        encoding_name: tiktoken encoding, e.g. ``cl100k_base``
        model_name: Resolve the encoding from an OpenAI model name instead
    """

    def __init__(self, encoding_name: str = "cl100k_base", model_name: Optional[str] = None):
        if model_name is not None:
            self._encoding = tiktoken.encoding_for_model(model_name)
        else:
            self._encoding = tiktoken.get_encoding(encoding_name)

    def encode(self, text: str) -> List[int]:
        return self._encoding.encode(text)

    def decode(self, tokens: List[int]) -> str:
        return self._encoding.decode(tokens)
