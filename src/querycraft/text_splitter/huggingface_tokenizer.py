from typing import List

from transformers import AutoTokenizer


class HuggingFaceTokenizer:
    """Tokenizer backed by a Hugging Face ``AutoTokenizer`` (``pip install querycraft[huggingface]``)."""

    def __init__(self, model_name: str):
        self.model_name = model_name
        self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)

    def encode(self, text: str) -> List[int]:
        return self.tokenizer(text, add_special_tokens=False)["input_ids"]

    def decode(self, tokens: List[int]) -> str:
        return self.tokenizer.decode(tokens)
