"""
Tests for the text splitters.
"""

import pytest

from querycraft.errors import BudgetExhaustedError, InvalidConfigError
from querycraft.text_splitter import (
    ByteTokenizer,
    CharacterTokenizer,
    MarkdownTextSplitter,
    PunktSentenceStrategy,
    RegexSentenceStrategy,
    SentenceSplitter,
    SentenceWindowSplitter,
    TokenTextSplitter,
    WhitespaceTokenizer,
)


def token_len(text: str) -> int:
    return len(WhitespaceTokenizer().encode(text))


class TestSentenceSplitter:
    """Test suite for SentenceSplitter"""

    def test_overlap_scenario(self):
        """Test that the documented overlap example yields two chunks sharing one token"""
        splitter = SentenceSplitter(chunk_size=3, chunk_overlap=1)
        assert splitter.split("A B C D E") == ["A B C", "C D E"]

    def test_empty_and_blank_input(self):
        """Test that empty or whitespace-only input produces no chunks"""
        splitter = SentenceSplitter(chunk_size=10, chunk_overlap=2)
        assert splitter.split("") == []
        assert splitter.split("   \n\t  ") == []

    def test_short_text_is_single_chunk(self):
        """Test that text within the budget comes back as one stripped chunk"""
        splitter = SentenceSplitter(chunk_size=50, chunk_overlap=5)
        assert splitter.split("  Hello world. This is short.  ") == ["Hello world. This is short."]

    def test_chunks_respect_budget_and_overlap(self):
        """Test the size bound and the overlap bound over a longer text"""
        text = " ".join(f"Sentence number {i} talks about topic {i}." for i in range(40))
        splitter = SentenceSplitter(chunk_size=20, chunk_overlap=5)
        chunks = splitter.split(text)

        assert len(chunks) > 1
        for chunk in chunks:
            assert token_len(chunk) <= 20
        for previous, current in zip(chunks, chunks[1:]):
            prev_tokens = previous.split()
            cur_tokens = current.split()
            shared = 0
            for size in range(1, min(len(prev_tokens), len(cur_tokens)) + 1):
                if prev_tokens[-size:] == cur_tokens[:size]:
                    shared = size
            assert shared <= 5

    def test_zero_overlap(self):
        """Test that zero overlap is legal and chunks do not repeat tokens"""
        splitter = SentenceSplitter(chunk_size=3, chunk_overlap=0)
        assert splitter.split("A B C D E F") == ["A B C", "D E F"]

    def test_oversized_token_is_kept(self):
        """Test that a single token larger than the budget is admitted as its own chunk"""
        splitter = SentenceSplitter(chunk_size=3, chunk_overlap=0, tokenizer=CharacterTokenizer())
        chunks = splitter.split("abcdefgh")
        assert "".join(chunks) == "abcdefgh"

    def test_paragraphs_are_preferred(self):
        """Test that paragraph breaks are used before sentence breaks"""
        text = "First paragraph has five words.\n\n\nSecond paragraph has five words."
        splitter = SentenceSplitter(chunk_size=6, chunk_overlap=0)
        assert splitter.split(text) == ["First paragraph has five words.", "Second paragraph has five words."]

    def test_invalid_config(self):
        """Test construction-time validation"""
        with pytest.raises(InvalidConfigError):
            SentenceSplitter(chunk_size=0)
        with pytest.raises(InvalidConfigError):
            SentenceSplitter(chunk_size=10, chunk_overlap=10)
        with pytest.raises(InvalidConfigError):
            SentenceSplitter(chunk_size=10, chunk_overlap=-1)

    def test_metadata_aware_budget_exhausted(self):
        """Test that metadata leaving less than 50 tokens is rejected"""
        splitter = SentenceSplitter(chunk_size=60, chunk_overlap=0)
        metadata = {f"key{i}": "value" for i in range(20)}
        with pytest.raises(BudgetExhaustedError):
            splitter.split_metadata_aware("Some text.", metadata)

    def test_metadata_aware_reduces_budget(self):
        """Test that chunks shrink by the size of the metadata"""
        text = " ".join(["word"] * 200)
        splitter = SentenceSplitter(chunk_size=100, chunk_overlap=0)
        chunks = splitter.split_metadata_aware(text, "title: a very long title here")
        for chunk in chunks:
            assert token_len(chunk) <= 100 - 6


class TestTokenTextSplitter:
    """Test suite for TokenTextSplitter"""

    def test_merge_with_overlap(self):
        """Test greedy merging with overlap"""
        splitter = TokenTextSplitter(chunk_size=3, chunk_overlap=1)
        assert splitter.split("A B C D E") == ["A B C", "C D E"]

    def test_empty_input(self):
        """Test that empty input produces no chunks"""
        assert TokenTextSplitter(chunk_size=5, chunk_overlap=0).split("") == []

    def test_oversized_piece_split_proportionally(self):
        """Test that a piece larger than the budget is cut into windows within the budget"""
        splitter = TokenTextSplitter(chunk_size=4, chunk_overlap=0, tokenizer=CharacterTokenizer())
        chunks = splitter.split("abcdefghij")
        assert all(len(chunk) <= 4 for chunk in chunks)
        assert "".join(chunks) == "abcdefghij"

    def test_metadata_floor_is_one(self):
        """Test that the token splitter only needs one token of content"""
        splitter = TokenTextSplitter(chunk_size=3, chunk_overlap=0)
        assert splitter.split_metadata_aware("A B C", "m n") == ["A", "B", "C"]
        with pytest.raises(BudgetExhaustedError):
            splitter.split_metadata_aware("A B C", "m n o")


class TestMarkdownTextSplitter:
    """Test suite for MarkdownTextSplitter"""

    def test_headers_split_sections(self):
        """Test that header sections become separate chunks when they do not fit together"""
        text = "# Intro\nSome intro text here.\n\n## Usage\nHow to use the tool properly."
        splitter = MarkdownTextSplitter(chunk_size=8)
        chunks = splitter.split(text)
        assert len(chunks) == 2
        assert chunks[0].startswith("# Intro")
        assert chunks[1].startswith("## Usage")

    def test_code_block_kept_intact(self):
        """Test that a fitting code block is never split"""
        code = "```python\nx = 1\ny = 2\n```"
        text = f"# Code\n\n{code}\n\nAfter the code."
        chunks = MarkdownTextSplitter(chunk_size=12).split(text)
        assert any(code in chunk for chunk in chunks)

    def test_large_code_block_keeps_fences(self):
        """Test that an oversized code block is split by lines with fences repeated"""
        body = "\n".join(f"line_{i} = {i}" for i in range(10))
        text = f"```\n{body}\n```"
        chunks = MarkdownTextSplitter(chunk_size=8).split(text)
        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.startswith("```")
            assert chunk.endswith("```")

    def test_backticks_inside_code_block(self):
        """Test that inline backticks do not end a fenced block"""
        text = (
            "# Intro\nSome prose.\n\n"
            "```bash\necho `date`\nls -la\n```\n\n"
            "# Second\nMore prose.\n\n"
            "```python\nprint(1)\n```\n"
        )

        assert MarkdownTextSplitter(chunk_size=100).split(text) == [text.strip()]
        assert MarkdownTextSplitter(chunk_size=6).split(text) == [
            "# Intro\nSome prose.",
            "```bash\necho `date`\nls -la\n```",
            "# Second\nMore prose.",
            "```python\nprint(1)\n```",
        ]

    def test_tilde_fence_closed_by_tilde(self):
        """Test that a ~~~ block is only closed by a ~~~ line"""
        text = "~~~\nuse ``` here\n~~~\n\nAfter."
        chunks = MarkdownTextSplitter(chunk_size=5).split(text)
        assert chunks[0] == "~~~\nuse ``` here\n~~~"


class TestSentenceWindowSplitter:
    """Test suite for SentenceWindowSplitter"""

    def test_windows(self):
        """Test that every sentence carries its neighbours"""
        items = SentenceWindowSplitter(window_size=1).split("One. Two. Three. Four.")
        assert [item.sentence for item in items] == ["One.", "Two.", "Three.", "Four."]
        assert items[0].window == "One. Two."
        assert items[1].window == "One. Two. Three."
        assert items[3].window == "Three. Four."

    def test_empty(self):
        """Test that empty input yields nothing"""
        assert SentenceWindowSplitter().split("") == []

    def test_negative_window_rejected(self):
        """Test construction-time validation"""
        with pytest.raises(InvalidConfigError):
            SentenceWindowSplitter(window_size=-1)


class TestTokenizers:
    """Test suite for the tokenizers"""

    def test_byte_tokenizer_counts_utf8(self):
        """Test that multi-byte characters count per byte"""
        assert len(ByteTokenizer().encode("é")) == 2

    def test_regex_sentence_strategy_keeps_text(self):
        """Test that sentence pieces concatenate back to the input"""
        text = "Hello there, friend. How are you?"
        assert "".join(RegexSentenceStrategy().split_sentences(text)) == text

    def test_punkt_sentence_strategy_keeps_text(self):
        """Test that Punkt sentences concatenate back to the input"""
        text = "Paris is the capital of France. Berlin is the capital of Germany."
        sentences = PunktSentenceStrategy().split_sentences(text)
        assert "".join(sentences) == text
        assert sentences[0].startswith("Paris is the capital of France.")

    def test_sentence_splitter_with_punkt(self):
        """Test that the splitter accepts the Punkt strategy"""
        splitter = SentenceSplitter(chunk_size=50, chunk_overlap=0, sentence_strategy=PunktSentenceStrategy())
        assert splitter.split("One sentence. Another one.") == ["One sentence. Another one."]
