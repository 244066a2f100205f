from typing import List, Optional

from querycraft.text_splitter.text_splitter import TextSplitter, Tokenizer


class TokenTextSplitter(TextSplitter):
    """
    Split text on a separator and merge the pieces into token bounded chunks.

    Pieces that are larger than the budget on their own are cut into windows
    sized proportionally to their token count, advancing by
    ``chunk_size - chunk_overlap`` tokens per window.

    Args:
        chunk_size: Maximum number of tokens per chunk
        chunk_overlap: Tokens shared between consecutive chunks
        tokenizer: Token counter; defaults to whitespace splitting
        separator: Separator between pieces; also used to join them back
        backup_separators: Separators tried for pieces that are still too large
    """

    def __init__(
        self,
        chunk_size: int = 1024,
        chunk_overlap: int = 20,
        tokenizer: Optional[Tokenizer] = None,
        separator: str = " ",
        backup_separators: Optional[List[str]] = None,
    ):
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, tokenizer=tokenizer)
        self.separator = separator
        self.backup_separators = backup_separators if backup_separators is not None else ["\n"]

    def _split(self, text: str, chunk_size: int) -> List[str]:
        pieces = [p for p in text.split(self.separator) if p]
        splits: List[str] = []
        for piece in pieces:
            splits.extend(self._split_piece(piece, chunk_size, 0))
        return self._merge(splits, chunk_size)

    def _split_piece(self, piece: str, chunk_size: int, separator_index: int) -> List[str]:
        if self._token_count(piece) <= chunk_size:
            return [piece]
        if separator_index < len(self.backup_separators):
            sep = self.backup_separators[separator_index]
            parts = [p for p in piece.split(sep) if p]
            if len(parts) > 1:
                result = []
                for part in parts:
                    result.extend(self._split_piece(part, chunk_size, separator_index + 1))
                return result
            return self._split_piece(piece, chunk_size, separator_index + 1)
        return self._split_proportionally(piece, chunk_size)

    def _split_proportionally(self, piece: str, chunk_size: int) -> List[str]:
        """Cut an oversized piece into character windows matching the token budget."""
        token_count = self._token_count(piece)
        chars_per_token = len(piece) / token_count
        window = max(1, int(chunk_size * chars_per_token))
        step = max(1, int((chunk_size - min(self.chunk_overlap, chunk_size - 1)) * chars_per_token))

        windows = []
        start = 0
        while start < len(piece):
            end = min(len(piece), start + window)
            # shrink until the window fits; a single character is admitted regardless
            while end - start > 1 and self._token_count(piece[start:end]) > chunk_size:
                end -= 1
            windows.append(piece[start:end])
            if end >= len(piece):
                break
            start += min(step, end - start)
        return windows

    def _merge(self, splits: List[str], chunk_size: int) -> List[str]:
        chunks: List[str] = []
        cur_chunk: List[str] = []
        cur_len = 0
        sep_len = self._token_count(self.separator)

        def joined_len(n_items: int, length: int) -> int:
            return length + sep_len * max(0, n_items - 1)

        for split in splits:
            split_len = self._token_count(split)
            if cur_chunk and joined_len(len(cur_chunk) + 1, cur_len + split_len) > chunk_size:
                chunk = self.separator.join(cur_chunk).strip()
                if chunk:
                    chunks.append(chunk)
                # keep a tail of at most chunk_overlap tokens that leaves room for the next split
                while cur_chunk and (
                    joined_len(len(cur_chunk), cur_len) > self.chunk_overlap
                    or joined_len(len(cur_chunk) + 1, cur_len + split_len) > chunk_size
                ):
                    cur_len -= self._token_count(cur_chunk.pop(0))
            cur_chunk.append(split)
            cur_len += split_len

        chunk = self.separator.join(cur_chunk).strip()
        if chunk:
            chunks.append(chunk)
        return chunks
