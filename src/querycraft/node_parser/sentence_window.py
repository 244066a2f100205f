from typing import Any, Dict, List, Optional

from pydantic import Field

from querycraft.node import Chunk, DocumentNode, Node
from querycraft.node_parser.base import NodeParser
from querycraft.text_splitter import SentenceWindowSplitter


class SentenceWindowNodeParser(NodeParser):
    """
    Emit one node per sentence, carrying the surrounding window in its metadata.

    The node text is the sentence itself, so embeddings stay precise; the
    window is available to synthesizers under ``window_metadata_key``.
    """

    splitter: SentenceWindowSplitter = Field(default_factory=SentenceWindowSplitter)
    window_metadata_key: str = "window"
    original_text_metadata_key: str = "original_sentence"

    def get_nodes(self, documents: List[DocumentNode], metadata: Optional[Dict[str, Any]] = None) -> List[Node]:
        metadata = metadata or {}
        nodes: List[Node] = []
        for document in documents:
            chunks = []
            for item in self.splitter.split(document.text):
                chunks.append(Chunk.from_text(
                    text=item.sentence,
                    chunk_index=item.index,
                    metadata={
                        **document.metadata,
                        **metadata,
                        self.original_text_metadata_key: item.sentence,
                        self.window_metadata_key: item.window,
                        "sentence_index": item.index,
                        "window_start": item.window_start,
                        "window_end": item.window_end,
                    },
                    doc_id=document.doc_id,
                    parent_id=document.id,
                ))
            self._link(chunks)
            nodes.extend(chunks)
        return nodes
