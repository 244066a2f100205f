import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from querycraft.node import Chunk, DocumentNode, Node
from querycraft.node_parser.base import NodeParser
from querycraft.text_splitter import SentenceSplitter, TextSplitter

logger = logging.getLogger(__name__)


class SimpleNodeParser(NodeParser):
    """
    Split every document with a text splitter and emit linked chunks.

    Chunks inherit the document metadata plus the ``metadata`` passed to
    ``get_nodes``; with ``include_metadata`` the splitter leaves room for the
    metadata in every chunk.
    """

    text_splitter: Any = Field(default_factory=SentenceSplitter, description="Splitter used for documents")
    include_metadata: bool = Field(default=False, description="Reserve room for metadata in every chunk")

    def get_nodes(self, documents: List[DocumentNode], metadata: Optional[Dict[str, Any]] = None) -> List[Node]:
        if metadata is None:
            metadata = {}

        nodes: List[Node] = []
        for document in documents:
            chunk_metadata = {**document.metadata, **metadata}
            if self.include_metadata:
                texts = self.text_splitter.split_metadata_aware(document.text, chunk_metadata)
            else:
                texts = self.text_splitter.split(document.text)

            chunks = []
            search_from = 0
            for idx, chunk_text in enumerate(texts):
                start = document.text.find(chunk_text, search_from)
                if start >= 0:
                    end = start + len(chunk_text)
                    search_from = start + 1
                else:
                    start = end = None
                chunk = Chunk.from_text(
                    text=chunk_text,
                    chunk_index=idx,
                    start_char_idx=start,
                    end_char_idx=end,
                    metadata={**chunk_metadata, "chunk_index": idx, "total_chunks": len(texts)},
                    doc_id=document.doc_id,
                    parent_id=document.id,
                )
                chunks.append(chunk)

            self._link(chunks)
            nodes.extend(chunks)

        logger.debug(f"Parsed {len(documents)} documents into {len(nodes)} nodes")
        return nodes

    def __repr__(self) -> str:
        return f"SimpleNodeParser(text_splitter={type(self.text_splitter).__name__})"
