from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from querycraft.node import Chunk, DocumentNode, Node


class NodeParser(BaseModel, ABC):
    """Turns documents into retrievable nodes."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @abstractmethod
    def get_nodes(self, documents: List[DocumentNode], metadata: Optional[Dict[str, Any]] = None) -> List[Node]:
        pass

    @staticmethod
    def _link(chunks: List[Chunk]) -> None:
        """Link chunks of the same document as a sequence."""
        for prev_chunk, chunk in zip(chunks, chunks[1:]):
            chunk.previous_id = prev_chunk.id
            prev_chunk.next_id = chunk.id
