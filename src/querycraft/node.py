from enum import Enum
from typing import Optional, List, Dict, Any, Tuple
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from uuid import uuid4
import hashlib
import json


class NodeType(str, Enum):
    """Content-type tag of a node."""
    TEXT = "text"
    DOCUMENT = "document"
    INDEX = "index"


class Node(BaseModel):
    """
    The unit of retrievable text.

    Nodes carry their content, free-form metadata, an optional embedding and
    id-based links to the document they came from and to their siblings.
    Content is treated as immutable once a node has been indexed; the
    embedding may be filled in later, once.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    embedding: Optional[List[float]] = None
    node_type: NodeType = NodeType.TEXT

    # All nodes from the same document share this ID
    doc_id: Optional[str] = None

    parent_id: Optional[str] = None
    next_id: Optional[str] = None
    previous_id: Optional[str] = None

    _hash: Optional[str] = PrivateAttr(default=None)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def hash(self) -> str:
        """
        MD5 hash of text + metadata, used to detect identical content.

        Returns:
            MD5 hash as hex string
        """
        if self._hash is None:
            metadata_str = json.dumps(self.metadata, sort_keys=True, default=str)
            content = f"{self.text}|{metadata_str}"
            self._hash = hashlib.md5(content.encode('utf-8')).hexdigest()
        return self._hash

    def get_content(self) -> str:
        return self.text

    def get_metadata_str(self) -> str:
        """Render metadata as ``key: value`` lines, as used for metadata-aware chunking."""
        return "\n".join(f"{key}: {value}" for key, value in self.metadata.items())

    def has_embedding(self) -> bool:
        return self.embedding is not None and len(self.embedding) > 0


class DocumentNode(Node):
    """
    A node that represents an original document.

    DocumentNode is the root the chunks of a document point back to via ``doc_id``.
    """

    node_type: NodeType = NodeType.DOCUMENT

    def model_post_init(self, __context: Any) -> None:
        # A document references itself
        if self.doc_id is None:
            self.doc_id = self.id

    @classmethod
    def from_text(
        cls,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> 'DocumentNode':
        """
        Create a DocumentNode from text.

        Args:
            text: The document text
            metadata: Additional metadata
            **kwargs: Additional keyword arguments

        Returns:
            A new DocumentNode instance
        """
        return cls(
            text=text,
            metadata=metadata or {},
            **kwargs
        )


class Chunk(Node):
    """
    A node that represents a document chunk.

    Chunks are produced by a node parser and keep links to their parent
    document and to the neighbouring chunks.
    """

    chunk_index: Optional[int] = None
    start_char_idx: Optional[int] = None
    end_char_idx: Optional[int] = None

    @classmethod
    def from_text(
        cls,
        text: str,
        chunk_index: Optional[int] = None,
        start_char_idx: Optional[int] = None,
        end_char_idx: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> 'Chunk':
        """
        Create a Chunk from text.

        Args:
            text: The chunk text
            chunk_index: Index of this chunk in the sequence
            start_char_idx: Starting character index in the parent document
            end_char_idx: Ending character index in the parent document
            metadata: Additional metadata
            **kwargs: Additional keyword arguments

        Returns:
            A new Chunk instance
        """
        return cls(
            text=text,
            chunk_index=chunk_index,
            start_char_idx=start_char_idx,
            end_char_idx=end_char_idx,
            metadata=metadata or {},
            **kwargs
        )


class IndexNode(Node):
    """
    A node that points at another index or retriever.

    ``index_id`` names the target; the text is the summary used for matching.
    """

    node_type: NodeType = NodeType.INDEX
    index_id: str


class NodeWithScore(BaseModel):
    """
    Wrapper class that pairs a Node with its relevance score.

    Higher scores are more relevant.
    """

    node: Node = Field(description="The node")
    score: float = Field(default=0.0, description="Relevance score")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"NodeWithScore(score={self.score:.3f}, node_id={self.node.id[:8]}, {self.node.text[:100]}...)"

    @property
    def text(self) -> str:
        """Convenience property to access the node's text."""
        return self.node.text

    @property
    def metadata(self) -> Dict[str, Any]:
        """Convenience property to access the node's metadata."""
        return self.node.metadata

    @property
    def id(self) -> str:
        """Convenience property to access the node's id."""
        return self.node.id


class QueryBundle(BaseModel):
    """
    A query as it flows through the pipeline.

    Immutable after creation: transforms build a new bundle instead of
    editing one in place.

    Args:
        query_str: The query text shown to LLMs
        embedding: Pre-computed query embedding, used instead of embedding the text
        filters: Metadata filters for retrievers that support them
        custom_embedding_strs: Strings to embed instead of ``query_str``
    """

    query_str: str
    embedding: Optional[List[float]] = None
    filters: Optional[Any] = None
    custom_embedding_strs: Optional[Tuple[str, ...]] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def embedding_strs(self) -> List[str]:
        """The strings a vector retriever should embed for this query."""
        if self.custom_embedding_strs:
            return list(self.custom_embedding_strs)
        return [self.query_str]

    def __str__(self) -> str:
        return self.query_str

    @classmethod
    def from_query(cls, query: "str | QueryBundle") -> "QueryBundle":
        if isinstance(query, QueryBundle):
            return query
        return cls(query_str=query)
