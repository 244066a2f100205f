import logging
from typing import Annotated, Any, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, SkipValidation
from tqdm import tqdm

from querycraft.node import DocumentNode, Node
from querycraft.node_parser import NodeParser, SimpleNodeParser
from querycraft.retriever.vector_index_retriever import VectorIndexRetriever

logger = logging.getLogger(__name__)


class VectorIndex(BaseModel):
    """
    A vector index that works with any vector store implementation.

    The index embeds nodes that have no embedding yet (in batches, with an
    optional progress bar) and hands them to the store. Retrievers and
    query engines over the index are created with ``as_retriever`` and
    ``as_query_engine``.

    Example:
        ```python
        index = VectorIndex(vector_store=SimpleVectorStore(), embeddings=embeddings)
        await index.add_documents([DocumentNode.from_text(text)])
        engine = index.as_query_engine(llm=llm, top_k=3)
        response = await engine.aquery("What is the capital of France?")
        ```
    """

    vector_store: Annotated[Any, SkipValidation()] = Field(description="Vector store instance")
    embeddings: Annotated[Any, SkipValidation()] = Field(default=None, description="Embeddings used for nodes and queries")
    node_parser: Optional[NodeParser] = Field(default=None, description="Parser turning documents into chunks")
    index_id: str = Field(default_factory=lambda: str(uuid4()))
    embed_batch_size: int = Field(default=64, description="Number of texts embedded per request")

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @classmethod
    def from_vector_store(cls, vector_store: Any, embeddings: Any = None, **kwargs: Any) -> "VectorIndex":
        """Create an index over an existing vector store."""
        return cls(vector_store=vector_store, embeddings=embeddings or vector_store.embeddings, **kwargs)

    async def _embed_nodes(self, nodes: List[Node], show_progress: bool) -> None:
        missing = [node for node in nodes if not node.has_embedding()]
        if not missing or self.embeddings is None:
            return
        batches = range(0, len(missing), self.embed_batch_size)
        for start in tqdm(batches, desc="Embedding nodes", disable=not show_progress):
            batch = missing[start:start + self.embed_batch_size]
            vectors = await self.embeddings.embed_documents([node.get_content() for node in batch])
            for node, vector in zip(batch, vectors):
                node.embedding = vector

    async def add_nodes(self, nodes: List[Node], show_progress: bool = False) -> List[str]:
        """
        Embed and insert nodes.

        Args:
            nodes: Nodes to add
            show_progress: If True, show progress bars

        Returns:
            IDs of the added nodes
        """
        if not nodes:
            return []
        await self._embed_nodes(nodes, show_progress)
        ids = await self.vector_store.insert_nodes(nodes, show_progress=show_progress)
        logger.info(f"Added {len(ids)} nodes to index {self.index_id}")
        return ids

    async def add_documents(self, documents: List[DocumentNode], show_progress: bool = False) -> List[str]:
        """Split documents with the node parser, then add the chunks."""
        parser = self.node_parser or SimpleNodeParser()
        nodes = parser.get_nodes(documents)
        return await self.add_nodes(nodes, show_progress=show_progress)

    async def delete_nodes(self, ids: List[str]) -> bool:
        return await self.vector_store.delete(ids)

    def as_retriever(self, top_k: int = 4, filters: Optional[Any] = None, **kwargs: Any) -> VectorIndexRetriever:
        """
        Create a retriever over this index.

        Args:
            top_k: Number of results to return
            filters: Default metadata filters applied to all queries
        """
        return VectorIndexRetriever(
            vector_store=self.vector_store,
            embeddings=self.embeddings,
            top_k=top_k,
            filters=filters,
            **kwargs,
        )

    def as_query_engine(self, llm: Any, top_k: int = 4, filters: Optional[Any] = None, **kwargs: Any):
        """
        Create a retriever query engine over this index.

        Args:
            llm: LLM used by the response synthesizer
            top_k: Number of nodes retrieved per query
            filters: Default metadata filters applied to all queries
            **kwargs: Passed to ``RetrieverQueryEngine.from_args`` (``response_mode``, ``streaming``, ...)
        """
        from querycraft.query_engine.retriever_query_engine import RetrieverQueryEngine

        return RetrieverQueryEngine.from_args(self.as_retriever(top_k=top_k, filters=filters), llm=llm, **kwargs)
