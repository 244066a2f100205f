"""
Vector index retriever implementation.
"""
from typing import Annotated, Any, List, Optional

from pydantic import Field, SkipValidation

from querycraft.embeddings.base import mean_embedding
from querycraft.filters import FilterLike, to_filter
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever


class VectorIndexRetriever(BaseRetriever):
    """
    Retriever that searches a vector store by embedding similarity.

    The query embedding is taken from the bundle when present; otherwise
    the bundle's embedding strings are embedded and averaged, which lets
    transforms such as HyDE search with several texts at once.

    Example:
        ```python
        from querycraft.filters import EQ

        retriever = VectorIndexRetriever(
            vector_store=store,
            embeddings=embeddings,
            top_k=5,
            filters=EQ("category", "tutorial"),
        )
        nodes = await retriever.aretrieve("machine learning")
        ```
    """

    vector_store: Annotated[Any, SkipValidation()] = Field(description="VectorStore to search")
    embeddings: Annotated[Any, SkipValidation()] = Field(default=None, description="Embeddings used for queries")
    top_k: Optional[int] = Field(default=4, description="Number of results to return")
    filters: Optional[Any] = Field(default=None, description="Default metadata filters applied to all queries")

    async def _get_query_embedding(self, query_bundle: QueryBundle) -> List[float]:
        if query_bundle.embedding is not None:
            return list(query_bundle.embedding)
        embeddings = self.embeddings or getattr(self.vector_store, "embeddings", None)
        if embeddings is None:
            raise ValueError("VectorIndexRetriever needs an embeddings model or pre-embedded queries")
        strs = query_bundle.embedding_strs
        if len(strs) == 1:
            return await embeddings.embed_query(strs[0])
        return mean_embedding(await embeddings.embed_documents(strs))

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        filters: Optional[FilterLike] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        query_embedding = await self._get_query_embedding(query_bundle)
        # query filters override default filters
        active_filters = filters if filters is not None else query_bundle.filters
        if active_filters is None:
            active_filters = self.filters
        results = await self.vector_store.similarity_search(
            query_embedding,
            k=top_k if top_k is not None else 4,
            filters=to_filter(active_filters),
        )
        return [NodeWithScore(node=node, score=score) for node, score in results]
