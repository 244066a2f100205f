from querycraft.vector_store.base import VectorStore
from querycraft.vector_store.simple import SimpleVectorStore, cosine_similarity
from querycraft.vector_store.qdrant_store import QdrantVectorStore, QdrantConfig

__all__ = [
    "VectorStore",
    "SimpleVectorStore",
    "QdrantVectorStore",
    "QdrantConfig",
    "cosine_similarity",
]
