from querycraft.index.vector_index import VectorIndex

__all__ = ["VectorIndex"]
