from querycraft.retriever.base import BaseRetriever
from querycraft.retriever.vector_index_retriever import VectorIndexRetriever
from querycraft.retriever.bm25_retriever import BM25Retriever
from querycraft.retriever.metadata_filter_retriever import MetadataFilterRetriever
from querycraft.retriever.time_weighted_retriever import TimeWeightedRetriever
from querycraft.retriever.hybrid_retriever import HybridRetriever, FusionMode
from querycraft.retriever.composable_retriever import ComposableRetriever
from querycraft.retriever.knowledge_graph_retriever import KnowledgeGraphRetriever
from querycraft.retriever.router_retriever import RouterRetriever

__all__ = [
    "BaseRetriever",
    "VectorIndexRetriever",
    "BM25Retriever",
    "MetadataFilterRetriever",
    "TimeWeightedRetriever",
    "HybridRetriever",
    "FusionMode",
    "ComposableRetriever",
    "KnowledgeGraphRetriever",
    "RouterRetriever",
]
