"""
Querycraft - composable retrieval-augmented generation and agent toolkit.

Documents are split into chunks, indexed into vector or graph stores and
retrieved for a query. Response synthesizers turn retrieved nodes into an
answer with one or more LLM calls, query engines compose retrieval,
routing, decomposition, query rewriting and retries, and the same pieces
can be handed to a ReAct agent as tools.
"""

from .errors import (
    QuerycraftError,
    InvalidConfigError,
    BadInputError,
    UpstreamError,
    ParseFailedError,
    BudgetExhaustedError,
    RoutingFailedError,
    MaxRetriesExceededError,
)
from .settings import QuerycraftSettings, get_settings
from .base_logging import configure_logging
from .node import Node, DocumentNode, Chunk, IndexNode, NodeType, NodeWithScore, QueryBundle
from .filters import FieldFilter, CompositeFilter, FilterOperator, FilterCondition
from .response import Response, StreamingResponse, EMPTY_RESPONSE
from .llms import LLM, ChatMessage, OpenAILLM, PydanticAILLM
from .embeddings import Embeddings, OpenAIEmbeddings
from .vector_store import VectorStore, SimpleVectorStore, QdrantVectorStore
from .graph_store import GraphStore, SimpleGraphStore
from .index import VectorIndex
from .text_splitter import SentenceSplitter, TokenTextSplitter, MarkdownTextSplitter
from .node_parser import SimpleNodeParser, SentenceWindowNodeParser
from .retriever import BaseRetriever, VectorIndexRetriever, BM25Retriever, HybridRetriever, RouterRetriever
from .postprocessor import (
    SimilarityPostprocessor,
    MetadataReplacementPostProcessor,
    LongContextReorder,
)
from .synthesizer import ResponseMode, get_response_synthesizer
from .query_engine import (
    BaseQueryEngine,
    RetrieverQueryEngine,
    RouterQueryEngine,
    SubQuestionQueryEngine,
    TransformQueryEngine,
    RetryQueryEngine,
)
from .tools import FunctionTool, QueryEngineTool, RetrieverTool
from .agents import ReActAgent

__all__ = [
    'QuerycraftError',
    'InvalidConfigError',
    'BadInputError',
    'UpstreamError',
    'ParseFailedError',
    'BudgetExhaustedError',
    'RoutingFailedError',
    'MaxRetriesExceededError',
    'QuerycraftSettings',
    'get_settings',
    'configure_logging',
    'Node',
    'DocumentNode',
    'Chunk',
    'IndexNode',
    'NodeType',
    'NodeWithScore',
    'QueryBundle',
    'FieldFilter',
    'CompositeFilter',
    'FilterOperator',
    'FilterCondition',
    'Response',
    'StreamingResponse',
    'EMPTY_RESPONSE',
    'LLM',
    'ChatMessage',
    'OpenAILLM',
    'PydanticAILLM',
    'Embeddings',
    'OpenAIEmbeddings',
    'VectorStore',
    'SimpleVectorStore',
    'QdrantVectorStore',
    'GraphStore',
    'SimpleGraphStore',
    'VectorIndex',
    'SentenceSplitter',
    'TokenTextSplitter',
    'MarkdownTextSplitter',
    'SimpleNodeParser',
    'SentenceWindowNodeParser',
    'BaseRetriever',
    'VectorIndexRetriever',
    'BM25Retriever',
    'HybridRetriever',
    'RouterRetriever',
    'SimilarityPostprocessor',
    'MetadataReplacementPostProcessor',
    'LongContextReorder',
    'ResponseMode',
    'get_response_synthesizer',
    'BaseQueryEngine',
    'RetrieverQueryEngine',
    'RouterQueryEngine',
    'SubQuestionQueryEngine',
    'TransformQueryEngine',
    'RetryQueryEngine',
    'FunctionTool',
    'QueryEngineTool',
    'RetrieverTool',
    'ReActAgent',
]
