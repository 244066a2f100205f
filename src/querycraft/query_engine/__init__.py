from querycraft.query_engine.base import BaseQueryEngine
from querycraft.query_engine.retriever_query_engine import RetrieverQueryEngine
from querycraft.query_engine.router_query_engine import RouterQueryEngine
from querycraft.query_engine.sub_question_query_engine import SubQuestionQueryEngine
from querycraft.query_engine.transform_query_engine import TransformQueryEngine
from querycraft.query_engine.retry_query_engine import RetryQueryEngine

__all__ = [
    "BaseQueryEngine",
    "RetrieverQueryEngine",
    "RouterQueryEngine",
    "SubQuestionQueryEngine",
    "TransformQueryEngine",
    "RetryQueryEngine",
]
