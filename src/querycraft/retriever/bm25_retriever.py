"""
Keyword retriever scoring nodes with Okapi BM25.
"""
import logging
import re
from typing import Any, Callable, List, Optional

from pydantic import Field, PrivateAttr
from rank_bm25 import BM25Okapi

from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


def default_tokenize(text: str) -> List[str]:
    return TOKEN_PATTERN.findall(text.lower())


class BM25Retriever(BaseRetriever):
    """
    BM25 keyword retriever over a fixed set of nodes.

    Nodes that share no term with the query are not returned. The index is
    built once at construction; use ``with_nodes`` to score another set.

    Example:
        ```python
        retriever = BM25Retriever(nodes=chunks, top_k=5)
        nodes = await retriever.aretrieve("eiffel tower height")
        ```
    """

    nodes: List[Node] = Field(default_factory=list, description="Corpus to search")
    top_k: Optional[int] = Field(default=4, description="Number of results to return")
    k1: float = Field(default=1.2, description="Term frequency saturation")
    b: float = Field(default=0.75, description="Document length normalisation")
    tokenizer: Callable[[str], List[str]] = Field(default=default_tokenize)

    _bm25: Optional[BM25Okapi] = PrivateAttr(default=None)
    _corpus: List[List[str]] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        self._corpus = [self.tokenizer(node.get_content()) for node in self.nodes]
        if any(self._corpus):
            self._bm25 = BM25Okapi(self._corpus, k1=self.k1, b=self.b)
            logger.info(f"Built BM25 index over {len(self._corpus)} nodes")

    @classmethod
    def from_vector_store(cls, vector_store: Any, **kwargs: Any) -> "BM25Retriever":
        """Index every node held by an in-memory vector store."""
        return cls(nodes=list(vector_store.nodes.values()), **kwargs)

    def with_nodes(self, nodes: List[Node]) -> "BM25Retriever":
        """A retriever with the same settings over ``nodes``."""
        return type(self)(
            nodes=nodes,
            top_k=self.top_k,
            k1=self.k1,
            b=self.b,
            tokenizer=self.tokenizer,
            verbose=self.verbose,
        )

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        if self._bm25 is None:
            return []
        query_tokens = self.tokenizer(query_bundle.query_str)
        if not query_tokens:
            return []

        terms = set(query_tokens)
        scores = self._bm25.get_scores(query_tokens)
        results = []
        for node, tokens, score in zip(self.nodes, self._corpus, scores):
            if terms.isdisjoint(tokens):
                continue
            results.append(NodeWithScore(node=node, score=float(score)))
        return results
