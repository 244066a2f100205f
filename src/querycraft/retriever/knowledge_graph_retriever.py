"""
Retriever answering from knowledge graph triplets.
"""
import logging
import re
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import Field

from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.prompts import DEFAULT_QUERY_KEYWORD_EXTRACT_PROMPT, PromptTemplate
from querycraft.retriever.base import BaseRetriever

logger = logging.getLogger(__name__)

DEFAULT_NODE_SCORE = 1000.0
NO_RELATIONSHIPS_TEXT = "No relationships found."
REL_TEXT_HEADER = (
    "The following are knowledge sequences in max depth {depth} in the form of directed graph like:\n"
    "`subject -[predicate]-> object, <-[predicate_next_hop]- object_next_hop ...`"
)

STOPWORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "shall",
    "of", "in", "to", "for", "with", "on", "at", "by", "from", "as",
    "and", "or", "but", "if", "then",
    "that", "which", "who", "whom", "whose", "this", "these", "those", "it", "its",
    "what", "when", "where", "why", "how",
})
NON_WORD_PATTERN = re.compile(r"[^A-Za-z0-9]")


def simple_keyword_extract(text: str, max_keywords: int) -> List[str]:
    """Words longer than two characters that are not stopwords, in order."""
    keywords = []
    for word in text.split():
        word = NON_WORD_PATTERN.sub("", word)
        if len(word) > 2 and word.lower() not in STOPWORDS and word not in keywords:
            keywords.append(word)
            if len(keywords) >= max_keywords:
                break
    return keywords


def extract_keywords_from_response(response: str, max_keywords: int, start_token: str = "KEYWORDS:") -> List[str]:
    """Comma separated keywords following ``KEYWORDS:`` (or the whole answer)."""
    idx = response.upper().find(start_token)
    if idx != -1:
        response = response[idx + len(start_token):]
    keywords = []
    for part in response.split(","):
        keyword = part.strip().strip("\"'")
        if keyword and keyword not in keywords:
            keywords.append(keyword)
        if len(keywords) >= max_keywords:
            break
    return keywords


def format_rel_text(rel: List[str]) -> str:
    if len(rel) >= 3:
        return f"[{rel[0]}, {rel[1]}, {rel[2]}]"
    return ", ".join(rel)


class KnowledgeGraphRetriever(BaseRetriever):
    """
    Finds triplets around the entities named in the query.

    Keywords come from the LLM (``KEYWORDS: a, b``) or, without an LLM or
    when the LLM call fails, from a stopword based extractor. The graph is
    walked outward from every keyword up to ``graph_store_query_depth``.
    The result is a single node listing the knowledge sequences, with
    ``kg_rel_texts`` and ``kg_rel_map`` in its metadata.
    """

    graph_store: Any = Field(description="GraphStore holding the triplets")
    llm: Any = Field(default=None, description="LLM used for keyword extraction")
    keyword_extract_template: PromptTemplate = Field(default=DEFAULT_QUERY_KEYWORD_EXTRACT_PROMPT)
    max_keywords_per_query: int = 10
    graph_store_query_depth: int = 2
    max_knowledge_sequence: int = 30

    _prompt_attrs: ClassVar[Dict[str, str]] = {"keyword_extract_template": "keyword_extract_template"}

    async def get_keywords(self, text: str) -> List[str]:
        if self.llm is None:
            return simple_keyword_extract(text, self.max_keywords_per_query)
        prompt = self.keyword_extract_template.format(max_keywords=self.max_keywords_per_query, question=text)
        try:
            response = await self.llm.complete(prompt)
        except Exception as e:
            logger.warning(f"Keyword extraction failed, falling back to simple extraction: {e}")
            return simple_keyword_extract(text, self.max_keywords_per_query)
        return extract_keywords_from_response(response, self.max_keywords_per_query)

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        keywords = await self.get_keywords(query_bundle.query_str)
        if self.verbose:
            logger.info(f"> Query keywords: {keywords}")

        rel_texts: List[str] = []
        rel_map: Dict[str, List[List[str]]] = {}
        for keyword in keywords:
            sub_map = await self.graph_store.get_rel_map(
                [keyword], depth=self.graph_store_query_depth, limit=self.max_knowledge_sequence
            )
            for subject, rels in sub_map.items():
                if not rels:
                    continue
                rel_map[subject] = rels
                for rel in rels:
                    text = format_rel_text(rel)
                    if text not in rel_texts:
                        rel_texts.append(text)
        rel_texts = rel_texts[:self.max_knowledge_sequence]

        if not rel_texts:
            return [NodeWithScore(node=Node(text=NO_RELATIONSHIPS_TEXT), score=1.0)]

        header = REL_TEXT_HEADER.format(depth=self.graph_store_query_depth)
        node = Node(
            text=header + "\n" + "\n".join(rel_texts),
            metadata={"kg_rel_texts": rel_texts, "kg_rel_map": rel_map},
        )
        return [NodeWithScore(node=node, score=DEFAULT_NODE_SCORE)]
