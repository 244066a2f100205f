import logging
import re
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from querycraft.graph_store.base import GraphStore, Triplet
from querycraft.node import Node
from querycraft.prompts import DEFAULT_KG_TRIPLET_EXTRACT_PROMPT, PromptTemplate

logger = logging.getLogger(__name__)

TRIPLET_PATTERN = re.compile(r"^\s*\(([^,()]+),([^,()]+),([^()]+)\)\s*$")


def parse_triplets(response: str, max_length: int = 128) -> List[Triplet]:
    """
    Parse ``(subject, relation, object)`` lines from an LLM answer.

    Lines that do not have exactly that shape, or with overly long parts, are skipped.
    """
    triplets = []
    for line in response.splitlines():
        match = TRIPLET_PATTERN.match(line)
        if not match:
            continue
        parts = [p.strip().strip("\"'") for p in match.groups()]
        if any(not p or len(p) > max_length for p in parts):
            continue
        triplets.append(Triplet(*parts))
    return triplets


class TripletExtractor(BaseModel):
    """
    Extract knowledge triplets from nodes with an LLM and store them.

    Example:
        ```python
        extractor = TripletExtractor(llm=llm)
        await extractor.insert_nodes(nodes, graph_store)
        ```
    """

    llm: Any = Field(description="LLM used to extract triplets")
    prompt: PromptTemplate = Field(default=DEFAULT_KG_TRIPLET_EXTRACT_PROMPT)
    max_triplets_per_chunk: int = 10

    model_config = ConfigDict(arbitrary_types_allowed=True)

    async def extract(self, text: str) -> List[Triplet]:
        prompt = self.prompt.format(text=text, max_knowledge_triplets=self.max_triplets_per_chunk)
        response = await self.llm.complete(prompt)
        return parse_triplets(response)[:self.max_triplets_per_chunk]

    async def insert_nodes(self, nodes: List[Node], graph_store: GraphStore) -> List[Triplet]:
        """Extract triplets from every node and upsert them into ``graph_store``."""
        inserted = []
        for node in nodes:
            triplets = await self.extract(node.text)
            for triplet in triplets:
                await graph_store.upsert_triplet(triplet.subject, triplet.relation, triplet.object)
            logger.info(f"Extracted {len(triplets)} triplets from node {node.id}")
            inserted.extend(triplets)
        return inserted
