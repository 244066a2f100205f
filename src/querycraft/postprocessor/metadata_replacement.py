from typing import List, Optional

from querycraft.node import NodeWithScore, QueryBundle
from querycraft.postprocessor.base import BaseNodePostprocessor


class MetadataReplacementPostProcessor(BaseNodePostprocessor):
    """
    Replace each node's text with one of its metadata values.

    Pairs with ``SentenceWindowNodeParser``: retrieval matches single
    sentences, the synthesizer then sees the surrounding window. Nodes
    without a string value under ``target_metadata_key`` pass unchanged.
    """

    target_metadata_key: str = "window"

    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        result = []
        for node_with_score in nodes:
            value = node_with_score.node.metadata.get(self.target_metadata_key)
            if not isinstance(value, str):
                result.append(node_with_score)
                continue
            node = node_with_score.node.model_copy(update={"text": value})
            node._hash = None
            result.append(NodeWithScore(node=node, score=node_with_score.score))
        return result
