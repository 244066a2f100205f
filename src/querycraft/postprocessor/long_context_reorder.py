from typing import List, Optional

from querycraft.node import NodeWithScore, QueryBundle
from querycraft.postprocessor.base import BaseNodePostprocessor


class LongContextReorder(BaseNodePostprocessor):
    """
    Move the best scored nodes to both ends of the context.

    Models attend worst to the middle of a long context (Liu et al., 2023,
    "Lost in the Middle"). The best node comes first, the second best last,
    and the weakest nodes end up in the middle.
    """

    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        reordered: List[NodeWithScore] = []
        for i, node in enumerate(sorted(nodes, key=lambda n: n.score)):
            if i % 2 == 0:
                reordered.insert(0, node)
            else:
                reordered.append(node)
        return reordered
