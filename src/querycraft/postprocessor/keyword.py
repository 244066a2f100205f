from typing import List, Optional

from pydantic import Field

from querycraft.node import NodeWithScore, QueryBundle
from querycraft.postprocessor.base import BaseNodePostprocessor


class KeywordNodePostprocessor(BaseNodePostprocessor):
    """
    Filter nodes on the keywords their text contains.

    A node is kept when it contains every one of ``required_keywords`` and
    none of ``exclude_keywords``. Matching is by substring.
    """

    required_keywords: List[str] = Field(default_factory=list)
    exclude_keywords: List[str] = Field(default_factory=list)
    case_sensitive: bool = False

    def _normalize(self, text: str) -> str:
        return text if self.case_sensitive else text.lower()

    def _keep(self, text: str) -> bool:
        text = self._normalize(text)
        if any(self._normalize(keyword) not in text for keyword in self.required_keywords):
            return False
        return not any(self._normalize(keyword) in text for keyword in self.exclude_keywords)

    async def _postprocess_nodes(
        self,
        nodes: List[NodeWithScore],
        query_bundle: Optional[QueryBundle] = None,
    ) -> List[NodeWithScore]:
        return [n for n in nodes if self._keep(n.node.get_content())]
