import asyncio
import logging
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import Field

from querycraft.errors import BadInputError, RoutingFailedError
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.retriever.base import BaseRetriever
from querycraft.selectors import BaseSelector, SimpleMultiSelector
from querycraft.tools.retriever_tool import RetrieverTool

logger = logging.getLogger(__name__)


class RouterRetriever(BaseRetriever):
    """
    Lets a selector pick among several retrievers and merges their results.

    Each returned node carries the name of the retriever that found it in
    ``metadata["retriever_name"]``. A node found by several retrievers is
    kept once, with its best score.

    Example:
        ```python
        router = RouterRetriever(
            retriever_tools=[
                RetrieverTool.from_defaults(docs_retriever, name="docs", description="Product documentation"),
                RetrieverTool.from_defaults(faq_retriever, name="faq", description="Frequently asked questions"),
            ],
            selector=LLMMultiSelector(llm=llm),
        )
        ```
    """

    retriever_tools: List[RetrieverTool] = Field(description="Candidate retrievers with names and descriptions")
    selector: BaseSelector = Field(default_factory=SimpleMultiSelector)
    use_async: bool = Field(default=True, description="Query the selected retrievers concurrently")

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {"selector": "selector"}

    async def _retrieve(
        self,
        query_bundle: QueryBundle,
        top_k: Optional[int] = None,
        **kwargs: Any,
    ) -> List[NodeWithScore]:
        if not self.retriever_tools:
            raise BadInputError("RouterRetriever has no retrievers to route to")

        result = await self.selector.aselect([t.metadata for t in self.retriever_tools], query_bundle)
        selections = [s for s in result.selections if 0 <= s.index < len(self.retriever_tools)]
        if not selections:
            raise RoutingFailedError(f"Selector picked no usable retriever for: {query_bundle.query_str}")

        tools = [self.retriever_tools[s.index] for s in selections]
        for tool, selection in zip(tools, selections):
            logger.info(f"Selecting retriever {tool.name}: {selection.reason}")

        if self.use_async:
            results = await asyncio.gather(*(t.retriever.aretrieve(query_bundle, **kwargs) for t in tools))
        else:
            results = [await t.retriever.aretrieve(query_bundle, **kwargs) for t in tools]

        merged: Dict[str, NodeWithScore] = {}
        for tool, nodes in zip(tools, results):
            for n in nodes:
                existing = merged.get(n.node.id)
                if existing is not None and existing.score >= n.score:
                    continue
                metadata = {**n.node.metadata, "retriever_name": tool.name}
                merged[n.node.id] = NodeWithScore(node=n.node.model_copy(update={"metadata": metadata}), score=n.score)
        return list(merged.values())
