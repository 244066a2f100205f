import asyncio
import logging
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import Field

from querycraft.errors import BadInputError, RoutingFailedError
from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.query_engine.base import BaseQueryEngine
from querycraft.response import RESPONSE_TYPE, Response, aresolve_response, merge_source_nodes
from querycraft.selectors import BaseSelector, LLMMultiSelector, LLMSingleSelector
from querycraft.synthesizer import BaseSynthesizer, ResponseMode, get_response_synthesizer
from querycraft.tools.query_engine_tool import QueryEngineTool

logger = logging.getLogger(__name__)

RESPONSE_JOINER = "\n\n"


class RouterQueryEngine(BaseQueryEngine):
    """
    Routes a query to one or more query engines chosen by a selector.

    With a single selection the chosen engine's response is returned as is.
    With several, every chosen engine is queried and the answers are either
    re-synthesized by ``summarizer`` or joined with blank lines. Source
    nodes of all called engines are merged.

    Example:
        ```python
        router = RouterQueryEngine.from_defaults(
            query_engine_tools=[
                QueryEngineTool.from_defaults(docs_engine, name="docs", description="Product documentation"),
                QueryEngineTool.from_defaults(news_engine, name="news", description="Company news"),
            ],
            llm=llm,
            select_multi=True,
        )
        ```
    """

    query_engine_tools: List[QueryEngineTool] = Field(description="Candidate engines with names and descriptions")
    selector: BaseSelector = Field(description="Picks the engines to query")
    summarizer: Optional[BaseSynthesizer] = Field(default=None, description="Combines multiple answers")
    use_async: bool = Field(default=True, description="Query the selected engines concurrently")

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {"selector": "selector", "summarizer": "summarizer"}

    @classmethod
    def from_defaults(
        cls,
        query_engine_tools: List[QueryEngineTool],
        llm: Any,
        selector: Optional[BaseSelector] = None,
        summarizer: Optional[BaseSynthesizer] = None,
        select_multi: bool = False,
        **kwargs: Any,
    ) -> "RouterQueryEngine":
        """
        Build a router with an LLM selector and a tree summarize summarizer.

        Args:
            query_engine_tools: Candidate engines
            llm: LLM for the default selector and summarizer
            selector: Selector to use instead of the default LLM selector
            summarizer: Synthesizer combining multiple answers
            select_multi: Allow the default selector to pick several engines
        """
        if selector is None:
            selector = LLMMultiSelector(llm=llm) if select_multi else LLMSingleSelector(llm=llm)
        if summarizer is None:
            summarizer = get_response_synthesizer(llm=llm, response_mode=ResponseMode.TREE_SUMMARIZE)
        return cls(query_engine_tools=query_engine_tools, selector=selector, summarizer=summarizer, **kwargs)

    async def _query_tools(self, tools: List[QueryEngineTool], query_bundle: QueryBundle) -> List[Response]:
        if self.use_async:
            responses = await asyncio.gather(*(t.query_engine.aquery(query_bundle) for t in tools))
        else:
            responses = [await t.query_engine.aquery(query_bundle) for t in tools]
        return [await aresolve_response(r) for r in responses]

    async def _combine(self, query_bundle: QueryBundle, responses: List[Response]) -> RESPONSE_TYPE:
        source_nodes = merge_source_nodes(*(r.source_nodes for r in responses))
        if self.summarizer is None:
            return Response(
                response=RESPONSE_JOINER.join(r.response for r in responses),
                source_nodes=source_nodes,
            )

        answer_nodes = [NodeWithScore(node=Node(text=r.response), score=1.0) for r in responses]
        summary = await self.summarizer.asynthesize(query_bundle, answer_nodes)
        return summary.model_copy(update={"source_nodes": source_nodes, "metadata": {}})

    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        if not self.query_engine_tools:
            raise BadInputError("RouterQueryEngine has no query engines to route to")

        result = await self.selector.aselect([t.metadata for t in self.query_engine_tools], query_bundle)
        selections = [s for s in result.selections if 0 <= s.index < len(self.query_engine_tools)]
        if not selections:
            raise RoutingFailedError(f"Selector picked no usable query engine for: {query_bundle.query_str}")

        tools = [self.query_engine_tools[s.index] for s in selections]
        for tool, selection in zip(tools, selections):
            logger.info(f"Selecting query engine {tool.name}: {selection.reason}")

        if len(tools) == 1:
            return await tools[0].query_engine.aquery(query_bundle)

        responses = await self._query_tools(tools, query_bundle)
        combined = await self._combine(query_bundle, responses)
        combined.metadata["selector_result"] = result
        return combined
