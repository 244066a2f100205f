from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

from pydantic import Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import NodeWithScore, QueryBundle
from querycraft.postprocessor import BaseNodePostprocessor
from querycraft.response import RESPONSE_TYPE
from querycraft.retriever.base import BaseRetriever
from querycraft.synthesizer import BaseSynthesizer, ResponseMode, get_response_synthesizer
from querycraft.query_engine.base import BaseQueryEngine


class RetrieverQueryEngine(BaseQueryEngine):
    """
    Retrieve, then synthesize.

    ``aretrieve`` and ``asynthesize`` are exposed separately so callers can
    inspect or adjust the retrieved nodes. ``node_postprocessors`` run in
    order on the retrieved nodes before synthesis.

    Example:
        ```python
        engine = RetrieverQueryEngine.from_args(retriever, llm=llm, response_mode="tree_summarize")
        response = await engine.aquery("What is the capital of France?")
        print(response.get_formatted_sources())
        ```
    """

    retriever: BaseRetriever
    response_synthesizer: BaseSynthesizer
    node_postprocessors: List[BaseNodePostprocessor] = Field(default_factory=list)

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {
        "retriever": "retriever",
        "response_synthesizer": "response_synthesizer",
    }

    @classmethod
    def from_args(
        cls,
        retriever: BaseRetriever,
        llm: Any = None,
        response_synthesizer: Optional[BaseSynthesizer] = None,
        response_mode: Union[ResponseMode, str, None] = None,
        node_postprocessors: Optional[List[BaseNodePostprocessor]] = None,
        streaming: bool = False,
        verbose: bool = False,
        **kwargs: Any,
    ) -> "RetrieverQueryEngine":
        """
        Build an engine around a retriever.

        Args:
            retriever: Retriever providing the context
            llm: LLM for the default synthesizer
            response_synthesizer: Synthesizer to use instead of building one
            response_mode: Mode of the default synthesizer
            node_postprocessors: Postprocessors applied to retrieved nodes
            streaming: Stream the answer
            **kwargs: Passed to ``get_response_synthesizer``
        """
        response_synthesizer = response_synthesizer or get_response_synthesizer(
            llm=llm,
            response_mode=response_mode,
            streaming=streaming,
            **kwargs,
        )
        return cls(
            retriever=retriever,
            response_synthesizer=response_synthesizer,
            node_postprocessors=node_postprocessors or [],
            verbose=verbose,
        )

    async def aretrieve(self, query: Union[str, QueryBundle]) -> List[NodeWithScore]:
        nodes = await self.retriever.aretrieve(query)
        for postprocessor in self.node_postprocessors:
            nodes = await postprocessor.apostprocess_nodes(nodes, query)
        return nodes

    def retrieve(self, query: Union[str, QueryBundle]) -> List[NodeWithScore]:
        return run_sync(self.aretrieve(query))

    async def asynthesize(
        self,
        query: Union[str, QueryBundle],
        nodes: List[NodeWithScore],
        additional_source_nodes: Optional[Sequence[NodeWithScore]] = None,
    ) -> RESPONSE_TYPE:
        return await self.response_synthesizer.asynthesize(query, nodes, additional_source_nodes)

    def synthesize(
        self,
        query: Union[str, QueryBundle],
        nodes: List[NodeWithScore],
        additional_source_nodes: Optional[Sequence[NodeWithScore]] = None,
    ) -> RESPONSE_TYPE:
        return run_sync(self.asynthesize(query, nodes, additional_source_nodes))

    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        nodes = await self.aretrieve(query_bundle)
        return await self.asynthesize(query_bundle, nodes)
