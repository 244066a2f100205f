import asyncio
import logging
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import Field

from querycraft.node import Node, NodeWithScore, QueryBundle
from querycraft.query_engine.base import BaseQueryEngine
from querycraft.question_gen import BaseQuestionGenerator, LLMQuestionGenerator, SubQuestion
from querycraft.response import RESPONSE_TYPE, Response, aresolve_response, merge_source_nodes
from querycraft.synthesizer import BaseSynthesizer, get_response_synthesizer
from querycraft.tools.query_engine_tool import QueryEngineTool

logger = logging.getLogger(__name__)

SubQuestionAnswer = Tuple[SubQuestion, Optional[Response], Optional[str]]


def format_qa_pair(sub_question: SubQuestion, answer: str) -> str:
    return f"Sub question: {sub_question.sub_question}\nResponse: {answer}"


class SubQuestionQueryEngine(BaseQueryEngine):
    """
    Decomposes a complex query into sub-questions answered by different engines.

    Every sub-question goes to the engine of the tool it names; sub-questions
    naming unknown tools are skipped. A sub-question that fails is dropped
    and listed in ``metadata["failed_sub_questions"]``; the others still
    contribute. The answers are synthesized into the final response, whose
    source nodes are the merged source nodes of all sub-answers.

    Example:
        ```python
        engine = SubQuestionQueryEngine.from_defaults(
            query_engine_tools=[uber_tool, lyft_tool],
            llm=llm,
        )
        response = await engine.aquery("Compare the revenue growth of Uber and Lyft in 2021")
        ```
    """

    question_gen: BaseQuestionGenerator
    response_synthesizer: BaseSynthesizer
    query_engine_tools: List[QueryEngineTool]
    use_async: bool = Field(default=True, description="Answer sub-questions concurrently")

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {
        "question_gen": "question_gen",
        "response_synthesizer": "response_synthesizer",
    }

    @classmethod
    def from_defaults(
        cls,
        query_engine_tools: List[QueryEngineTool],
        llm: Any = None,
        question_gen: Optional[BaseQuestionGenerator] = None,
        response_synthesizer: Optional[BaseSynthesizer] = None,
        **kwargs: Any,
    ) -> "SubQuestionQueryEngine":
        return cls(
            question_gen=question_gen or LLMQuestionGenerator(llm=llm),
            response_synthesizer=response_synthesizer or get_response_synthesizer(llm=llm),
            query_engine_tools=query_engine_tools,
            **kwargs,
        )

    @property
    def query_engines(self) -> Dict[str, Any]:
        return {tool.name: tool.query_engine for tool in self.query_engine_tools}

    async def _aquery_sub_question(
        self,
        sub_question: SubQuestion,
    ) -> SubQuestionAnswer:
        engine = self.query_engines.get(sub_question.tool_name)
        if engine is None:
            logger.warning(f"Skipping sub-question for unknown tool {sub_question.tool_name}: {sub_question.sub_question}")
            return sub_question, None, "unknown tool"

        if self.verbose:
            logger.info(f"[{sub_question.tool_name}] Q: {sub_question.sub_question}")
        try:
            response = await aresolve_response(await engine.aquery(sub_question.sub_question))
        except Exception as e:
            logger.warning(f"Sub-question failed [{sub_question.tool_name}] {sub_question.sub_question}: {e}")
            return sub_question, None, str(e)

        if self.verbose:
            logger.info(f"[{sub_question.tool_name}] A: {response.response}")
        return sub_question, response, None

    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        sub_questions = await self.question_gen.agenerate(
            [t.metadata for t in self.query_engine_tools], query_bundle
        )
        logger.info(f"Generated {len(sub_questions)} sub questions")

        if self.use_async:
            answers = await asyncio.gather(*(self._aquery_sub_question(q) for q in sub_questions))
        else:
            answers = [await self._aquery_sub_question(q) for q in sub_questions]
        qa_pairs = [(q, r) for q, r, _ in answers if r is not None]
        failures = [{**q.model_dump(), "error": error} for q, r, error in answers if r is None]

        qa_nodes = [
            NodeWithScore(node=Node(text=format_qa_pair(q, r.response)), score=1.0)
            for q, r in qa_pairs
        ]
        response = await self.response_synthesizer.asynthesize(query_bundle, qa_nodes)

        metadata = {
            "sub_questions": [{**q.model_dump(), "answer": r.response} for q, r in qa_pairs],
            "failed_sub_questions": failures,
        }
        return response.model_copy(update={
            "source_nodes": merge_source_nodes(*(r.source_nodes for _, r in qa_pairs)),
            "metadata": metadata,
        })
