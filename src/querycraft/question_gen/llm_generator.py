import logging
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

from pydantic import Field

from querycraft.errors import BadInputError, SubQuestionParseFailedError
from querycraft.node import QueryBundle
from querycraft.prompts import DEFAULT_SUB_QUESTION_PROMPT, PromptTemplate
from querycraft.question_gen.output_parser import parse_sub_questions
from querycraft.question_gen.types import BaseQuestionGenerator, SubQuestion
from querycraft.selectors.types import to_metadata
from querycraft.tools.types import ToolMetadata

logger = logging.getLogger(__name__)


def build_tools_text(tools: Sequence[ToolMetadata]) -> str:
    return "".join(f"- {tool.name}: {tool.description}\n" for tool in tools)


class LLMQuestionGenerator(BaseQuestionGenerator):
    """
    Asks the LLM for ``[tool_name] sub-question`` lines.

    When the answer yields no usable sub-question, the original query is
    sent to the first tool.

    Example:
        ```python
        generator = LLMQuestionGenerator(llm=llm)
        sub_questions = await generator.agenerate(tools, "Compare Uber and Lyft revenue in 2021")
        # [SubQuestion(sub_question="What was Uber's revenue in 2021?", tool_name="uber_10k"), ...]
        ```
    """

    llm: Any = Field(description="LLM generating the sub-questions")
    prompt: PromptTemplate = Field(default=DEFAULT_SUB_QUESTION_PROMPT)
    num_questions: Optional[int] = Field(default=None, description="Sub-questions to ask for; defaults to the tool count")
    verbose: bool = False

    _prompt_attrs: ClassVar[Dict[str, str]] = {"question_gen_prompt": "prompt"}

    async def agenerate(self, tools: Sequence[Any], query: Union[str, QueryBundle]) -> List[SubQuestion]:
        if not tools:
            raise BadInputError("LLMQuestionGenerator needs at least one tool")
        metadata = [to_metadata(t) for t in tools]
        query_str = QueryBundle.from_query(query).query_str

        prompt = self.prompt.format(
            tools_str=build_tools_text(metadata),
            num_questions=self.num_questions or len(metadata),
            query_str=query_str,
        )
        output = await self.llm.complete(prompt)
        if self.verbose:
            logger.info(f"> Question generator output:\n{output}")

        try:
            return parse_sub_questions(output, {t.name for t in metadata})
        except SubQuestionParseFailedError:
            logger.warning(f"No sub-questions parsed, sending the query to {metadata[0].name}")
            return [SubQuestion(sub_question=query_str, tool_name=metadata[0].name)]
