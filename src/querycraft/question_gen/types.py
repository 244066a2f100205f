from abc import ABC, abstractmethod
from typing import Any, List, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import QueryBundle
from querycraft.prompts import PromptMixin


class SubQuestion(BaseModel):
    """A sub-question bound to the tool that should answer it."""

    sub_question: str
    tool_name: str


class SubQuestionList(BaseModel):
    items: List[SubQuestion] = Field(default_factory=list)


class BaseQuestionGenerator(BaseModel, PromptMixin, ABC):
    """Decomposes a query into sub-questions for a set of tools."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def agenerate(self, tools: Sequence[Any], query: Union[str, QueryBundle]) -> List[SubQuestion]:
        """
        Generate sub-questions.

        Args:
            tools: Tools (or their metadata) the sub-questions may target
            query: The query text or bundle

        Returns:
            Sub-questions in the order they were produced
        """
        pass

    def generate(self, tools: Sequence[Any], query: Union[str, QueryBundle]) -> List[SubQuestion]:
        return run_sync(self.agenerate(tools, query))
