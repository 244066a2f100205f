import logging
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

from pydantic import Field

from querycraft.errors import BadInputError
from querycraft.node import QueryBundle
from querycraft.prompts import DEFAULT_MULTI_SELECT_PROMPT, DEFAULT_SINGLE_SELECT_PROMPT, PromptTemplate
from querycraft.selectors.output_parser import parse_selection
from querycraft.selectors.types import (
    BaseSelector,
    ChoiceLike,
    SelectorResult,
    SingleSelection,
    build_choices_text,
    to_metadata,
)

logger = logging.getLogger(__name__)


class _LLMSelector(BaseSelector):
    llm: Any = Field(description="LLM making the selection")
    prompt: PromptTemplate
    verbose: bool = False

    _prompt_attrs: ClassVar[Dict[str, str]] = {"prompt": "prompt"}

    def _format_prompt(self, num_choices: int, choices_text: str, query_str: str) -> str:
        return self.prompt.format(num_choices=num_choices, context_list=choices_text, query_str=query_str)

    async def _select(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> List[SingleSelection]:
        if not choices:
            raise BadInputError("No choices to select from")
        metadata = [to_metadata(c) for c in choices]
        query_str = QueryBundle.from_query(query).query_str
        prompt = self._format_prompt(len(metadata), build_choices_text(metadata), query_str)

        output = await self.llm.complete(prompt)
        if self.verbose:
            logger.info(f"> Selector output: {output}")

        selections = []
        seen = set()
        for choice, reason in parse_selection(output, len(metadata)):
            index = choice - 1
            if index in seen:
                continue
            seen.add(index)
            selections.append(SingleSelection(index=index, reason=reason))
        return selections


class LLMSingleSelector(_LLMSelector):
    """
    Asks the LLM for the single most relevant choice.

    When the LLM names several choices the first valid one wins.

    Raises:
        SelectionParseFailedError: If the answer names no valid choice
    """

    prompt: PromptTemplate = Field(default=DEFAULT_SINGLE_SELECT_PROMPT)

    async def aselect(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        selections = await self._select(choices, query)
        return SelectorResult(selections=selections[:1])


class LLMMultiSelector(_LLMSelector):
    """
    Asks the LLM for up to ``max_outputs`` relevant choices.

    ``max_outputs`` defaults to the number of choices.

    Raises:
        SelectionParseFailedError: If the answer names no valid choice
    """

    prompt: PromptTemplate = Field(default=DEFAULT_MULTI_SELECT_PROMPT)
    max_outputs: Optional[int] = Field(default=None, description="Maximum number of selections")

    def _format_prompt(self, num_choices: int, choices_text: str, query_str: str) -> str:
        return self.prompt.format(
            num_choices=num_choices,
            context_list=choices_text,
            max_outputs=self.max_outputs or num_choices,
            query_str=query_str,
        )

    async def aselect(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        selections = await self._select(choices, query)
        max_outputs = self.max_outputs or len(choices)
        return SelectorResult(selections=selections[:max_outputs])
