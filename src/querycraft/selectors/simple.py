from typing import Sequence, Union

from querycraft.errors import BadInputError
from querycraft.node import QueryBundle
from querycraft.selectors.types import BaseSelector, ChoiceLike, SelectorResult, SingleSelection


class SimpleSingleSelector(BaseSelector):
    """Always selects the first choice."""

    async def aselect(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        if not choices:
            raise BadInputError("No choices to select from")
        return SelectorResult(selections=[SingleSelection(index=0, reason="selected first choice")])


class SimpleMultiSelector(BaseSelector):
    """Selects every choice."""

    async def aselect(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        return SelectorResult(
            selections=[SingleSelection(index=i, reason="selected by default") for i in range(len(choices))]
        )
