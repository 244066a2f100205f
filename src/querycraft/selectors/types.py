from abc import ABC, abstractmethod
from typing import Any, List, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from querycraft.asyncio_utils import run_sync
from querycraft.node import QueryBundle
from querycraft.prompts import PromptMixin
from querycraft.tools.types import ToolMetadata

ChoiceLike = Union[ToolMetadata, Any]


class SingleSelection(BaseModel):
    """One selected choice (0-based index) and why it was selected."""

    index: int
    reason: str = ""


class SelectorResult(BaseModel):
    """Selections in the order the selector emitted them."""

    selections: List[SingleSelection] = Field(default_factory=list)

    @property
    def ind(self) -> int:
        if len(self.selections) != 1:
            raise ValueError(f"There are {len(self.selections)} selections, use inds instead")
        return self.selections[0].index

    @property
    def reason(self) -> str:
        if len(self.selections) != 1:
            raise ValueError(f"There are {len(self.selections)} selections, use reasons instead")
        return self.selections[0].reason

    @property
    def inds(self) -> List[int]:
        return [s.index for s in self.selections]

    @property
    def reasons(self) -> List[str]:
        return [s.reason for s in self.selections]


def to_metadata(choice: ChoiceLike) -> ToolMetadata:
    """Accept ToolMetadata, tools (anything with ``.metadata``) or plain strings."""
    if isinstance(choice, ToolMetadata):
        return choice
    metadata = getattr(choice, "metadata", None)
    if isinstance(metadata, ToolMetadata):
        return metadata
    if isinstance(choice, str):
        return ToolMetadata(name=choice, description=choice)
    raise TypeError(f"Cannot use {type(choice).__name__} as a selector choice")


def build_choices_text(choices: Sequence[ToolMetadata]) -> str:
    """Numbered choice list, ``(1) description`` entries separated by blank lines."""
    return "\n\n".join(f"({i}) {choice.description}" for i, choice in enumerate(choices, start=1))


class BaseSelector(BaseModel, PromptMixin, ABC):
    """
    Picks one or more choices for a query.

    Choices are usually tool metadata; tools themselves are accepted too.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def aselect(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        """
        Select choices for ``query``.

        Args:
            choices: Candidate tools or their metadata
            query: The query text or bundle

        Returns:
            Selections with 0-based indices into ``choices``
        """
        pass

    def select(self, choices: Sequence[ChoiceLike], query: Union[str, QueryBundle]) -> SelectorResult:
        return run_sync(self.aselect(choices, query))
