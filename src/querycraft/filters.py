"""
Metadata filters.

Filters are evaluated in memory against node metadata (``matches``) and can
be translated into native store filters (see ``vector_store.qdrant_filter_translator``).
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
from pydantic import BaseModel, Field


class FilterOperator(str, Enum):
    """Supported filter operators."""
    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    IN = "in"
    CONTAINS = "contains"


class FilterCondition(str, Enum):
    """Logical conditions for combining filters."""
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class MetadataFilter(BaseModel, ABC):
    """Base class for metadata filters."""

    @abstractmethod
    def matches(self, metadata: Mapping[str, Any]) -> bool:
        """Return True when ``metadata`` satisfies the filter."""

    @abstractmethod
    def to_dict(self) -> dict:
        """Convert filter to dictionary representation."""


class FieldFilter(MetadataFilter):
    """
    Filter on a single metadata field.

    A missing key never matches, whatever the operator.

    Example:
        ```python
        FieldFilter(key="category", operator=FilterOperator.EQ, value="ai")
        FieldFilter(key="year", operator=FilterOperator.GTE, value=2020)
        FieldFilter(key="status", operator=FilterOperator.IN, value=["active", "pending"])
        ```
    """
    key: str = Field(description="Metadata field key")
    operator: FilterOperator = Field(default=FilterOperator.EQ, description="Comparison operator")
    value: Any = Field(description="Value to compare against")

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        if self.key not in metadata:
            return False
        actual = metadata[self.key]
        op = self.operator
        try:
            if op == FilterOperator.EQ:
                return actual == self.value
            if op == FilterOperator.NE:
                return actual != self.value
            if op == FilterOperator.GT:
                return actual > self.value
            if op == FilterOperator.LT:
                return actual < self.value
            if op == FilterOperator.GTE:
                return actual >= self.value
            if op == FilterOperator.LTE:
                return actual <= self.value
        except TypeError:
            # Incomparable types never match
            return False
        if op == FilterOperator.IN:
            return actual in self.value
        if op == FilterOperator.CONTAINS:
            if isinstance(actual, str):
                return str(self.value) in actual
            if isinstance(actual, (list, tuple, set)):
                return self.value in actual
            return False
        raise ValueError(f"Unsupported operator: {op}")

    def to_dict(self) -> dict:
        return {
            "type": "field",
            "key": self.key,
            "operator": self.operator.value,
            "value": self.value
        }

    def __repr__(self) -> str:
        return f"FieldFilter({self.key} {self.operator.value} {self.value})"


class CompositeFilter(MetadataFilter):
    """
    Combine filters with AND / OR / NOT.

    NOT negates the conjunction of its filters.

    Example:
        ```python
        CompositeFilter(
            condition=FilterCondition.AND,
            filters=[
                FieldFilter(key="category", value="ai"),
                CompositeFilter(condition=FilterCondition.NOT, filters=[FieldFilter(key="archived", value=True)]),
            ]
        )
        ```
    """
    condition: FilterCondition = Field(description="Logical condition")
    filters: List[Union["CompositeFilter", FieldFilter]] = Field(
        description="List of filters to combine"
    )

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        results = (f.matches(metadata) for f in self.filters)
        if self.condition == FilterCondition.AND:
            return all(results)
        if self.condition == FilterCondition.OR:
            return any(results)
        return not all(results)

    def to_dict(self) -> dict:
        return {
            "type": "composite",
            "condition": self.condition.value,
            "filters": [f.to_dict() for f in self.filters]
        }

    def __repr__(self) -> str:
        filters_repr = ", ".join(str(f) for f in self.filters)
        return f"CompositeFilter({self.condition.value}: [{filters_repr}])"


CompositeFilter.model_rebuild()


FilterLike = Union[MetadataFilter, Dict[str, Any]]


def to_filter(filters: Optional[FilterLike]) -> Optional[MetadataFilter]:
    """
    Normalise a filter argument.

    A plain dict is read as exact-match conditions that must all hold.
    """
    if filters is None or isinstance(filters, MetadataFilter):
        return filters
    if isinstance(filters, dict):
        if not filters:
            return None
        return AND(*(EQ(key, value) for key, value in filters.items()))
    raise TypeError(f"Unsupported filter type: {type(filters).__name__}")


def EQ(key: str, value: Any) -> FieldFilter:
    """Create an equality filter."""
    return FieldFilter(key=key, operator=FilterOperator.EQ, value=value)


def NE(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.NE, value=value)


def GT(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.GT, value=value)


def LT(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.LT, value=value)


def GTE(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.GTE, value=value)


def LTE(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.LTE, value=value)


def IN(key: str, value: List[Any]) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.IN, value=value)


def CONTAINS(key: str, value: Any) -> FieldFilter:
    return FieldFilter(key=key, operator=FilterOperator.CONTAINS, value=value)


def AND(*filters: MetadataFilter) -> CompositeFilter:
    """Create an AND composite filter."""
    return CompositeFilter(condition=FilterCondition.AND, filters=list(filters))


def OR(*filters: MetadataFilter) -> CompositeFilter:
    """Create an OR composite filter."""
    return CompositeFilter(condition=FilterCondition.OR, filters=list(filters))


def NOT(filter: MetadataFilter) -> CompositeFilter:
    """Create a NOT composite filter."""
    return CompositeFilter(condition=FilterCondition.NOT, filters=[filter])
