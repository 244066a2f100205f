"""
Qdrant filter translator - converts querycraft filters to Qdrant format.

Node metadata is stored under the ``metadata`` payload key, so filter keys
are prefixed accordingly.
"""
from typing import Any, Dict, Union

from qdrant_client import models

from querycraft.filters import (
    CompositeFilter,
    FieldFilter,
    FilterCondition,
    FilterOperator,
    MetadataFilter,
    to_filter,
)


class QdrantFilterTranslator:
    """Translates querycraft filters to Qdrant filter format."""

    def __init__(self, key_prefix: str = "metadata."):
        self.key_prefix = key_prefix

    def translate(self, filter_obj: Union[MetadataFilter, Dict[str, Any]]) -> models.Filter:
        """
        Translate a filter into a Qdrant ``Filter``.

        Args:
            filter_obj: FieldFilter, CompositeFilter or a dict of exact-match conditions

        Returns:
            Qdrant Filter object
        """
        filter_obj = to_filter(filter_obj)
        if isinstance(filter_obj, FieldFilter):
            return self._translate_field_filter(filter_obj)
        elif isinstance(filter_obj, CompositeFilter):
            return self._translate_composite_filter(filter_obj)
        raise ValueError(f"Unsupported filter type: {type(filter_obj)}")

    def _translate_field_filter(self, field_filter: FieldFilter) -> models.Filter:
        key = f"{self.key_prefix}{field_filter.key}"
        operator = field_filter.operator
        value = field_filter.value

        if operator == FilterOperator.EQ:
            condition = models.FieldCondition(key=key, match=models.MatchValue(value=value))
        elif operator == FilterOperator.NE:
            return models.Filter(
                must_not=[models.FieldCondition(key=key, match=models.MatchValue(value=value))]
            )
        elif operator == FilterOperator.GT:
            condition = models.FieldCondition(key=key, range=models.Range(gt=value))
        elif operator == FilterOperator.GTE:
            condition = models.FieldCondition(key=key, range=models.Range(gte=value))
        elif operator == FilterOperator.LT:
            condition = models.FieldCondition(key=key, range=models.Range(lt=value))
        elif operator == FilterOperator.LTE:
            condition = models.FieldCondition(key=key, range=models.Range(lte=value))
        elif operator == FilterOperator.IN:
            condition = models.FieldCondition(key=key, match=models.MatchAny(any=value))
        elif operator == FilterOperator.CONTAINS:
            condition = models.FieldCondition(key=key, match=models.MatchText(text=value))
        else:
            raise ValueError(f"Unsupported operator: {operator}")
        return models.Filter(must=[condition])

    def _translate_composite_filter(self, composite: CompositeFilter) -> models.Filter:
        translated = [self.translate(f) for f in composite.filters]
        if composite.condition == FilterCondition.AND:
            return models.Filter(must=translated)
        elif composite.condition == FilterCondition.OR:
            return models.Filter(should=translated)
        elif composite.condition == FilterCondition.NOT:
            return models.Filter(must_not=[models.Filter(must=translated)])
        raise ValueError(f"Unsupported condition: {composite.condition}")
