import logging
from typing import Any, ClassVar, Dict

from querycraft.node import QueryBundle
from querycraft.query_engine.base import BaseQueryEngine
from querycraft.query_transform import BaseQueryTransform
from querycraft.response import RESPONSE_TYPE

logger = logging.getLogger(__name__)


class TransformQueryEngine(BaseQueryEngine):
    """Applies a query transform, then delegates to another engine."""

    query_engine: Any
    query_transform: BaseQueryTransform

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {
        "query_transform": "query_transform",
        "query_engine": "query_engine",
    }

    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        transformed = await self.query_transform.arun(query_bundle)
        if self.verbose:
            logger.info(f"> Transformed query embedding strings: {transformed.embedding_strs}")
        return await self.query_engine.aquery(transformed)
