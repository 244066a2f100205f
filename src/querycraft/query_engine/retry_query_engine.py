import asyncio
import logging
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from pydantic import Field

from querycraft.errors import InvalidConfigError, MaxRetriesExceededError
from querycraft.node import QueryBundle
from querycraft.query_engine.base import BaseQueryEngine
from querycraft.response import RESPONSE_TYPE
from querycraft.settings import get_settings

logger = logging.getLogger(__name__)


class RetryQueryEngine(BaseQueryEngine):
    """
    Retries a query engine on failure with a fixed delay.

    The inner engine is called up to ``max_retries + 1`` times, sleeping
    ``delay`` seconds between attempts. Cancellation while querying or
    sleeping stops immediately. When every attempt fails the last error is
    re-raised unchanged (with a note on the number of attempts), or wrapped
    in ``MaxRetriesExceededError`` when ``wrap_final_error`` is set. Errors
    that are not instances of ``retry_on`` are raised at once.

    Example:
        ```python
        engine = RetryQueryEngine(query_engine=inner, max_retries=3, delay=0.5)
        response = await engine.aquery("What is the capital of France?")
        ```
    """

    query_engine: Any = Field(description="The engine to retry")
    max_retries: int = Field(default=3, description="Additional attempts after the first failure")
    delay: float = Field(default=1.0, description="Seconds to wait between attempts")
    retry_on: Tuple[Type[Exception], ...] = Field(default=(Exception,), description="Errors that trigger a retry")
    wrap_final_error: bool = Field(default=False, description="Raise MaxRetriesExceededError after the last attempt")

    _prompt_module_attrs: ClassVar[Dict[str, str]] = {"query_engine": "query_engine"}

    def __init__(self, **data: Any):
        super().__init__(**data)
        if self.max_retries < 0:
            raise InvalidConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.delay < 0:
            raise InvalidConfigError(f"delay must be >= 0, got {self.delay}")

    @classmethod
    def from_settings(cls, query_engine: Any, **kwargs: Any) -> "RetryQueryEngine":
        """Use the configured retry defaults."""
        settings = get_settings()
        kwargs.setdefault("max_retries", settings.max_retries)
        kwargs.setdefault("delay", settings.retry_delay)
        return cls(query_engine=query_engine, **kwargs)

    async def _aquery(self, query_bundle: QueryBundle) -> RESPONSE_TYPE:
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            # cancellation checkpoint before every attempt
            await asyncio.sleep(0)
            try:
                return await self.query_engine.aquery(query_bundle)
            except self.retry_on as e:
                last_error = e
                if attempt == attempts:
                    break
                logger.warning(f"Query attempt {attempt}/{attempts} failed: {e}. Retrying in {self.delay}s")
                await asyncio.sleep(self.delay)

        logger.error(f"Query failed after {attempts} attempts: {last_error}")
        if self.wrap_final_error:
            raise MaxRetriesExceededError(attempts, last_error) from last_error
        last_error.add_note(f"Gave up after {attempts} attempts")
        raise last_error
