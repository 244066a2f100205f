"""
Exception hierarchy for querycraft.

Every error raised by the toolkit derives from :class:`QuerycraftError`.
Cancellation is not part of this hierarchy: it is signalled with
``asyncio.CancelledError`` and always propagates.
"""
from typing import Optional


class QuerycraftError(Exception):
    """Base class for all querycraft errors."""


class InvalidConfigError(QuerycraftError, ValueError):
    """Raised at construction time when a component is misconfigured."""


class BadInputError(QuerycraftError, ValueError):
    """Raised when a call receives input it cannot work with (e.g. an empty tool list)."""


class UpstreamError(QuerycraftError):
    """
    Wraps a failure coming from an LLM, an embedding model or a store.

    Args:
        message: Human readable description
        cause: The original exception, if any
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ParseFailedError(QuerycraftError, ValueError):
    """Raised when LLM output cannot be parsed into the expected shape."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message)
        self.raw_output = raw_output


class SelectionParseFailedError(ParseFailedError):
    """No valid choice could be recovered from a selector answer."""


class SubQuestionParseFailedError(ParseFailedError):
    """No sub-question could be recovered from a question generator answer."""


class StructuredOutputParseError(ParseFailedError):
    """The final answer of a structured synthesizer is not valid for the target model."""


class BudgetExhaustedError(QuerycraftError, ValueError):
    """Raised when metadata leaves too little room in a chunk for content."""


class RoutingFailedError(QuerycraftError):
    """Raised when a selector did not pick any usable tool."""


class MaxRetriesExceededError(QuerycraftError):
    """
    Raised by the retry engine when asked to wrap the final failure.

    Args:
        attempts: Number of attempts that were made
        cause: The error of the last attempt
    """

    def __init__(self, attempts: int, cause: BaseException):
        super().__init__(f"Max retries exceeded after {attempts} attempts: {cause}")
        self.attempts = attempts
        self.cause = cause
