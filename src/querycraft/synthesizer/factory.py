from typing import Any, Optional, Union

from querycraft.errors import InvalidConfigError
from querycraft.prompts import PromptTemplate
from querycraft.settings import get_settings
from querycraft.synthesizer.accumulate import Accumulate, CompactAndAccumulate
from querycraft.synthesizer.base import BaseSynthesizer, ResponseMode
from querycraft.synthesizer.generation import ContextOnly, Generation, NoText
from querycraft.synthesizer.refine import CompactAndRefine, Refine
from querycraft.synthesizer.simple_summarize import SimpleSummarize
from querycraft.synthesizer.tree_summarize import TreeSummarize


def get_response_synthesizer(
    llm: Any = None,
    response_mode: Union[ResponseMode, str, None] = None,
    text_qa_template: Optional[PromptTemplate] = None,
    refine_template: Optional[PromptTemplate] = None,
    summary_template: Optional[PromptTemplate] = None,
    simple_template: Optional[PromptTemplate] = None,
    streaming: bool = False,
    use_async: bool = False,
    verbose: bool = False,
    **kwargs: Any,
) -> BaseSynthesizer:
    """
    Build a synthesizer for ``response_mode``.

    Args:
        llm: LLM used for generation (not needed for no_text and context_only)
        response_mode: Reduction strategy; defaults to the configured ``response_mode``
        text_qa_template: Overrides the question answering prompt
        refine_template: Overrides the refine prompt
        summary_template: Overrides the tree summarize prompt
        simple_template: Overrides the generation prompt
        streaming: Stream the final LLM call
        use_async: Run independent LLM calls concurrently where supported

    Returns:
        The configured synthesizer

    Raises:
        InvalidConfigError: If the mode is unknown
    """
    if response_mode is None:
        response_mode = get_settings().response_mode
    try:
        mode = ResponseMode(response_mode)
    except ValueError as e:
        raise InvalidConfigError(f"Unknown response mode: {response_mode!r}") from e

    common = dict(llm=llm, streaming=streaming, verbose=verbose, **kwargs)
    qa = {"text_qa_template": text_qa_template} if text_qa_template is not None else {}
    refine = {"refine_template": refine_template} if refine_template is not None else {}

    if mode == ResponseMode.SIMPLE_SUMMARIZE:
        return SimpleSummarize(**common, **qa)
    if mode == ResponseMode.REFINE:
        return Refine(**common, **qa, **refine)
    if mode == ResponseMode.COMPACT:
        return CompactAndRefine(**common, **qa, **refine)
    if mode == ResponseMode.TREE_SUMMARIZE:
        summary = {"summary_template": summary_template} if summary_template is not None else {}
        return TreeSummarize(**common, use_async=use_async, **summary)
    if mode == ResponseMode.ACCUMULATE:
        return Accumulate(**common, use_async=use_async, **qa)
    if mode == ResponseMode.COMPACT_ACCUMULATE:
        return CompactAndAccumulate(**common, use_async=use_async, **qa)
    if mode == ResponseMode.GENERATION:
        simple = {"simple_template": simple_template} if simple_template is not None else {}
        return Generation(**common, **simple)
    if mode == ResponseMode.NO_TEXT:
        return NoText(**common)
    return ContextOnly(**common)
