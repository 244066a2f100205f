from querycraft.selectors.types import BaseSelector, SelectorResult, SingleSelection, build_choices_text
from querycraft.selectors.simple import SimpleSingleSelector, SimpleMultiSelector
from querycraft.selectors.llm_selectors import LLMSingleSelector, LLMMultiSelector
from querycraft.selectors.output_parser import parse_selection

__all__ = [
    "BaseSelector",
    "SelectorResult",
    "SingleSelection",
    "build_choices_text",
    "SimpleSingleSelector",
    "SimpleMultiSelector",
    "LLMSingleSelector",
    "LLMMultiSelector",
    "parse_selection",
]
