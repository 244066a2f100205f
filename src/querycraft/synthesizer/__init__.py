from querycraft.synthesizer.base import BaseSynthesizer, ResponseMode
from querycraft.synthesizer.simple_summarize import SimpleSummarize
from querycraft.synthesizer.refine import Refine, CompactAndRefine
from querycraft.synthesizer.tree_summarize import TreeSummarize
from querycraft.synthesizer.accumulate import Accumulate, CompactAndAccumulate
from querycraft.synthesizer.generation import Generation, NoText, ContextOnly
from querycraft.synthesizer.structured import StructuredTreeSummarize
from querycraft.synthesizer.factory import get_response_synthesizer

__all__ = [
    "BaseSynthesizer",
    "ResponseMode",
    "SimpleSummarize",
    "Refine",
    "CompactAndRefine",
    "TreeSummarize",
    "Accumulate",
    "CompactAndAccumulate",
    "Generation",
    "NoText",
    "ContextOnly",
    "StructuredTreeSummarize",
    "get_response_synthesizer",
]
