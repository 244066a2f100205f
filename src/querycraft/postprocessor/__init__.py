from querycraft.postprocessor.base import BaseNodePostprocessor
from querycraft.postprocessor.similarity import SimilarityPostprocessor, TopKPostprocessor
from querycraft.postprocessor.keyword import KeywordNodePostprocessor
from querycraft.postprocessor.metadata_replacement import MetadataReplacementPostProcessor
from querycraft.postprocessor.long_context_reorder import LongContextReorder

__all__ = [
    "BaseNodePostprocessor",
    "SimilarityPostprocessor",
    "TopKPostprocessor",
    "KeywordNodePostprocessor",
    "MetadataReplacementPostProcessor",
    "LongContextReorder",
]
