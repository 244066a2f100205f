from querycraft.node_parser.base import NodeParser
from querycraft.node_parser.simple import SimpleNodeParser
from querycraft.node_parser.sentence_window import SentenceWindowNodeParser

__all__ = [
    "NodeParser",
    "SimpleNodeParser",
    "SentenceWindowNodeParser",
]
