from querycraft.graph_store.base import GraphStore, Triplet
from querycraft.graph_store.simple import SimpleGraphStore
from querycraft.graph_store.triplet_extractor import TripletExtractor, parse_triplets

__all__ = ["GraphStore", "Triplet", "SimpleGraphStore", "TripletExtractor", "parse_triplets"]
