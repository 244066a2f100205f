from typing import Dict, List, Optional, Set

from pydantic import Field

from querycraft.graph_store.base import GraphStore


class SimpleGraphStore(GraphStore):
    """
    In-memory graph store.

    Edges are kept per subject in insertion order; duplicates are ignored.
    """

    graph: Dict[str, List[List[str]]] = Field(default_factory=dict)

    async def upsert_triplet(self, subject: str, relation: str, obj: str) -> None:
        edges = self.graph.setdefault(subject, [])
        if [relation, obj] not in edges:
            edges.append([relation, obj])

    async def get(self, subject: str) -> List[List[str]]:
        return [list(edge) for edge in self.graph.get(subject, [])]

    async def delete(self, subject: str, relation: str, obj: str) -> None:
        edges = self.graph.get(subject)
        if not edges:
            return
        if [relation, obj] in edges:
            edges.remove([relation, obj])
        if not edges:
            del self.graph[subject]

    async def get_rel_map(
        self,
        subjects: Optional[List[str]] = None,
        depth: int = 2,
        limit: int = 30,
    ) -> Dict[str, List[List[str]]]:
        if subjects is None:
            subjects = list(self.graph.keys())

        rel_map: Dict[str, List[List[str]]] = {}
        rel_count = 0
        for subject in subjects:
            if rel_count >= limit:
                break
            edges = self._walk(subject, depth, limit, visited=set())
            edges = edges[:limit - rel_count]
            rel_map[subject] = edges
            rel_count += len(edges)
        return rel_map

    def _walk(self, subject: str, depth: int, limit: int, visited: Set[str]) -> List[List[str]]:
        if depth <= 0 or subject in visited or subject not in self.graph:
            return []
        visited.add(subject)
        edges = []
        for relation, obj in self.graph[subject][:limit]:
            edges.append([subject, relation, obj])
            edges.extend(self._walk(obj, depth - 1, limit, visited))
        return edges
