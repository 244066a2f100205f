from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict


class Triplet(NamedTuple):
    """A (subject, relation, object) fact."""
    subject: str
    relation: str
    object: str

    def __str__(self) -> str:
        return f"({self.subject}, {self.relation}, {self.object})"


class GraphStore(BaseModel, ABC):
    """Abstract store of triplets, queried outward from subjects."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    @abstractmethod
    async def upsert_triplet(self, subject: str, relation: str, obj: str) -> None:
        pass

    @abstractmethod
    async def get(self, subject: str) -> List[List[str]]:
        """
        Return the outgoing edges of ``subject``.

        Returns:
            ``[relation, object]`` pairs
        """
        pass

    @abstractmethod
    async def delete(self, subject: str, relation: str, obj: str) -> None:
        pass

    @abstractmethod
    async def get_rel_map(
        self,
        subjects: Optional[List[str]] = None,
        depth: int = 2,
        limit: int = 30,
    ) -> Dict[str, List[List[str]]]:
        """
        Walk the graph outward from each subject.

        Args:
            subjects: Start entities; all subjects when None
            depth: Maximum number of hops
            limit: Maximum number of relations returned overall

        Returns:
            For every start subject the ``[subject, relation, object]`` edges reached
        """
        pass
