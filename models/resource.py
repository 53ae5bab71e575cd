"""
Resource model for the Resource Allocation Graph Deadlock Detector.

Represents a single-instance resource node in the resource allocation graph.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Resource:
    """
    Represents a resource node in the RAG.

    Each resource has exactly one instance, so it is held by at most
    one process at a time (enforced by RAGStore, not here).

    Attributes:
        rid: Resource identifier (assigned in creation order, starting at 0)
        name: Display name (unique among resources)
    """
    rid: int
    name: str

    @property
    def label(self) -> str:
        """Short node label used in graph renderings."""
        return f"R{self.rid}"

    def __str__(self) -> str:
        if self.name == self.label:
            return self.name
        return f"{self.name} ({self.label})"
