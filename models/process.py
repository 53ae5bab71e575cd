"""
Process model for the Resource Allocation Graph Deadlock Detector.

Represents a process node in the resource allocation graph.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Process:
    """
    Represents a process node in the RAG.

    Attributes:
        pid: Process identifier (assigned in creation order, starting at 0)
        name: Display name (unique among processes)
    """
    pid: int
    name: str

    @property
    def label(self) -> str:
        """Short node label used in graph renderings."""
        return f"P{self.pid}"

    def __str__(self) -> str:
        if self.name == self.label:
            return self.name
        return f"{self.name} ({self.label})"
