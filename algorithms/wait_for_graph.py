"""
Wait-For Graph construction for the Resource Allocation Graph Deadlock Detector.

Collapses the bipartite RAG into a process -> process graph: P waits for P2
when P requests some resource currently allocated to P2.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, Iterator, Tuple

import numpy as np


@dataclass(frozen=True)
class WaitForGraph:
    """
    Derived process -> process wait relation.

    Attributes:
        nodes: All process ids, ascending
        edge_witnesses: (waiter, holder) -> resource ids justifying the edge, ascending
    """
    nodes: Tuple[int, ...]
    edge_witnesses: Dict[Tuple[int, int], Tuple[int, ...]]

    @cached_property
    def _successor_map(self) -> Dict[int, Tuple[int, ...]]:
        successors: Dict[int, list] = {}
        for waiter, holder in self.edge_witnesses:
            successors.setdefault(waiter, []).append(holder)
        return {pid: tuple(sorted(holders)) for pid, holders in successors.items()}

    def successors(self, pid: int) -> Tuple[int, ...]:
        """Processes pid waits on, ascending."""
        return self._successor_map.get(pid, ())

    def has_edge(self, pid: int, other: int) -> bool:
        return (pid, other) in self.edge_witnesses

    def witnesses(self, pid: int, other: int) -> Tuple[int, ...]:
        """Resources that make pid wait on other (empty if no such edge)."""
        return self.edge_witnesses.get((pid, other), ())

    def edges(self) -> Iterator[Tuple[int, int]]:
        """All wait-for edges in ascending (waiter, holder) order."""
        return iter(sorted(self.edge_witnesses))

    @property
    def num_edges(self) -> int:
        return len(self.edge_witnesses)

    def adjacency_matrix(self) -> np.ndarray:
        """
        Boolean adjacency matrix [P][P], indexed by position in nodes.

        Returns:
            Matrix where [i][j] is True if nodes[i] waits on nodes[j]
        """
        position = {pid: i for i, pid in enumerate(self.nodes)}
        matrix = np.zeros((len(self.nodes), len(self.nodes)), dtype=bool)
        for waiter, holder in self.edge_witnesses:
            matrix[position[waiter]][position[holder]] = True
        return matrix

    def display(self) -> str:
        """Format the wait-for edges for logging."""
        if not self.edge_witnesses:
            return "  (no wait-for edges)"
        lines = []
        for waiter, holder in self.edges():
            via = ", ".join(f"R{rid}" for rid in self.witnesses(waiter, holder))
            lines.append(f"  P{waiter} -> P{holder} (via {via})")
        return "\n".join(lines)


def build_wait_for_graph(
    requests: Iterable[Tuple[int, int]],
    allocations: Iterable[Tuple[int, int]],
    process_ids: Iterable[int] = ()
) -> WaitForGraph:
    """
    Build the Wait-For Graph from RAG edge sets.

    Algorithm:
    1. Index allocations by resource: owner[r] = p (at most one per resource)
    2. For each request (p, r) with an owner p2, add edge p -> p2 witnessed by r

    A process requesting a resource it already holds yields a p -> p edge,
    which detection reports as a one-process cycle.

    Time Complexity: O(P×R) edges in, one dict lookup each

    Args:
        requests: Request edges as (pid, rid) pairs
        allocations: Allocation edges as (rid, pid) pairs
        process_ids: Processes to include as nodes even without edges

    Returns:
        Freshly built WaitForGraph
    """
    owner = {rid: pid for rid, pid in allocations}

    witnesses: Dict[Tuple[int, int], list] = {}
    nodes = set(process_ids)
    for pid, rid in requests:
        nodes.add(pid)
        holder = owner.get(rid)
        if holder is None:
            continue
        nodes.add(holder)
        witnesses.setdefault((pid, holder), []).append(rid)

    return WaitForGraph(
        nodes=tuple(sorted(nodes)),
        edge_witnesses={edge: tuple(sorted(rids)) for edge, rids in witnesses.items()}
    )
