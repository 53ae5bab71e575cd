"""
Deadlock Detection for the Resource Allocation Graph Deadlock Detector.

Composes Wait-For Graph construction and cycle detection over a single
snapshot of the RAG store.
"""

from dataclasses import dataclass
from typing import Optional

from models.rag_store import RAGSnapshot, RAGStore
from models.results import ErrorKind
from algorithms.wait_for_graph import WaitForGraph, build_wait_for_graph
from algorithms.cycle_detection import Cycle, detect_cycle


@dataclass(frozen=True)
class DeadlockReport:
    """
    Result of one deadlock check.

    Attributes:
        snapshot: RAG state the check ran against
        wait_for_graph: WFG derived from that snapshot
        cycle: First cycle found, or None
        note: NO_PROCESSES when there was nothing to check
    """
    snapshot: RAGSnapshot
    wait_for_graph: WaitForGraph
    cycle: Optional[Cycle] = None
    note: Optional[ErrorKind] = None

    @property
    def deadlock(self) -> bool:
        """True if the RAG is deadlocked (the WFG has a cycle)."""
        return self.cycle is not None

    @property
    def deadlocked_pids(self) -> list:
        return list(self.cycle.processes) if self.cycle else []

    def describe(self) -> str:
        """One-line summary suitable for logging."""
        if self.note is ErrorKind.NO_PROCESSES:
            return "No deadlock (no processes in graph)"
        if not self.deadlock:
            return "No deadlock"
        return f"Deadlock: {self.cycle.describe(self.snapshot)}"


def run_deadlock_check(store: RAGStore) -> DeadlockReport:
    """
    Decide whether the current RAG state is deadlocked.

    Takes one immutable snapshot, builds the Wait-For Graph once from it and
    runs cycle detection over the result, so the traversal always sees a
    stable graph.

    Args:
        store: RAG store to check

    Returns:
        DeadlockReport with the first cycle found, if any
    """
    snapshot = store.snapshot()
    wfg = build_wait_for_graph(snapshot.requests, snapshot.allocations, snapshot.process_ids)

    if snapshot.num_processes == 0:
        return DeadlockReport(snapshot=snapshot, wait_for_graph=wfg,
                              note=ErrorKind.NO_PROCESSES)

    return DeadlockReport(snapshot=snapshot, wait_for_graph=wfg, cycle=detect_cycle(wfg))


def should_run_detection(current_step: int, detect_interval: int) -> bool:
    """
    Determine if detection should run at current simulation step.

    Args:
        current_step: Current simulation step number
        detect_interval: Steps between detection checks

    Returns:
        True if detection should run
    """
    if detect_interval < 1:
        raise ValueError(f"detect_interval must be at least 1, got {detect_interval}")
    return current_step % detect_interval == 0
