"""
Cycle detection over the Wait-For Graph.

Depth-first search that stops at the first cycle and reconstructs, for each
wait in the cycle, the resource that causes it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from algorithms.wait_for_graph import WaitForGraph


class VisitState(Enum):
    """Per-process state during one detection run."""
    UNVISITED = "UNVISITED"
    ON_STACK = "ON_STACK"
    DONE = "DONE"


class CycleStep(NamedTuple):
    """One wait in a cycle: process waits for resource, held by next_process."""
    process: int
    resource: int
    next_process: int


@dataclass(frozen=True)
class Cycle:
    """
    A cycle of mutual waiting found in the Wait-For Graph.

    Attributes:
        steps: (process, witness resource, next process) triples in cycle
               order; the last step's next_process is the first step's process
    """
    steps: Tuple[CycleStep, ...]

    @property
    def processes(self) -> Tuple[int, ...]:
        """PIDs on the cycle, in traversal order."""
        return tuple(step.process for step in self.steps)

    @property
    def resources(self) -> Tuple[int, ...]:
        """Witness resources, one per step."""
        return tuple(step.resource for step in self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def describe(self, snapshot=None) -> str:
        """
        Render the cycle as a chain, e.g. "P0 -> R0 -> P1 -> R1 -> P0".

        Args:
            snapshot: Optional RAGSnapshot used to show display names
                      instead of P<id>/R<id> labels
        """
        if snapshot is not None:
            process_name = snapshot.process_name
            resource_name = snapshot.resource_name
        else:
            process_name = lambda pid: f"P{pid}"
            resource_name = lambda rid: f"R{rid}"

        parts = []
        for step in self.steps:
            parts.append(process_name(step.process))
            parts.append(resource_name(step.resource))
        parts.append(process_name(self.steps[0].process))
        return " -> ".join(parts)


@dataclass
class _TraversalContext:
    """Per-run DFS bookkeeping: node states plus the explicit path stack."""
    state: Dict[int, VisitState]
    path: List[int] = field(default_factory=list)
    position: Dict[int, int] = field(default_factory=dict)

    def push(self, pid: int) -> None:
        self.state[pid] = VisitState.ON_STACK
        self.position[pid] = len(self.path)
        self.path.append(pid)

    def pop(self) -> None:
        pid = self.path.pop()
        del self.position[pid]
        self.state[pid] = VisitState.DONE


def detect_cycle(wfg: WaitForGraph) -> Optional[Cycle]:
    """
    Find the first cycle in the Wait-For Graph.

    Search order is deterministic: roots in ascending pid order, outgoing
    edges in ascending neighbor pid order. Only the first cycle found is
    reported.

    Algorithm:
    1. All processes start UNVISITED
    2. DFS from each UNVISITED root; entering a node marks it ON_STACK,
       leaving it marks it DONE
    3. An edge into an ON_STACK node closes a cycle: the path stack from
       that node to the top, back to the start
    4. Each wait in the cycle is annotated with its lowest-id witness resource

    Time Complexity: O(P + E) where E = number of wait-for edges

    Args:
        wfg: Wait-For Graph from build_wait_for_graph()

    Returns:
        The first Cycle found, or None if the graph is acyclic (no deadlock)
    """
    context = _TraversalContext(state={pid: VisitState.UNVISITED for pid in wfg.nodes})

    for root in wfg.nodes:
        if context.state[root] is not VisitState.UNVISITED:
            continue
        cycle_pids = _explore(wfg, root, context)
        if cycle_pids:
            return _reconstruct(wfg, cycle_pids)

    return None


def _explore(wfg: WaitForGraph, root: int, context: _TraversalContext) -> Optional[List[int]]:
    """Iterative DFS from root; returns the cycle's pids if one is closed."""
    context.push(root)
    frames: List[Iterator[int]] = [iter(wfg.successors(root))]

    while frames:
        neighbor = next(frames[-1], None)

        if neighbor is None:
            # All edges out of the top node explored without closing a cycle
            frames.pop()
            context.pop()
            continue

        state = context.state.get(neighbor, VisitState.UNVISITED)
        if state is VisitState.ON_STACK:
            return context.path[context.position[neighbor]:]
        if state is VisitState.UNVISITED:
            context.push(neighbor)
            frames.append(iter(wfg.successors(neighbor)))

    return None


def _reconstruct(wfg: WaitForGraph, cycle_pids: List[int]) -> Cycle:
    """Attach the lowest-id witness resource to each wait in the cycle."""
    steps = []
    for i, pid in enumerate(cycle_pids):
        next_pid = cycle_pids[(i + 1) % len(cycle_pids)]
        witnesses = wfg.witnesses(pid, next_pid)
        # build_wait_for_graph records at least one witness per edge
        assert witnesses, f"Wait-for edge P{pid} -> P{next_pid} has no witness resource"
        steps.append(CycleStep(process=pid, resource=witnesses[0], next_process=next_pid))
    return Cycle(steps=tuple(steps))
