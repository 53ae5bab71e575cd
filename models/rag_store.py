"""
RAG Store for the Resource Allocation Graph Deadlock Detector.

Holds processes, resources, request edges and allocation edges, and
enforces the single-owner invariant per resource. All mutations report
their outcome as an OperationResult; snapshot() gives detection and
display code an immutable view of the current graph.
"""

from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Set, Tuple

import numpy as np

from models.process import Process
from models.resource import Resource
from models.results import ErrorKind, OperationResult


class RequestEdge(NamedTuple):
    """Process -> resource edge: process has asked for, but not received, resource."""
    process: int
    resource: int


class AllocationEdge(NamedTuple):
    """Resource -> process edge: resource is currently held by process."""
    resource: int
    process: int


@dataclass(frozen=True)
class RAGSnapshot:
    """
    Immutable view of the RAG at one point in time.

    Attributes:
        processes: All processes, ascending pid
        resources: All resources, ascending rid
        requests: Set of request edges (pid, rid)
        allocations: Allocation edges (rid, pid), ascending rid
    """
    processes: Tuple[Process, ...] = ()
    resources: Tuple[Resource, ...] = ()
    requests: FrozenSet[RequestEdge] = frozenset()
    allocations: Tuple[AllocationEdge, ...] = ()

    @property
    def num_processes(self) -> int:
        """Number of processes in the snapshot."""
        return len(self.processes)

    @property
    def num_resources(self) -> int:
        """Number of resources in the snapshot."""
        return len(self.resources)

    @property
    def process_ids(self) -> Tuple[int, ...]:
        return tuple(p.pid for p in self.processes)

    @cached_property
    def owners(self) -> Mapping[int, int]:
        """Resource id -> owning pid, for allocated resources only."""
        return MappingProxyType({edge.resource: edge.process for edge in self.allocations})

    @cached_property
    def request_matrix(self) -> np.ndarray:
        """Boolean request matrix [P][R]: True where process requests resource."""
        matrix = np.zeros((self.num_processes, self.num_resources), dtype=bool)
        for pid, rid in self.requests:
            matrix[pid][rid] = True
        matrix.flags.writeable = False
        return matrix

    @cached_property
    def allocation_matrix(self) -> np.ndarray:
        """Boolean allocation matrix [P][R]: True where process holds resource."""
        matrix = np.zeros((self.num_processes, self.num_resources), dtype=bool)
        for rid, pid in self.allocations:
            matrix[pid][rid] = True
        matrix.flags.writeable = False
        return matrix

    def process_name(self, pid: int) -> str:
        return self.processes[pid].name

    def resource_name(self, rid: int) -> str:
        return self.resources[rid].name

    def display(self) -> str:
        """
        Generate readable string representation of the RAG.

        Returns:
            Adjacency listing of every node followed by request and
            allocation matrices
        """
        output = []
        output.append("\n" + "=" * 60)
        output.append("RESOURCE ALLOCATION GRAPH")
        output.append("=" * 60)

        requested_by: Dict[int, List[int]] = {p.pid: [] for p in self.processes}
        for pid, rid in sorted(self.requests):
            requested_by[pid].append(rid)

        output.append("\nProcesses (-> requested resources):")
        for process in self.processes:
            targets = " ".join(f"-> {self.resources[rid].name}" for rid in requested_by[process.pid])
            output.append(f"  {process.name}: {targets}".rstrip())

        output.append("\nResources (-> holding process):")
        for resource in self.resources:
            owner = self.owners.get(resource.rid)
            target = f"-> {self.processes[owner].name}" if owner is not None else ""
            output.append(f"  {resource.name}: {target}".rstrip())

        if self.num_processes and self.num_resources:
            label_width = len(f"P{self.num_processes - 1}")
            header = " " * (label_width + 4) + " ".join(f"R{i:2}" for i in range(self.num_resources))

            output.append("\nRequest Matrix:")
            output.append(header)
            for process in self.processes:
                row = f"  {process.label:<{label_width}}: "
                row += " ".join(f"{int(v):3}" for v in self.request_matrix[process.pid])
                output.append(row)

            output.append("\nAllocation Matrix:")
            output.append(header)
            for process in self.processes:
                row = f"  {process.label:<{label_width}}: "
                row += " ".join(f"{int(v):3}" for v in self.allocation_matrix[process.pid])
                output.append(row)

        output.append("\n" + "=" * 60)
        return "\n".join(output)


@dataclass
class RAGStore:
    """
    Mutable resource allocation graph.

    Process and resource ids are dense and assigned in creation order;
    there is no individual deletion, only reset(), which restarts the
    counters at 0.

    Attributes:
        max_processes: Optional ceiling on the number of processes
        max_resources: Optional ceiling on the number of resources
    """
    max_processes: Optional[int] = None
    max_resources: Optional[int] = None

    _processes: List[Process] = field(default_factory=list, init=False, repr=False)
    _resources: List[Resource] = field(default_factory=list, init=False, repr=False)
    _process_index: Dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _resource_index: Dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _requests: Set[RequestEdge] = field(default_factory=set, init=False, repr=False)
    # rid -> pid; one entry per allocated resource keeps the single-owner invariant structural
    _owners: Dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        """Validate configured limits."""
        for label, limit in (("max_processes", self.max_processes),
                             ("max_resources", self.max_resources)):
            if limit is not None and (not isinstance(limit, int) or limit <= 0):
                raise ValueError(f"{label} must be a positive integer, got {limit!r}")

    @property
    def num_processes(self) -> int:
        """Number of processes in the graph."""
        return len(self._processes)

    @property
    def num_resources(self) -> int:
        """Number of resources in the graph."""
        return len(self._resources)

    def _has_process(self, pid: int) -> bool:
        return isinstance(pid, int) and not isinstance(pid, bool) and 0 <= pid < len(self._processes)

    def _has_resource(self, rid: int) -> bool:
        return isinstance(rid, int) and not isinstance(rid, bool) and 0 <= rid < len(self._resources)

    def find_process(self, name: str) -> Optional[int]:
        """Resolve a process name to its pid, or None if unknown."""
        return self._process_index.get(name)

    def find_resource(self, name: str) -> Optional[int]:
        """Resolve a resource name to its rid, or None if unknown."""
        return self._resource_index.get(name)

    def owner_of(self, rid: int) -> Optional[int]:
        """PID currently holding resource rid, or None."""
        return self._owners.get(rid)

    def add_process(self, name: str) -> OperationResult:
        """
        Register a new process with no outgoing request edges.

        Args:
            name: Display name, unique among processes

        Returns:
            OperationResult with the new pid as value, or DUPLICATE_NAME /
            CAPACITY_EXCEEDED / INVALID_NAME
        """
        if not isinstance(name, str) or not name.strip():
            return OperationResult.failure(ErrorKind.INVALID_NAME,
                                           f"Invalid process name {name!r}")
        if name in self._process_index:
            return OperationResult.failure(
                ErrorKind.DUPLICATE_NAME,
                f"Process '{name}' already exists as P{self._process_index[name]}"
            )
        if self.max_processes is not None and len(self._processes) >= self.max_processes:
            return OperationResult.failure(
                ErrorKind.CAPACITY_EXCEEDED,
                f"Cannot add process '{name}' - limit of {self.max_processes} reached"
            )

        pid = len(self._processes)
        self._processes.append(Process(pid=pid, name=name))
        self._process_index[name] = pid
        return OperationResult.success(pid, f"Added process '{name}' as P{pid}")

    def add_resource(self, name: str) -> OperationResult:
        """
        Register a new, unallocated resource.

        Args:
            name: Display name, unique among resources

        Returns:
            OperationResult with the new rid as value, or DUPLICATE_NAME /
            CAPACITY_EXCEEDED / INVALID_NAME
        """
        if not isinstance(name, str) or not name.strip():
            return OperationResult.failure(ErrorKind.INVALID_NAME,
                                           f"Invalid resource name {name!r}")
        if name in self._resource_index:
            return OperationResult.failure(
                ErrorKind.DUPLICATE_NAME,
                f"Resource '{name}' already exists as R{self._resource_index[name]}"
            )
        if self.max_resources is not None and len(self._resources) >= self.max_resources:
            return OperationResult.failure(
                ErrorKind.CAPACITY_EXCEEDED,
                f"Cannot add resource '{name}' - limit of {self.max_resources} reached"
            )

        rid = len(self._resources)
        self._resources.append(Resource(rid=rid, name=name))
        self._resource_index[name] = rid
        return OperationResult.success(rid, f"Added resource '{name}' as R{rid}")

    def _check_references(self, pid: int, rid: int) -> Optional[OperationResult]:
        if not self._has_process(pid):
            return OperationResult.failure(ErrorKind.INVALID_REFERENCE,
                                           f"Unknown process id {pid!r}")
        if not self._has_resource(rid):
            return OperationResult.failure(ErrorKind.INVALID_REFERENCE,
                                           f"Unknown resource id {rid!r}")
        return None

    def add_request_edge(self, pid: int, rid: int) -> OperationResult:
        """Record that process pid is waiting for resource rid."""
        error = self._check_references(pid, rid)
        if error is not None:
            return error

        edge = RequestEdge(pid, rid)
        if edge in self._requests:
            return OperationResult.failure(ErrorKind.ALREADY_EXISTS,
                                           f"P{pid} already requests R{rid}")
        self._requests.add(edge)
        return OperationResult.success(message=f"P{pid} requests R{rid}")

    def add_allocation_edge(self, rid: int, pid: int) -> OperationResult:
        """
        Allocate resource rid to process pid.

        If another process already holds rid, its allocation is superseded:
        the old edge is removed, the new one installed, and the previous
        owner reported through OperationResult.superseded_owner.

        Args:
            rid: Resource to allocate
            pid: Process receiving the resource

        Returns:
            OperationResult; INVALID_REFERENCE for unknown ids, ALREADY_EXISTS
            if pid already holds rid
        """
        error = self._check_references(pid, rid)
        if error is not None:
            return error

        previous = self._owners.get(rid)
        if previous == pid:
            return OperationResult.failure(ErrorKind.ALREADY_EXISTS,
                                           f"R{rid} is already allocated to P{pid}")

        self._owners[rid] = pid
        if previous is not None:
            return OperationResult.success(
                message=f"R{rid} reallocated from P{previous} to P{pid}",
                superseded_owner=previous
            )
        return OperationResult.success(message=f"R{rid} allocated to P{pid}")

    def remove_request_edge(self, pid: int, rid: int) -> OperationResult:
        """Withdraw a pending request; EDGE_NOT_FOUND leaves the graph untouched."""
        edge = RequestEdge(pid, rid)
        if self._check_references(pid, rid) is not None or edge not in self._requests:
            return OperationResult.failure(ErrorKind.EDGE_NOT_FOUND,
                                           f"No request edge P{pid} -> R{rid}")
        self._requests.remove(edge)
        return OperationResult.success(message=f"P{pid} no longer requests R{rid}")

    def remove_allocation_edge(self, rid: int, pid: int) -> OperationResult:
        """Release an allocation; EDGE_NOT_FOUND leaves the graph untouched."""
        if self._check_references(pid, rid) is not None or self._owners.get(rid) != pid:
            return OperationResult.failure(ErrorKind.EDGE_NOT_FOUND,
                                           f"No allocation edge R{rid} -> P{pid}")
        del self._owners[rid]
        return OperationResult.success(message=f"R{rid} released by P{pid}")

    def reset(self) -> OperationResult:
        """Clear all processes, resources and edges."""
        self._processes.clear()
        self._resources.clear()
        self._process_index.clear()
        self._resource_index.clear()
        self._requests.clear()
        self._owners.clear()
        return OperationResult.success(message="Graph reset")

    def snapshot(self) -> RAGSnapshot:
        """
        Create an immutable view of the current graph.

        Returns:
            RAGSnapshot sharing no mutable state with the store
        """
        return RAGSnapshot(
            processes=tuple(self._processes),
            resources=tuple(self._resources),
            requests=frozenset(self._requests),
            allocations=tuple(AllocationEdge(rid, pid)
                              for rid, pid in sorted(self._owners.items()))
        )

    def assert_invariants(self, context: str = "") -> None:
        """Verify structural invariants of the graph.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If any invariant is violated
        """
        for pid, process in enumerate(self._processes):
            assert process.pid == pid, (
                f"Process id mismatch {context}: slot {pid} holds P{process.pid}"
            )
        for rid, resource in enumerate(self._resources):
            assert resource.rid == rid, (
                f"Resource id mismatch {context}: slot {rid} holds R{resource.rid}"
            )
        assert len(self._process_index) == len(self._processes), (
            f"Process name index out of sync {context}"
        )
        assert len(self._resource_index) == len(self._resources), (
            f"Resource name index out of sync {context}"
        )

        for pid, rid in self._requests:
            assert self._has_process(pid) and self._has_resource(rid), (
                f"Dangling request edge {context}: P{pid} -> R{rid}"
            )
        for rid, pid in self._owners.items():
            assert self._has_process(pid) and self._has_resource(rid), (
                f"Dangling allocation edge {context}: R{rid} -> P{pid}"
            )
