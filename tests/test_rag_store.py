"""
RAG Store Validation Tests

Tests Process/Resource registration, edge mutations, the single-owner
invariant, reset and snapshots.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.rag_store import RAGStore, RequestEdge, AllocationEdge
from models.results import ErrorKind, OperationResult
from algorithms.detection import run_deadlock_check


def _two_by_two() -> RAGStore:
    store = RAGStore()
    for name in ("P0", "P1"):
        store.add_process(name)
    for name in ("R0", "R1"):
        store.add_resource(name)
    return store


def test_add_nodes_assigns_ids_in_creation_order():
    """Process and resource ids are dense and start at 0."""
    store = RAGStore()

    assert store.add_process("editor").value == 0
    assert store.add_process("compiler").value == 1
    assert store.add_resource("disk").value == 0
    assert store.add_resource("printer").value == 1

    assert store.find_process("compiler") == 1
    assert store.find_resource("disk") == 0
    assert store.find_process("missing") is None

    snapshot = store.snapshot()
    assert [p.name for p in snapshot.processes] == ["editor", "compiler"]
    assert [r.label for r in snapshot.resources] == ["R0", "R1"]
    print("  ✓ ids assigned in creation order")


def test_duplicate_names_rejected():
    """Second add with the same name returns DUPLICATE_NAME; counts unchanged."""
    store = RAGStore()
    assert store.add_process("P0")
    assert store.add_resource("R0")

    result = store.add_process("P0")
    assert not result
    assert result.error is ErrorKind.DUPLICATE_NAME
    assert store.num_processes == 1

    result = store.add_resource("R0")
    assert result.error is ErrorKind.DUPLICATE_NAME
    assert store.num_resources == 1

    # Processes and resources have separate namespaces
    assert store.add_resource("P0")
    print("  ✓ duplicate names rejected")


def test_invalid_names_rejected():
    store = RAGStore()
    for bad in ("", "   ", None, 7):
        result = store.add_process(bad)
        assert result.error is ErrorKind.INVALID_NAME, f"{bad!r} should be rejected"
    assert store.num_processes == 0


def test_capacity_limits():
    """Configured limits yield CAPACITY_EXCEEDED instead of growing further."""
    store = RAGStore(max_processes=2, max_resources=1)
    assert store.add_process("P0")
    assert store.add_process("P1")
    result = store.add_process("P2")
    assert result.error is ErrorKind.CAPACITY_EXCEEDED
    assert store.num_processes == 2

    assert store.add_resource("R0")
    assert store.add_resource("R1").error is ErrorKind.CAPACITY_EXCEEDED

    # Duplicate check comes before the capacity check
    assert store.add_process("P0").error is ErrorKind.DUPLICATE_NAME
    print("  ✓ capacity limits enforced")


def test_invalid_limits_raise():
    for limits in ({"max_processes": 0}, {"max_resources": -3}, {"max_processes": "5"}):
        try:
            RAGStore(**limits)
        except ValueError:
            continue
        assert False, f"RAGStore({limits}) should raise ValueError"


def test_request_edges():
    store = _two_by_two()

    assert store.add_request_edge(0, 1)
    result = store.add_request_edge(0, 1)
    assert result.error is ErrorKind.ALREADY_EXISTS

    assert store.add_request_edge(5, 0).error is ErrorKind.INVALID_REFERENCE
    assert store.add_request_edge(0, 9).error is ErrorKind.INVALID_REFERENCE
    assert store.add_request_edge(-1, 0).error is ErrorKind.INVALID_REFERENCE

    assert store.snapshot().requests == frozenset({RequestEdge(0, 1)})

    assert store.remove_request_edge(0, 1)
    assert store.snapshot().requests == frozenset()
    print("  ✓ request edges added/removed")


def test_allocation_edges():
    store = _two_by_two()

    result = store.add_allocation_edge(0, 1)
    assert result.ok and result.superseded_owner is None
    assert store.owner_of(0) == 1

    result = store.add_allocation_edge(0, 1)
    assert result.error is ErrorKind.ALREADY_EXISTS

    assert store.add_allocation_edge(3, 1).error is ErrorKind.INVALID_REFERENCE
    assert store.add_allocation_edge(0, 3).error is ErrorKind.INVALID_REFERENCE

    assert store.remove_allocation_edge(0, 1)
    assert store.owner_of(0) is None


def test_unknown_references_leave_graph_unchanged():
    """Edges naming unknown or non-integer ids are rejected, never stored."""
    store = _two_by_two()

    bad_pairs = [(0, 9), (9, 0), (-1, 1), (True, 0), (0, False), ("0", 0), (None, 1)]
    for pid, rid in bad_pairs:
        result = store.add_request_edge(pid, rid)
        assert result.error is ErrorKind.INVALID_REFERENCE, f"request ({pid!r}, {rid!r}): {result}"
        result = store.add_allocation_edge(rid, pid)
        assert result.error is ErrorKind.INVALID_REFERENCE, f"allocation ({rid!r}, {pid!r}): {result}"

    snapshot = store.snapshot()
    assert snapshot.requests == frozenset()
    assert snapshot.allocations == ()
    store.assert_invariants("after rejected edges")

    # Rendering and detection only ever see valid ids
    assert "R9" not in snapshot.display()
    assert not run_deadlock_check(store).deadlock
    print("  ✓ unknown references rejected")


def test_remove_with_bool_ids_does_not_match_integer_edges():
    store = _two_by_two()
    store.add_request_edge(1, 0)
    store.add_allocation_edge(1, 1)

    assert store.remove_request_edge(True, 0).error is ErrorKind.EDGE_NOT_FOUND
    assert store.remove_allocation_edge(True, 1).error is ErrorKind.EDGE_NOT_FOUND
    assert store.snapshot().requests == frozenset({RequestEdge(1, 0)})
    assert store.owner_of(1) == 1


def test_matrix_columns_aligned():
    """Header and rows line up even when pids reach two digits."""
    store = RAGStore()
    for i in range(12):
        store.add_process(f"worker{i}")
    for i in range(3):
        store.add_resource(f"lock{i}")
    store.add_request_edge(11, 2)

    lines = store.snapshot().display().splitlines()
    header = next(line for line in lines if line.strip().startswith("R 0"))
    rows = [line for line in lines if line.startswith("  P")]

    assert len(rows) == 24  # request and allocation matrices
    for row in rows:
        assert len(row) == len(header), f"{row!r} vs {header!r}"
    assert header.index("R 2") == rows[11].rindex("1") - 2


def test_reallocation_supersedes_previous_owner():
    """Re-allocating R0 from P1 to P0 swaps the edge and reports P1."""
    store = _two_by_two()
    store.add_allocation_edge(0, 1)

    result = store.add_allocation_edge(0, 0)

    assert result.ok
    assert result.superseded_owner == 1
    allocations = store.snapshot().allocations
    assert AllocationEdge(0, 1) not in allocations
    assert AllocationEdge(0, 0) in allocations
    print(f"  ✓ {result.message}")


def test_single_owner_invariant():
    """Any sequence of allocations leaves at most one owner per resource."""
    store = RAGStore()
    for i in range(4):
        store.add_process(f"P{i}")
    for i in range(3):
        store.add_resource(f"R{i}")

    sequence = [(0, 0), (0, 1), (1, 2), (0, 3), (2, 2), (1, 0), (0, 3), (2, 1)]
    for rid, pid in sequence:
        store.add_allocation_edge(rid, pid)

    per_resource = {}
    for rid, _ in store.snapshot().allocations:
        per_resource[rid] = per_resource.get(rid, 0) + 1
    assert all(count <= 1 for count in per_resource.values()), per_resource
    assert dict(store.snapshot().owners) == {0: 3, 1: 0, 2: 1}
    store.assert_invariants("after allocation sequence")


def test_remove_missing_edge_is_noop():
    """EDGE_NOT_FOUND leaves every edge set unchanged."""
    store = _two_by_two()
    store.add_request_edge(0, 0)
    store.add_allocation_edge(1, 1)
    before = store.snapshot()

    assert store.remove_request_edge(1, 1).error is ErrorKind.EDGE_NOT_FOUND
    assert store.remove_allocation_edge(1, 0).error is ErrorKind.EDGE_NOT_FOUND
    assert store.remove_allocation_edge(0, 0).error is ErrorKind.EDGE_NOT_FOUND
    assert store.remove_request_edge(7, 7).error is ErrorKind.EDGE_NOT_FOUND

    after = store.snapshot()
    assert after.requests == before.requests
    assert after.allocations == before.allocations


def test_reset_clears_everything():
    store = _two_by_two()
    store.add_request_edge(0, 0)
    store.add_allocation_edge(0, 1)

    result = store.reset()
    assert isinstance(result, OperationResult) and result.ok

    snapshot = store.snapshot()
    assert snapshot.num_processes == 0
    assert snapshot.num_resources == 0
    assert snapshot.requests == frozenset()
    assert snapshot.allocations == ()
    assert store.find_process("P0") is None

    # Ids restart and names may be reused
    assert store.add_process("P0").value == 0
    print("  ✓ reset clears all state")


def test_snapshot_is_isolated_from_later_mutations():
    store = _two_by_two()
    store.add_request_edge(0, 1)
    snapshot = store.snapshot()

    store.add_request_edge(1, 0)
    store.add_allocation_edge(1, 1)
    store.add_process("P2")

    assert snapshot.requests == frozenset({RequestEdge(0, 1)})
    assert snapshot.allocations == ()
    assert snapshot.num_processes == 2


def test_snapshot_matrices():
    store = _two_by_two()
    store.add_request_edge(0, 0)
    store.add_request_edge(1, 1)
    store.add_allocation_edge(0, 1)
    store.add_allocation_edge(1, 0)

    snapshot = store.snapshot()
    request = snapshot.request_matrix
    allocation = snapshot.allocation_matrix

    assert request.shape == (2, 2)
    assert request.tolist() == [[True, False], [False, True]]
    assert allocation.tolist() == [[False, True], [True, False]]
    assert not request.flags.writeable
    # Each resource column holds at most one allocation
    assert (allocation.sum(axis=0) <= 1).all()

    display = snapshot.display()
    assert "P0: -> R0" in display
    assert "R0: -> P1" in display
    assert "Allocation Matrix:" in display
    print(display)


def main():
    """Run all RAG store tests."""
    print("\n" + "="*70)
    print(" "*20 + "RAG STORE TESTS")
    print("="*70)

    tests = [
        test_add_nodes_assigns_ids_in_creation_order,
        test_duplicate_names_rejected,
        test_invalid_names_rejected,
        test_capacity_limits,
        test_invalid_limits_raise,
        test_request_edges,
        test_allocation_edges,
        test_unknown_references_leave_graph_unchanged,
        test_remove_with_bool_ids_does_not_match_integer_edges,
        test_matrix_columns_aligned,
        test_reallocation_supersedes_previous_owner,
        test_single_owner_invariant,
        test_remove_missing_edge_is_noop,
        test_reset_clears_everything,
        test_snapshot_is_isolated_from_later_mutations,
        test_snapshot_matrices,
    ]

    try:
        for test in tests:
            print(f"\n{test.__name__}")
            test()
        print("\n✅ ALL RAG STORE TESTS PASSED")
        return 0
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
