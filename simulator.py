#!/usr/bin/env python3
"""
Resource Allocation Graph Deadlock Detector
Main entry point for the simulation system.

Replays a scenario of request/allocation edge events against a RAG and
periodically checks the resulting Wait-For Graph for a cycle.
"""

import argparse
import sys
from typing import Dict, List, NamedTuple, Optional

from models.rag_store import RAGStore
from models.results import OperationResult
from utils.scenario_loader import load_scenario, get_scenario_description, ScenarioLoadError
from utils.logger import SimulatorLogger
from algorithms.detection import DeadlockReport, run_deadlock_check, should_run_detection
from analysis.events import EventLog, SimulationEvent, EventType


EXIT_NO_DEADLOCK = 0
EXIT_LOAD_ERROR = 1
EXIT_DEADLOCK = 2


class SimulationResult(NamedTuple):
    """Outcome of one simulation run."""
    event_log: EventLog
    report: Optional[DeadlockReport]
    stop_reason: str


def run_simulation(
    scenario_path: str,
    detect_interval: int = 1,
    verbose: bool = False,
    log_file: Optional[str] = None,
    continue_after_deadlock: bool = False
) -> SimulationResult:
    """
    Run the deadlock detection simulation for a scenario.

    Step Ordering (for deterministic execution):
    1. Apply the step's events in file order
    2. Run detection (depending on detect_interval)
    3. If deadlocked, halt (unless continue_after_deadlock)

    A final check always runs after the last step if the interval skipped it.

    Args:
        scenario_path: Path to scenario JSON file
        detect_interval: Steps between deadlock detection
        verbose: Enable verbose logging
        log_file: Optional file to mirror the log into
        continue_after_deadlock: Keep replaying events after a deadlock is found

    Returns:
        SimulationResult with the event log, last deadlock report and stop reason
    """
    if detect_interval < 1:
        raise ValueError(f"detect_interval must be at least 1, got {detect_interval}")

    logger = SimulatorLogger(verbose=verbose, log_file=log_file)
    event_log = EventLog()

    try:
        store, events_by_step = load_scenario(scenario_path)
    except ScenarioLoadError as e:
        logger.log(f"Failed to load scenario: {e}", "error")
        logger.close()
        return SimulationResult(event_log, None, f"Scenario load failed: {e}")

    logger.log(f"\n{'='*60}")
    logger.log("DEADLOCK DETECTION SIMULATION START")
    logger.log(f"Scenario: {scenario_path}")
    description = get_scenario_description(scenario_path)
    if description:
        logger.log(f"Description: {description}")
    logger.log(f"{'='*60}\n")

    _display_initial_state(store, logger)

    max_step = max(events_by_step.keys()) if events_by_step else 0
    report = None
    last_checked = None
    stop_reason = None

    for step in range(max_step + 1):
        logger.log(f"\n{'-'*60}")
        logger.log(f"Step {step}")
        logger.log(f"{'-'*60}")

        for event in events_by_step.get(step, []):
            _apply_event(step, event, store, logger, event_log)

        if verbose:
            store.assert_invariants(f"after step {step}")

        if should_run_detection(step, detect_interval):
            report = _run_check(step, store, logger, event_log)
            last_checked = step

            if report.deadlock and not continue_after_deadlock:
                stop_reason = f"Deadlock detected at step {step}"
                logger.log("\nHalting simulation on deadlock")
                break

    if stop_reason is None:
        if last_checked != max_step:
            logger.log(f"\nFinal deadlock check after step {max_step}")
            report = _run_check(max_step, store, logger, event_log)
        if report.deadlock:
            stop_reason = "All events applied - deadlock present"
        else:
            stop_reason = "All events applied - no deadlock"

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION COMPLETE")
    logger.log(f"Stop reason: {stop_reason}")
    logger.log(f"{'='*60}")

    logger.log(report.snapshot.display())
    _display_statistics(report, event_log, logger)

    if verbose:
        logger.log("\nEvent Log:")
        logger.log(event_log.display())

    logger.close()
    return SimulationResult(event_log, report, stop_reason)


def _apply_event(
    step: int,
    event: Dict,
    store: RAGStore,
    logger: SimulatorLogger,
    event_log: EventLog
) -> OperationResult:
    """
    Apply one scheduled edge event to the store and record the outcome.

    Args:
        step: Current simulation step
        event: Validated event dictionary
        store: RAG store
        logger: Logger instance
        event_log: Event log

    Returns:
        The store's OperationResult
    """
    process_name = event['process']
    resource_name = event['resource']
    pid = store.find_process(process_name)
    rid = store.find_resource(resource_name)
    event_type = event['type']

    if event_type == 'request':
        result = store.add_request_edge(pid, rid)
        action = f"{process_name} requests {resource_name}"
        logged_type = EventType.REQUEST
    elif event_type == 'allocate':
        result = store.add_allocation_edge(rid, pid)
        action = f"{resource_name} allocated to {process_name}"
        logged_type = EventType.ALLOCATION
    elif event_type == 'cancel_request':
        result = store.remove_request_edge(pid, rid)
        action = f"{process_name} withdraws request for {resource_name}"
        logged_type = EventType.CANCEL_REQUEST
    else:  # release
        result = store.remove_allocation_edge(rid, pid)
        action = f"{process_name} releases {resource_name}"
        logged_type = EventType.RELEASE

    if not result:
        logger.log_mutation(step, action, False, result.error.value)
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.REJECTED,
            process_id=pid,
            resource_id=rid,
            message=action,
            reason=result.error.value
        ))
        return result

    logger.log_mutation(step, action, True, result.message)
    event_log.add(SimulationEvent(
        step=step,
        event_type=logged_type,
        process_id=pid,
        resource_id=rid,
        message=result.message
    ))

    if result.superseded_owner is not None:
        previous_name = store.snapshot().process_name(result.superseded_owner)
        logger.log_superseded(step, resource_name, previous_name, process_name)
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.SUPERSEDED,
            process_id=result.superseded_owner,
            resource_id=rid,
            message=f"reallocated to {process_name}"
        ))

    return result


def _run_check(
    step: int,
    store: RAGStore,
    logger: SimulatorLogger,
    event_log: EventLog
) -> DeadlockReport:
    """Run one deadlock check and log its outcome."""
    report = run_deadlock_check(store)
    snapshot = report.snapshot

    logger.log_graph(step, report.wait_for_graph.display())

    if report.deadlock:
        cycle = report.cycle
        chain = cycle.describe(snapshot)
        names = [snapshot.process_name(pid) for pid in cycle.processes]

        logger.log(f"\n{'!'*60}")
        logger.log_deadlock(step, chain, names)
        for wait in cycle.steps:
            logger.log(
                f"  {snapshot.process_name(wait.process)} waits for "
                f"{snapshot.resource_name(wait.resource)} held by "
                f"{snapshot.process_name(wait.next_process)}"
            )
        logger.log(f"{'!'*60}\n")

        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.DEADLOCK,
            process_id=-1,  # Graph-wide event
            message=chain
        ))
    else:
        logger.log(f"  Deadlock check: {report.describe()}", "debug")
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.DETECTION,
            process_id=-1,
            message=report.describe()
        ))

    return report


def _display_initial_state(store: RAGStore, logger: SimulatorLogger) -> None:
    """Display the nodes the scenario created."""
    snapshot = store.snapshot()
    logger.log("Initial Graph:")
    logger.log("\nProcesses:")
    for p in snapshot.processes:
        logger.log(f"  {p.label}: {p.name}")

    logger.log("\nResources:")
    for r in snapshot.resources:
        logger.log(f"  {r.label}: {r.name}")

    limits = []
    if store.max_processes is not None:
        limits.append(f"max_processes={store.max_processes}")
    if store.max_resources is not None:
        limits.append(f"max_resources={store.max_resources}")
    if limits:
        logger.log(f"\nLimits: {', '.join(limits)}")


def _display_statistics(report: DeadlockReport, event_log: EventLog, logger: SimulatorLogger) -> None:
    """Display final simulation statistics."""
    snapshot = report.snapshot
    logger.log("\nSimulation Statistics:")
    logger.log(f"  Processes: {snapshot.num_processes}")
    logger.log(f"  Resources: {snapshot.num_resources}")
    logger.log(f"  Request edges: {len(snapshot.requests)}")
    logger.log(f"  Allocation edges: {len(snapshot.allocations)}")
    logger.log(f"  Wait-for edges: {report.wait_for_graph.num_edges}")

    rejected = len(event_log.get_events_by_type(EventType.REJECTED))
    superseded = len(event_log.get_events_by_type(EventType.SUPERSEDED))
    checks = (len(event_log.get_events_by_type(EventType.DETECTION))
              + len(event_log.get_events_by_type(EventType.DEADLOCK)))
    deadlocks = len(event_log.get_events_by_type(EventType.DEADLOCK))

    logger.log(f"\n  Rejected Events: {rejected}")
    logger.log(f"  Superseded Allocations: {superseded}")
    logger.log(f"  Deadlock Checks: {checks}")
    logger.log(f"  Deadlocks Detected: {deadlocks}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description='Resource Allocation Graph Deadlock Detector'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--detect-interval',
        type=int,
        default=1,
        help='Steps between deadlock detection checks (default: 1)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--continue-after-deadlock',
        action='store_true',
        help='Keep applying events after a deadlock is detected'
    )

    args = parser.parse_args(argv)

    if args.detect_interval < 1:
        parser.error('--detect-interval must be at least 1')

    result = run_simulation(
        args.scenario,
        args.detect_interval,
        args.verbose,
        log_file=args.log_file,
        continue_after_deadlock=args.continue_after_deadlock
    )

    if result.report is None:
        return EXIT_LOAD_ERROR
    return EXIT_DEADLOCK if result.report.deadlock else EXIT_NO_DEADLOCK


if __name__ == '__main__':
    sys.exit(main())
