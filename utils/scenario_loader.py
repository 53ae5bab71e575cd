"""
Scenario Loader for the Resource Allocation Graph Deadlock Detector.

Loads and validates JSON scenario files: the processes and resources to
create, optional capacity limits, and step-scheduled edge events.
"""

import json
from typing import Dict, List, Any, Tuple

from models.rag_store import RAGStore


EVENT_TYPES = ('request', 'allocate', 'cancel_request', 'release')


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


def load_scenario(file_path: str) -> Tuple[RAGStore, Dict[int, List[Dict]]]:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (RAGStore, events_by_step)
        - RAGStore: Graph populated with the scenario's processes and resources
        - events_by_step: Dict mapping step number to list of events, in file order

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")
    except UnicodeDecodeError as e:
        raise ScenarioLoadError(f"Scenario file is not valid UTF-8: {e}")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}")

    return build_scenario(data)


def build_scenario(data: Any) -> Tuple[RAGStore, Dict[int, List[Dict]]]:
    """
    Build a scenario from already-parsed JSON data.

    Args:
        data: Scenario dictionary

    Returns:
        Tuple of (RAGStore, events_by_step)

    Raises:
        ScenarioLoadError: If the scenario is structurally invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    # Validate required fields
    if 'processes' not in data:
        raise ScenarioLoadError("Scenario missing 'processes' field")
    if 'resources' not in data:
        raise ScenarioLoadError("Scenario missing 'resources' field")

    store = _create_store(data.get('limits', {}))
    _load_nodes(store, data['processes'], 'process')
    _load_nodes(store, data['resources'], 'resource')

    events_by_step = {}
    for event in data.get('events', []):
        _validate_event(event, store)
        events_by_step.setdefault(event['step'], []).append(event)

    return store, events_by_step


def _create_store(limits: Any) -> RAGStore:
    """
    Create an empty store honouring the scenario's optional limits block.

    Args:
        limits: Dictionary with optional max_processes / max_resources

    Returns:
        Empty RAGStore
    """
    if not isinstance(limits, dict):
        raise ScenarioLoadError("'limits' must be an object")

    unknown = set(limits) - {'max_processes', 'max_resources'}
    if unknown:
        raise ScenarioLoadError(f"Unknown limit(s): {', '.join(sorted(unknown))}")

    try:
        return RAGStore(
            max_processes=limits.get('max_processes'),
            max_resources=limits.get('max_resources')
        )
    except ValueError as e:
        raise ScenarioLoadError(f"Invalid limits: {e}")


def _load_nodes(store: RAGStore, names: Any, kind: str) -> None:
    """
    Add process or resource nodes to the store.

    Args:
        store: Store being populated
        names: List of display names from the scenario
        kind: 'process' or 'resource'

    Raises:
        ScenarioLoadError: If the list is malformed or the store rejects a name
    """
    if not isinstance(names, list):
        raise ScenarioLoadError(f"Scenario {kind} list must be a JSON array of names")

    add = store.add_process if kind == 'process' else store.add_resource
    for name in names:
        result = add(name)
        if not result:
            raise ScenarioLoadError(f"Cannot add {kind} {name!r}: {result}")


def _validate_event(event: Any, store: RAGStore) -> None:
    """
    Validate a scheduled event.

    Only structure and name references are checked here; whether the edge
    change is legal in the graph state at that step is decided by the store
    when the simulator applies it.

    Args:
        event: Event dictionary
        store: Populated store (for name resolution)

    Raises:
        ScenarioLoadError: If event is invalid
    """
    if not isinstance(event, dict):
        raise ScenarioLoadError(f"Event must be an object, got {event!r}")
    if 'step' not in event:
        raise ScenarioLoadError(f"Event missing 'step' field: {event}")
    if 'type' not in event:
        raise ScenarioLoadError(f"Event missing 'type' field: {event}")

    step = event['step']
    if not isinstance(step, int) or isinstance(step, bool) or step < 0:
        raise ScenarioLoadError(f"Event step must be a non-negative integer, got {step!r}")

    event_type = event['type']
    if event_type not in EVENT_TYPES:
        raise ScenarioLoadError(f"Unknown event type '{event_type}' at step {step}")

    for field in ('process', 'resource'):
        if field not in event:
            raise ScenarioLoadError(f"{event_type} event at step {step} missing '{field}'")
        if not isinstance(event[field], str):
            raise ScenarioLoadError(
                f"{event_type} event at step {step}: '{field}' must be a name, got {event[field]!r}"
            )

    if store.find_process(event['process']) is None:
        raise ScenarioLoadError(
            f"{event_type} event at step {step}: unknown process '{event['process']}'"
        )
    if store.find_resource(event['resource']) is None:
        raise ScenarioLoadError(
            f"{event_type} event at step {step}: unknown resource '{event['resource']}'"
        )


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data.get('description', '')
    except (OSError, ValueError, AttributeError):
        return ''
