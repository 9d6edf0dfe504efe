"""
Scenario Loader for the Banker's Algorithm Simulator.

Loads and validates JSON scenario files describing the initial state and
an optional script of requests.
"""

import json
from typing import Dict, List, Any, Tuple
from dataclasses import dataclass, field

from models.errors import InvalidStateError
from models.resource_state import ResourceState, default_labels


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


# Initial state of the classic five-process, three-resource example
DEFAULT_SCENARIO = {
    'description': "Textbook Banker's Algorithm example (5 processes, 3 resource types)",
    'resources': ['A', 'B', 'C'],
    'available': [3, 3, 2],
    'max': [
        [7, 5, 3],
        [3, 2, 2],
        [9, 0, 2],
        [2, 2, 2],
        [4, 3, 3],
    ],
    'allocation': [
        [0, 1, 0],
        [2, 0, 0],
        [3, 0, 2],
        [2, 1, 1],
        [0, 0, 2],
    ],
}


@dataclass
class Scenario:
    """
    Non-state parts of a scenario.

    Attributes:
        description: Free-text description
        labels: Display label per resource type
        requests: Scripted (process, amounts) requests, in order
    """
    description: str = ""
    labels: List[str] = field(default_factory=list)
    requests: List[Tuple[int, List[int]]] = field(default_factory=list)


def load_scenario(file_path: str) -> Tuple[ResourceState, Scenario]:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (ResourceState, Scenario)

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

    return build_scenario(data)


def load_default_scenario() -> Tuple[ResourceState, Scenario]:
    """Load the built-in textbook scenario."""
    return build_scenario(DEFAULT_SCENARIO)


def build_scenario(data: Dict[str, Any]) -> Tuple[ResourceState, Scenario]:
    """
    Build state and scenario from already-parsed scenario data.

    Args:
        data: Scenario dictionary

    Returns:
        Tuple of (ResourceState, Scenario)

    Raises:
        ScenarioLoadError: If the data is invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    if 'max' not in data:
        raise ScenarioLoadError("Scenario missing 'max' field")
    if not isinstance(data['max'], list) or not data['max']:
        raise ScenarioLoadError("'max' must be a non-empty list of rows")
    if not isinstance(data['max'][0], list):
        raise ScenarioLoadError("'max' rows must be lists")

    max_demand = data['max']
    num_resources = len(max_demand[0])
    allocation = data.get('allocation', [[0] * num_resources for _ in max_demand])

    available = _resolve_available(data, allocation, num_resources)

    try:
        state = ResourceState(available, max_demand, allocation)
    except InvalidStateError as e:
        raise ScenarioLoadError(f"Invalid initial state: {e}") from e

    labels = _load_labels(data, state.num_resources)
    requests = _load_requests(data.get('requests', []))

    scenario = Scenario(
        description=data.get('description', ''),
        labels=labels,
        requests=requests
    )
    return state, scenario


def _resolve_available(data: Dict[str, Any], allocation: Any, num_resources: int) -> List[int]:
    """
    Get the Available vector, given directly or derived from totals.

    Critical validation when derived: total[r] - sum(allocation[:,r]) >= 0.
    If this fails, the scenario is invalid.
    """
    has_available = 'available' in data
    has_total = 'total' in data

    if has_available == has_total:
        raise ScenarioLoadError("Scenario needs exactly one of 'available' or 'total'")

    if has_available:
        return data['available']

    total = data['total']
    if not isinstance(total, list) or len(total) != num_resources:
        raise ScenarioLoadError(f"'total' must be a list of {num_resources} integers")
    if not isinstance(allocation, list) or not all(
        isinstance(row, list) and len(row) == num_resources for row in allocation
    ):
        raise ScenarioLoadError(f"'allocation' rows must be lists of {num_resources} integers")

    available = []
    for r in range(num_resources):
        try:
            allocated = sum(row[r] for row in allocation)
            free = total[r] - allocated
        except TypeError:
            raise ScenarioLoadError(f"Resource R{r}: 'total' and 'allocation' must be integers")

        if free < 0:
            raise ScenarioLoadError(
                f"VALIDATION FAILED: Resource R{r} initial allocations ({allocated}) "
                f"exceed total instances ({total[r]})"
            )
        available.append(free)

    return available


def _load_labels(data: Dict[str, Any], num_resources: int) -> List[str]:
    """Resource labels from the scenario, or A, B, C, ..."""
    if 'resources' not in data:
        return default_labels(num_resources)

    labels = data['resources']
    if not isinstance(labels, list) or len(labels) != num_resources:
        raise ScenarioLoadError(
            f"'resources' must list {num_resources} labels, one per resource type"
        )
    return [str(label) for label in labels]


def _load_requests(request_data: Any) -> List[Tuple[int, List[int]]]:
    """
    Load scripted requests.

    Only the shape is checked here. Index and value checks happen in the
    arbiter so the script reports misuse the same way interactive input does.
    """
    if not isinstance(request_data, list):
        raise ScenarioLoadError("'requests' must be a list")

    requests = []
    for i, req in enumerate(request_data):
        if not isinstance(req, dict):
            raise ScenarioLoadError(f"Request {i}: must be an object")
        if 'process' not in req:
            raise ScenarioLoadError(f"Request {i}: missing 'process' field")
        if 'amounts' not in req:
            raise ScenarioLoadError(f"Request {i}: missing 'amounts' field")
        if not isinstance(req['amounts'], list):
            raise ScenarioLoadError(f"Request {i}: 'amounts' must be a list")

        requests.append((req['process'], list(req['amounts'])))

    return requests
