"""
Resource State model for the Banker's Algorithm Simulator.

Owns the Available vector and the Allocation and Max matrices. Need is
never stored: it is derived as Max - Allocation on every query.
"""

import numpy as np
from typing import List, Optional, Sequence
from dataclasses import dataclass

from models.errors import InvalidStateError, IndexOutOfRangeError


# Largest unit count the state matrices can hold
MAX_UNITS = int(np.iinfo(int).max)


def default_labels(num_resources: int) -> List[str]:
    """Resource labels A, B, C, ... (R26, R27, ... past the alphabet)."""
    return [chr(ord('A') + i) if i < 26 else f"R{i}" for i in range(num_resources)]


def is_integer(value) -> bool:
    """True for Python and numpy integers, excluding booleans."""
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _to_vector(values: Sequence, name: str) -> np.ndarray:
    """Validate a flat sequence of non-negative integers and convert it."""
    if isinstance(values, (str, bytes)) or not hasattr(values, '__len__'):
        raise InvalidStateError(f"{name} must be a sequence of integers")

    for i, value in enumerate(values):
        if not is_integer(value):
            raise InvalidStateError(f"{name}[{i}] is not an integer: {value!r}", resource=i)
        if value < 0:
            raise InvalidStateError(f"{name}[{i}] is negative: {value}", resource=i)
        if value > MAX_UNITS:
            raise InvalidStateError(
                f"{name}[{i}] is too large: {value} (limit {MAX_UNITS})", resource=i
            )

    return np.array(list(values), dtype=int)


def _to_matrix(rows: Sequence, name: str, num_resources: int) -> np.ndarray:
    """Validate a P x R matrix of non-negative integers and convert it."""
    if isinstance(rows, (str, bytes)) or not hasattr(rows, '__len__'):
        raise InvalidStateError(f"{name} must be a matrix of integers")

    converted = []
    for p, row in enumerate(rows):
        vector = _to_vector(row, f"{name}[{p}]")
        if len(vector) != num_resources:
            raise InvalidStateError(
                f"{name}[{p}] has {len(vector)} entries, expected {num_resources}",
                process=p
            )
        converted.append(vector)

    return np.array(converted, dtype=int).reshape(len(converted), num_resources)


def _read_only(array: np.ndarray) -> np.ndarray:
    frozen = array.copy()
    frozen.flags.writeable = False
    return frozen


@dataclass(frozen=True, eq=False)
class StateSnapshot:
    """
    Immutable copy of the system state for display and comparison.

    Attributes:
        available: [R] Free units per resource type
        allocation: [P][R] Units currently held by each process
        max_demand: [P][R] Declared maximum claim of each process
        need: [P][R] Max - Allocation at the time of the snapshot
    """
    available: np.ndarray
    allocation: np.ndarray
    max_demand: np.ndarray
    need: np.ndarray

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateSnapshot):
            return NotImplemented
        return (
            np.array_equal(self.available, other.available)
            and np.array_equal(self.allocation, other.allocation)
            and np.array_equal(self.max_demand, other.max_demand)
            and np.array_equal(self.need, other.need)
        )

    def display(self, labels: Optional[List[str]] = None) -> str:
        """
        Generate readable string representation of the snapshot.

        Args:
            labels: Resource labels (defaults to A, B, C, ...)

        Returns:
            Formatted string with the Available line and the
            Allocation, Max and Need tables
        """
        num_resources = len(self.available)
        labels = labels or default_labels(num_resources)

        output = []
        output.append("\n" + "="*60)
        output.append("SYSTEM STATE")
        output.append("="*60)

        output.append("\nAvailable Resources:")
        output.append("  [" + ", ".join(
            f"{labels[r]}:{self.available[r]:2}" for r in range(num_resources)
        ) + "]")

        header = "       " + " ".join(f"{label:>3}" for label in labels)
        for title, matrix in (
            ("Allocation Matrix:", self.allocation),
            ("Max Matrix:", self.max_demand),
            ("Need Matrix (Max - Allocation):", self.need),
        ):
            output.append(f"\n{title}")
            output.append(header)
            for p, row in enumerate(matrix):
                output.append(f"  P{p:<3} " + " ".join(f"{value:3}" for value in row))

        output.append("\n" + "="*60)
        return "\n".join(output)


class ResourceState:
    """
    Global system state for the Banker's Algorithm.

    Attributes:
        available_vector: [R] Free resource units by type
        allocation_matrix: [P][R] Resources currently held by each process
        max_demand_matrix: [P][R] Maximum claim declared by each process
        need_matrix: [P][R] Derived as Max - Allocation
        total_units: [R] Available + column sums of Allocation, fixed at construction

    Invariants (checked at construction, kept by every commit):
        0 <= Allocation[p][r] <= Max[p][r]
        Available[r] + sum(Allocation[:, r]) == TotalUnits[r]
        Available[r] >= 0
    """

    def __init__(self, available: Sequence[int], max_demand: Sequence, allocation: Sequence):
        """
        Build the state from initial values.

        Args:
            available: [R] Free units per resource type
            max_demand: [P][R] Maximum claim per process
            allocation: [P][R] Units currently held per process

        Raises:
            InvalidStateError: On dimension mismatch, negative or non-integer
                values, or an allocation exceeding its maximum claim
        """
        self._available = _to_vector(available, "available")
        num_resources = len(self._available)
        if num_resources == 0:
            raise InvalidStateError("System needs at least one resource type")

        self._max_demand = _to_matrix(max_demand, "max", num_resources)
        self._allocation = _to_matrix(allocation, "allocation", num_resources)

        if len(self._max_demand) == 0:
            raise InvalidStateError("System needs at least one process")
        if len(self._allocation) != len(self._max_demand):
            raise InvalidStateError(
                f"allocation has {len(self._allocation)} rows, "
                f"max has {len(self._max_demand)}"
            )

        over = np.argwhere(self._allocation > self._max_demand)
        if len(over) > 0:
            p, r = (int(i) for i in over[0])
            raise InvalidStateError(
                f"P{p}: allocation[{r}] ({self._allocation[p][r]}) "
                f"exceeds max[{r}] ({self._max_demand[p][r]})",
                process=p,
                resource=r
            )

        for r in range(num_resources):
            total = int(self._available[r]) + sum(int(units) for units in self._allocation[:, r])
            if total > MAX_UNITS:
                raise InvalidStateError(
                    f"total units of resource {r} ({total}) exceed the limit {MAX_UNITS}",
                    resource=r
                )

        self._total_units = self._available + self._allocation.sum(axis=0)

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self._max_demand.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self._max_demand.shape[1]

    @property
    def available_vector(self) -> np.ndarray:
        """Read-only view of Available [R]."""
        return _read_only(self._available)

    @property
    def allocation_matrix(self) -> np.ndarray:
        """Read-only view of Allocation [P][R]."""
        return _read_only(self._allocation)

    @property
    def max_demand_matrix(self) -> np.ndarray:
        """Read-only view of Max [P][R]."""
        return _read_only(self._max_demand)

    @property
    def need_matrix(self) -> np.ndarray:
        """
        Get need matrix [P][R].
        Computed as: Need = Max - Allocation
        """
        return self._max_demand - self._allocation

    @property
    def total_units(self) -> np.ndarray:
        """Conserved total units per resource type."""
        return _read_only(self._total_units)

    def check_process_index(self, process: int) -> None:
        """Raise IndexOutOfRangeError unless 0 <= process < P."""
        if not is_integer(process) or not 0 <= process < self.num_processes:
            raise IndexOutOfRangeError(
                f"Process index {process!r} outside [0, {self.num_processes})",
                process=process if is_integer(process) else None
            )

    def need(self, process: int) -> List[int]:
        """
        Remaining need of one process.

        Args:
            process: Process index

        Returns:
            Max[process] - Allocation[process] as a list of R integers
        """
        self.check_process_index(process)
        return (self._max_demand[process] - self._allocation[process]).tolist()

    def snapshot(self) -> StateSnapshot:
        """Create an immutable copy of the current state."""
        return StateSnapshot(
            available=_read_only(self._available),
            allocation=_read_only(self._allocation),
            max_demand=_read_only(self._max_demand),
            need=_read_only(self.need_matrix)
        )

    def apply_delta(self, process: int, delta: np.ndarray) -> None:
        """
        Move `delta` units from Available to Allocation[process].

        Only RequestArbiter calls this, after validating `delta`.
        """
        self._available -= delta
        self._allocation[process] += delta

    def undo_delta(self, process: int, delta: np.ndarray) -> None:
        """Exact inverse of apply_delta()."""
        self._available += delta
        self._allocation[process] -= delta

    def assert_invariants(self, context: str = "") -> None:
        """Verify allocation bounds and resource conservation.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If any invariant is violated
        """
        for r in range(self.num_resources):
            allocated = self._allocation[:, r].sum()
            available = self._available[r]
            total = self._total_units[r]

            assert allocated + available == total, (
                f"Resource conservation violated for R{r} {context}\n"
                f"  Allocated: {allocated}, Available: {available}, Total: {total}"
            )
            assert available >= 0, (
                f"Negative available resources for R{r} {context}\n"
                f"  Available: {available}"
            )

        for p in range(self.num_processes):
            for r in range(self.num_resources):
                assert 0 <= self._allocation[p][r] <= self._max_demand[p][r], (
                    f"Allocation out of bounds for P{p} R{r} {context}\n"
                    f"  Allocation: {self._allocation[p][r]}, Max: {self._max_demand[p][r]}"
                )

    def __repr__(self) -> str:
        return (
            f"ResourceState(available={self._available.tolist()}, "
            f"max={self._max_demand.tolist()}, "
            f"allocation={self._allocation.tolist()})"
        )
