"""
Safety Algorithm (Banker's safety check) for the Simulator.

Decides whether every process can still run to completion from a given
state and produces one safe finishing order.
"""

import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from models.resource_state import ResourceState


@dataclass(frozen=True)
class SafetyResult:
    """
    Outcome of a safety check.

    Attributes:
        safe: True if every process can finish
        sequence: Safe finishing order of process indices (empty when unsafe)
    """
    safe: bool
    sequence: Tuple[int, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.safe

    def format_sequence(self) -> str:
        """Format the sequence as 'P1 -> P3 -> ...'."""
        return " -> ".join(f"P{p}" for p in self.sequence)


def find_safe_sequence(state: ResourceState) -> Optional[List[int]]:
    """
    Find a safe sequence using the Banker's safety algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Scan unfinished processes in ascending index order; whenever
       Need[i] <= Work, set Work += Allocation[i], Finish[i] = True and
       append i to the sequence, then keep scanning the same pass with
       the updated Work
    3. Repeat passes until all processes finish (SAFE) or a full pass
       finishes nobody (UNSAFE)

    Ascending index order is also the tie-break, so the same state always
    yields the same sequence.

    Time Complexity: O(P²×R)

    Args:
        state: System state to check (not modified)

    Returns:
        List of process indices in finishing order, or None if unsafe
    """
    work = state.available_vector.copy()
    need = state.need_matrix
    allocation = state.allocation_matrix
    finish = np.zeros(state.num_processes, dtype=bool)
    safe_sequence = []

    made_progress = True
    while made_progress and not finish.all():
        made_progress = False

        for i in range(state.num_processes):
            if finish[i]:
                continue

            if np.all(need[i] <= work):
                # Process can finish: its allocation returns to the pool
                work += allocation[i]
                finish[i] = True
                safe_sequence.append(i)
                made_progress = True

    if finish.all():
        return safe_sequence
    return None


def is_safe_state(state: ResourceState) -> SafetyResult:
    """
    Check if the system is in a safe state.

    Args:
        state: Current system state

    Returns:
        SafetyResult with the safe sequence, or safe=False
    """
    sequence = find_safe_sequence(state)
    if sequence is None:
        return SafetyResult(safe=False)
    return SafetyResult(safe=True, sequence=tuple(sequence))
