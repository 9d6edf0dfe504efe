"""
Deadlock Avoidance (Banker's Algorithm) request handling for the Simulator.

RequestArbiter is the only writer of ResourceState. Every request is
validated, tentatively applied, safety-checked and then either committed
or rolled back before the call returns.
"""

import numpy as np
from typing import Optional, Sequence, Tuple
from dataclasses import dataclass, field
from enum import Enum

from models.errors import MalformedRequestError
from models.resource_state import ResourceState, is_integer
from algorithms.safety import SafetyResult, is_safe_state


class DecisionKind(Enum):
    """Possible outcomes of a resource request."""
    GRANTED = "GRANTED"
    DENIED_EXCEEDS_MAX_CLAIM = "DENIED_EXCEEDS_MAX_CLAIM"
    DENIED_INSUFFICIENT_RESOURCES = "DENIED_INSUFFICIENT_RESOURCES"
    DENIED_UNSAFE = "DENIED_UNSAFE"


@dataclass(frozen=True)
class Decision:
    """
    Result of RequestArbiter.request().

    Attributes:
        kind: Outcome of the request
        process: Requesting process index
        request: Requested units per resource type
        sequence: Safe sequence after the grant (empty unless GRANTED)
        resource: First offending resource index for claim/availability denials
        limit: Need or Available value the offending component exceeded
    """
    kind: DecisionKind
    process: int
    request: Tuple[int, ...]
    sequence: Tuple[int, ...] = field(default_factory=tuple)
    resource: Optional[int] = None
    limit: Optional[int] = None

    @property
    def granted(self) -> bool:
        return self.kind == DecisionKind.GRANTED

    @property
    def reason(self) -> str:
        """Human-readable explanation of the decision."""
        if self.kind == DecisionKind.GRANTED:
            seq_str = " -> ".join(f"P{p}" for p in self.sequence)
            return f"Safe state maintained, sequence: {seq_str}"
        if self.kind == DecisionKind.DENIED_EXCEEDS_MAX_CLAIM:
            return (
                f"P{self.process} exceeded its max claim "
                f"(R{self.resource}: requested {self.request[self.resource]}, need {self.limit})"
            )
        if self.kind == DecisionKind.DENIED_INSUFFICIENT_RESOURCES:
            return (
                f"P{self.process} must wait, not enough resources "
                f"(R{self.resource}: requested {self.request[self.resource]}, available {self.limit})"
            )
        return "Granting would lead to an unsafe state, rolled back"


class RequestArbiter:
    """
    Grants or refuses resource requests using the Banker's Algorithm.

    Attributes:
        state: The ResourceState this arbiter owns and mutates
    """

    def __init__(self, state: ResourceState):
        self.state = state

    def check_current_safety(self) -> SafetyResult:
        """Run the safety check on the current state without changing it."""
        return is_safe_state(self.state)

    def _validate_request(self, process: int, request: Sequence[int]) -> Tuple[int, ...]:
        self.state.check_process_index(process)

        if isinstance(request, (str, bytes)) or not hasattr(request, '__len__'):
            raise MalformedRequestError(
                f"P{process}: request must be a sequence of integers", process=process
            )
        if len(request) != self.state.num_resources:
            raise MalformedRequestError(
                f"P{process}: request has {len(request)} entries, "
                f"expected {self.state.num_resources}",
                process=process
            )

        for r, amount in enumerate(request):
            if not is_integer(amount):
                raise MalformedRequestError(
                    f"P{process}: request[{r}] is not an integer: {amount!r}",
                    process=process,
                    resource=r
                )
            if amount < 0:
                raise MalformedRequestError(
                    f"P{process}: request[{r}] is negative: {amount}",
                    process=process,
                    resource=r
                )

        return tuple(int(amount) for amount in request)

    def request(self, process: int, request: Sequence[int]) -> Decision:
        """
        Handle a resource request using Banker's Algorithm.

        Steps:
        1. Validate: request <= need (otherwise DENIED_EXCEEDS_MAX_CLAIM)
        2. Check: request <= available (otherwise DENIED_INSUFFICIENT_RESOURCES)
        3. Tentatively allocate resources
        4. Run safety algorithm on new state
        5. If safe: commit and return GRANTED with the safe sequence
           If unsafe: roll back and return DENIED_UNSAFE

        Every outcome except GRANTED leaves the state exactly as it was.

        Args:
            process: Index of the requesting process
            request: Units of each resource type requested, on top of
                what the process already holds

        Returns:
            Decision describing the outcome

        Raises:
            IndexOutOfRangeError: If process is outside [0, P)
            MalformedRequestError: If request has the wrong length or
                negative/non-integer components
        """
        requested = self._validate_request(process, request)

        # Comparisons run on Python ints so oversized amounts cannot overflow
        # Step 1: Validate request doesn't exceed need
        need = self.state.need(process)
        over_claim = [r for r, amount in enumerate(requested) if amount > need[r]]
        if len(over_claim) > 0:
            r = over_claim[0]
            return Decision(
                kind=DecisionKind.DENIED_EXCEEDS_MAX_CLAIM,
                process=process,
                request=requested,
                resource=r,
                limit=need[r]
            )

        # Step 2: Check if resources are available
        available = self.state.available_vector.tolist()
        short = [r for r, amount in enumerate(requested) if amount > available[r]]
        if len(short) > 0:
            r = short[0]
            return Decision(
                kind=DecisionKind.DENIED_INSUFFICIENT_RESOURCES,
                process=process,
                request=requested,
                resource=r,
                limit=available[r]
            )

        amounts = np.array(requested, dtype=int)

        # Step 3: Tentatively allocate resources
        self.state.apply_delta(process, amounts)

        # Step 4: Run safety algorithm
        result = is_safe_state(self.state)

        # Step 5: Commit or roll back
        if result.safe:
            self.state.assert_invariants(f"after granting {list(requested)} to P{process}")
            return Decision(
                kind=DecisionKind.GRANTED,
                process=process,
                request=requested,
                sequence=result.sequence
            )

        self.state.undo_delta(process, amounts)
        return Decision(
            kind=DecisionKind.DENIED_UNSAFE,
            process=process,
            request=requested
        )
