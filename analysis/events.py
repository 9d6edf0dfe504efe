"""
Event Model for the Banker's Algorithm Simulator.

Keeps the in-session history of safety checks and request decisions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class EventType(Enum):
    """Types of events in the simulation."""
    SAFETY_CHECK = "safety_check"
    ALLOCATION = "allocation"
    DENIAL = "denial"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        step: Request number when event occurred (0 for the startup check)
        event_type: Type of event
        process_id: PID involved in event (-1 for system-wide events)
        request: Requested units (if applicable)
        decision: DecisionKind value for request events
        sequence: Safe sequence, when one was found
        reason: Human-readable description
    """
    step: int
    event_type: EventType
    process_id: int = -1
    request: Optional[Tuple[int, ...]] = None
    decision: str = ""
    sequence: Tuple[int, ...] = ()
    reason: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        if self.event_type == EventType.SAFETY_CHECK:
            return f"Step {self.step}: SAFETY CHECK ({self.reason})"

        base = f"Step {self.step}: P{self.process_id} requests {list(self.request or ())}"
        if self.event_type == EventType.ALLOCATION:
            return f"{base} - GRANTED ({self.reason})"
        return f"{base} - DENIED ({self.reason})"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = field(default_factory=list)

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_process(self, process_id: int) -> list:
        """Get all events involving a specific process."""
        return [e for e in self.events if e.process_id == process_id]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
