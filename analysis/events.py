"""
Event Model for the Resource Allocation Graph Deadlock Detector.

Defines event types for tracking simulation actions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EventType(Enum):
    """Types of events in the simulation."""
    REQUEST = "request"
    ALLOCATION = "allocation"
    CANCEL_REQUEST = "cancel_request"
    RELEASE = "release"
    SUPERSEDED = "superseded"
    REJECTED = "rejected"
    DETECTION = "detection"
    DEADLOCK = "deadlock"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        step: Simulation step when event occurred
        event_type: Type of event
        process_id: PID involved in event (-1 for graph-wide events)
        resource_id: Resource involved (if applicable)
        message: Human-readable description
        reason: Error kind / reason for a rejection (if applicable)
    """
    step: int
    event_type: EventType
    process_id: int
    resource_id: Optional[int] = None
    message: str = ""
    reason: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"Step {self.step}: P{self.process_id}"

        if self.event_type == EventType.REQUEST:
            return f"{base} requests R{self.resource_id}"
        elif self.event_type == EventType.ALLOCATION:
            return f"{base} is allocated R{self.resource_id}"
        elif self.event_type == EventType.CANCEL_REQUEST:
            return f"{base} withdraws request for R{self.resource_id}"
        elif self.event_type == EventType.RELEASE:
            return f"{base} releases R{self.resource_id}"
        elif self.event_type == EventType.SUPERSEDED:
            return f"{base} loses R{self.resource_id} ({self.message})"
        elif self.event_type == EventType.REJECTED:
            return f"Step {self.step}: REJECTED {self.message} ({self.reason})"
        elif self.event_type == EventType.DETECTION:
            return f"Step {self.step}: deadlock check - {self.message}"
        elif self.event_type == EventType.DEADLOCK:
            return f"Step {self.step}: DEADLOCK DETECTED ({self.message})"
        else:
            return f"{base} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
