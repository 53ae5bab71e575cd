"""
Operation results for the Resource Allocation Graph Deadlock Detector.

Every RAG store mutation reports its outcome as an OperationResult instead
of raising, so callers can recover locally (e.g. retry with other input).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Failure kinds reported by RAG store operations."""
    DUPLICATE_NAME = "DuplicateName"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    INVALID_REFERENCE = "InvalidReference"
    ALREADY_EXISTS = "AlreadyExists"
    EDGE_NOT_FOUND = "EdgeNotFound"
    NO_PROCESSES = "NoProcesses"
    INVALID_NAME = "InvalidName"


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a single RAG store operation.

    Attributes:
        ok: True if the mutation was applied
        value: Operation payload (new pid/rid for add_process/add_resource)
        error: Failure kind when ok is False
        message: Human-readable description of the outcome
        superseded_owner: PID that lost an allocation to this operation, if any
    """
    ok: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""
    superseded_owner: Optional[int] = None

    @classmethod
    def success(cls, value: Any = None, message: str = "",
                superseded_owner: Optional[int] = None) -> "OperationResult":
        return cls(ok=True, value=value, message=message,
                   superseded_owner=superseded_owner)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "OperationResult":
        return cls(ok=False, error=error, message=message)

    def __bool__(self) -> bool:
        return self.ok

    def __str__(self) -> str:
        if self.ok:
            return f"OK ({self.message})" if self.message else "OK"
        return f"{self.error.value}: {self.message}"
