"""Task and node status values and small shared helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class SchedulingError(Exception):
    """Raised when a scheduling operation cannot be carried out."""


class TaskStatus(IntEnum):
    """Status of a task (pod) as seen by the scheduler."""

    PENDING = 1 << 0
    ALLOCATED = 1 << 1
    PIPELINED = 1 << 2
    BINDING = 1 << 3
    BOUND = 1 << 4
    RUNNING = 1 << 5
    RELEASING = 1 << 6
    SUCCEEDED = 1 << 7
    FAILED = 1 << 8
    UNKNOWN = 1 << 9

    def __str__(self) -> str:
        return _TASK_STATUS_NAMES.get(self, "Unknown")


_TASK_STATUS_NAMES = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.BINDING: "Binding",
    TaskStatus.BOUND: "Bound",
    TaskStatus.RUNNING: "Running",
    TaskStatus.RELEASING: "Releasing",
    TaskStatus.SUCCEEDED: "Succeeded",
    TaskStatus.FAILED: "Failed",
}


class NodePhase(IntEnum):
    """Whether a node can take new tasks."""

    READY = 1 << 0
    NOT_READY = 1 << 1

    def __str__(self) -> str:
        return _NODE_PHASE_NAMES.get(self, "Unknown")


_NODE_PHASE_NAMES = {
    NodePhase.READY: "Ready",
    NodePhase.NOT_READY: "NotReady",
}


@dataclass
class ValidateResult:
    """Outcome of a validation check."""

    passed: bool
    reason: str = ""
    message: str = ""


_ALLOCATED_STATUSES = frozenset(
    {TaskStatus.BOUND, TaskStatus.BINDING, TaskStatus.RUNNING, TaskStatus.ALLOCATED}
)


def allocated_status(status: TaskStatus) -> bool:
    """Return True if a task in this status holds resources on a node."""
    return status in _ALLOCATED_STATUSES


def validate_status_update(old_status: TaskStatus, new_status: TaskStatus) -> None:
    """Check that a status transition is allowed; every transition currently is."""
    return None


def merge_errors(*errors: BaseException | None) -> SchedulingError | None:
    """Merge the given errors into one, ignoring None; return None if there are none."""
    found = [e for e in errors if e is not None]
    if not found:
        return None
    parts = [f"{i}: {e}" for i, e in enumerate(found, start=1)]
    return SchedulingError("errors:  " + ", ".join(parts))