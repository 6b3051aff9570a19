"""Queues that pod groups are scheduled from."""

from __future__ import annotations

from dataclasses import dataclass, field

from batchsched.resource import Quantity

QUEUE_VERSION_V1ALPHA1 = "v1alpha1"
QUEUE_VERSION_V1ALPHA2 = "v1alpha2"


@dataclass
class QueueSpec:
    """Desired behaviour of a queue."""

    weight: int = 0
    capability: dict[str, Quantity] = field(default_factory=dict)


@dataclass
class QueueStatus:
    """Counts of pod groups in a queue by phase."""

    unknown: int = 0
    pending: int = 0
    running: int = 0


@dataclass
class Queue:
    """A queue of pod groups."""

    name: str
    spec: QueueSpec = field(default_factory=QueueSpec)
    status: QueueStatus = field(default_factory=QueueStatus)
    version: str = ""


@dataclass
class QueueInfo:
    """Scheduler view of a queue."""

    uid: str
    name: str
    weight: int = 0
    queue: Queue | None = None

    def clone(self) -> QueueInfo:
        return QueueInfo(uid=self.uid, name=self.name, weight=self.weight, queue=self.queue)


def new_queue_info(queue: Queue) -> QueueInfo:
    """Build the scheduler view of a queue; its id is its name."""
    return QueueInfo(uid=queue.name, name=queue.name, weight=queue.spec.weight, queue=queue)