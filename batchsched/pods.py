"""Pod and node objects and per-pod resource helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from batchsched.resource import Quantity, Resource, empty_resource, new_resource
from batchsched.types import TaskStatus


class PodPhase(str, Enum):
    """Lifecycle phase of a pod."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass
class Container:
    """A container with its resource requests."""

    name: str = ""
    requests: dict[str, Quantity] = field(default_factory=dict)


@dataclass
class Pod:
    """A pod: one schedulable unit of work."""

    name: str
    namespace: str = ""
    uid: str = ""
    phase: PodPhase = PodPhase.PENDING
    node_name: str = ""
    containers: list[Container] = field(default_factory=list)
    init_containers: list[Container] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    priority: int | None = None
    deletion_timestamp: datetime | None = None


@dataclass
class Node:
    """A cluster node with its capacity and allocatable resources."""

    name: str
    allocatable: dict[str, Quantity] = field(default_factory=dict)
    capacity: dict[str, Quantity] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    taints: list[Any] = field(default_factory=list)


def pod_key(pod: Pod) -> str:
    """Return the 'namespace/name' key of a pod, or just the name without a namespace."""
    return f"{pod.namespace}/{pod.name}" if pod.namespace else pod.name


def get_task_status(pod: Pod) -> TaskStatus:
    """Derive the scheduler task status from a pod's phase and state."""
    if pod.phase == PodPhase.RUNNING:
        if pod.deletion_timestamp is not None:
            return TaskStatus.RELEASING
        return TaskStatus.RUNNING
    if pod.phase == PodPhase.PENDING:
        if pod.deletion_timestamp is not None:
            return TaskStatus.RELEASING
        return TaskStatus.BOUND if pod.node_name else TaskStatus.PENDING
    if pod.phase == PodPhase.SUCCEEDED:
        return TaskStatus.SUCCEEDED
    if pod.phase == PodPhase.FAILED:
        return TaskStatus.FAILED
    return TaskStatus.UNKNOWN


def get_pod_resource_without_init_containers(pod: Pod) -> Resource:
    """Sum the requests of a pod's regular containers."""
    result = empty_resource()
    for container in pod.containers:
        result.add(new_resource(container.requests))
    return result


def get_pod_resource_request(pod: Pod) -> Resource:
    """Return the pod's request, widened by any larger init-container request.

    Regular containers run together, so their requests are summed; init
    containers run one at a time, so each only raises the per-dimension max.
    """
    result = get_pod_resource_without_init_containers(pod)
    for container in pod.init_containers:
        result.set_max_resource(new_resource(container.requests))
    return result