"""Per-node aggregated resource accounting."""

from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass, field

from batchsched.job import TaskInfo
from batchsched.pods import Node, Pod, pod_key
from batchsched.resource import Resource, empty_resource, new_resource
from batchsched.types import NodePhase, SchedulingError, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class NodeState:
    """Current scheduling state of a node."""

    phase: NodePhase
    reason: str = ""


def _uninitialized_state() -> NodeState:
    return NodeState(phase=NodePhase.NOT_READY, reason="UnInitialized")


@dataclass
class NodeInfo:
    """A node together with the tasks placed on it and their resource usage."""

    name: str = ""
    node: Node | None = None
    state: NodeState = field(default_factory=_uninitialized_state)
    # Resource held by tasks that are being deleted.
    releasing: Resource = field(default_factory=empty_resource)
    idle: Resource = field(default_factory=empty_resource)
    # Resource used by running and terminating tasks.
    used: Resource = field(default_factory=empty_resource)
    allocatable: Resource = field(default_factory=empty_resource)
    capability: Resource = field(default_factory=empty_resource)
    tasks: dict[str, TaskInfo] = field(default_factory=dict)

    def clone(self) -> NodeInfo:
        result = new_node_info(self.node)
        for task in self.tasks.values():
            # A task that no longer fits is dropped from the copy.
            with suppress(SchedulingError):
                result.add_task(task)
        return result

    def ready(self) -> bool:
        """True if the node can take new tasks."""
        return self.state.phase == NodePhase.READY

    def _set_node_state(self, node: Node | None) -> None:
        if node is None:
            self.state = _uninitialized_state()
            return
        if not self.used.less_equal(new_resource(node.allocatable)):
            self.state = NodeState(phase=NodePhase.NOT_READY, reason="OutOfSync")
            return
        # Node conditions are ignored because of taints and tolerations.
        self.state = NodeState(phase=NodePhase.READY, reason="")

    def set_node(self, node: Node) -> None:
        """Attach a node object and recompute resources from the placed tasks."""
        self._set_node_state(node)
        if not self.ready():
            logger.warning(
                "Failed to set node info, phase: %s, reason: %s",
                self.state.phase,
                self.state.reason,
            )
            return

        self.name = node.name
        self.node = node
        self.allocatable = new_resource(node.allocatable)
        self.capability = new_resource(node.capacity)
        self.idle = new_resource(node.allocatable)
        self.used = empty_resource()

        for task in self.tasks.values():
            if task.status == TaskStatus.RELEASING:
                self.releasing.add(task.resreq)
            self.idle.sub(task.resreq)
            self.used.add(task.resreq)

    def _allocate_idle_resource(self, task: TaskInfo) -> None:
        if not task.resreq.less_equal(self.idle):
            raise SchedulingError("Selected node NotReady")
        self.idle.sub(task.resreq)

    def add_task(self, task: TaskInfo) -> None:
        """Place a task on this node; on error task and node are unchanged."""
        if task.node_name and self.name and task.node_name != self.name:
            raise SchedulingError(
                f"task <{task.namespace}/{task.name}> already on different node "
                f"<{task.node_name}>"
            )

        key = pod_key(task.pod)
        if key in self.tasks:
            raise SchedulingError(
                f"task <{task.namespace}/{task.name}> already on node <{self.name}>"
            )

        # Keep a private copy so later status changes do not skew accounting.
        stored = task.clone()

        if self.node is not None:
            if stored.status == TaskStatus.RELEASING:
                self._allocate_idle_resource(stored)
                self.releasing.add(stored.resreq)
            elif stored.status == TaskStatus.PIPELINED:
                self.releasing.sub(stored.resreq)
            else:
                self._allocate_idle_resource(stored)
            self.used.add(stored.resreq)

        task.node_name = self.name
        stored.node_name = self.name
        self.tasks[key] = stored

    def remove_task(self, task: TaskInfo) -> None:
        """Take a task off this node; raise SchedulingError if it is not here."""
        key = pod_key(task.pod)
        stored = self.tasks.get(key)
        if stored is None:
            raise SchedulingError(
                f"failed to find task <{task.namespace}/{task.name}> on host <{self.name}>"
            )

        if self.node is not None:
            if stored.status == TaskStatus.RELEASING:
                self.releasing.sub(stored.resreq)
                self.idle.add(stored.resreq)
            elif stored.status == TaskStatus.PIPELINED:
                self.releasing.add(stored.resreq)
            else:
                self.idle.add(stored.resreq)
            self.used.sub(stored.resreq)

        del self.tasks[key]

    def update_task(self, task: TaskInfo) -> None:
        """Replace the stored copy of a task with the given one."""
        self.remove_task(task)
        # Adding cannot fail once removal succeeded; any error here is a bug.
        self.add_task(task)

    def __str__(self) -> str:
        tasks = "".join(f"\n\t {i}: {task}" for i, task in enumerate(self.tasks.values()))
        taints = self.node.taints if self.node is not None else []
        return (
            f"Node ({self.name}): idle <{self.idle}>, used <{self.used}>, "
            f"releasing <{self.releasing}>, state <phase {self.state.phase}, "
            f"reaseon {self.state.reason}>, taints <{taints}>{tasks}"
        )

    def pods(self) -> list[Pod]:
        """Return the pods of all tasks placed on this node."""
        return [task.pod for task in self.tasks.values()]


def new_node_info(node: Node | None) -> NodeInfo:
    """Build the accounting view of a node, or an uninitialised one for None."""
    if node is None:
        info = NodeInfo()
    else:
        info = NodeInfo(
            name=node.name,
            node=node,
            idle=new_resource(node.allocatable),
            allocatable=new_resource(node.allocatable),
            capability=new_resource(node.capacity),
        )
    info._set_node_state(node)
    return info