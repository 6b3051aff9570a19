"""Tasks and jobs: the scheduler's view of pods and their groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from batchsched.podgroup import PodDisruptionBudget, PodGroup
from batchsched.pods import (
    Pod,
    get_pod_resource_request,
    get_pod_resource_without_init_containers,
    get_task_status,
)
from batchsched.resource import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    Resource,
    empty_resource,
)
from batchsched.types import (
    SchedulingError,
    TaskStatus,
    allocated_status,
    validate_status_update,
)

GROUP_NAME_ANNOTATION_KEY = "scheduling.k8s.io/group-name"


def _job_id(pod: Pod) -> str:
    group_name = pod.annotations.get(GROUP_NAME_ANNOTATION_KEY, "")
    if group_name:
        # Pod and pod group always share a namespace.
        return f"{pod.namespace}/{group_name}"
    return ""


@dataclass
class TaskInfo:
    """Scheduler view of one pod."""

    uid: str
    job: str = ""
    name: str = ""
    namespace: str = ""
    # Resource used while running.
    resreq: Resource = field(default_factory=empty_resource)
    # Resource needed to launch, including init containers.
    init_resreq: Resource = field(default_factory=empty_resource)
    node_name: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: int = 1
    volume_ready: bool = False
    pod: Pod | None = None

    def clone(self) -> TaskInfo:
        return TaskInfo(
            uid=self.uid,
            job=self.job,
            name=self.name,
            namespace=self.namespace,
            resreq=self.resreq.clone(),
            init_resreq=self.init_resreq.clone(),
            node_name=self.node_name,
            status=self.status,
            priority=self.priority,
            volume_ready=self.volume_ready,
            pod=self.pod,
        )

    def __str__(self) -> str:
        return (
            f"Task ({self.uid}:{self.namespace}/{self.name}): job {self.job}, "
            f"status {self.status}, pri {self.priority}, resreq {self.resreq}"
        )


def new_task_info(pod: Pod) -> TaskInfo:
    """Build the task for a pod."""
    return TaskInfo(
        uid=pod.uid,
        job=_job_id(pod),
        name=pod.name,
        namespace=pod.namespace,
        node_name=pod.node_name,
        status=get_task_status(pod),
        priority=pod.priority if pod.priority is not None else 1,
        pod=pod,
        resreq=get_pod_resource_without_init_containers(pod),
        init_resreq=get_pod_resource_request(pod),
    )


class JobInfo:
    """Scheduler view of a job: its tasks indexed by id and by status."""

    def __init__(self, uid: str, *tasks: TaskInfo) -> None:
        self.uid = uid
        self.name = ""
        self.namespace = ""
        self.queue = ""
        self.priority = 0
        self.node_selector: dict[str, str] = {}
        self.min_available = 0
        self.nodes_fit_delta: dict[str, Resource] = {}
        self.task_status_index: dict[TaskStatus, dict[str, TaskInfo]] = {}
        self.tasks: dict[str, TaskInfo] = {}
        self.allocated = empty_resource()
        self.total_request = empty_resource()
        self.creation_timestamp: datetime | None = None
        self.pod_group: PodGroup | None = None
        self.pdb: PodDisruptionBudget | None = None
        for task in tasks:
            self.add_task_info(task)

    def set_pod_group(self, pod_group: PodGroup) -> None:
        self.name = pod_group.name
        self.namespace = pod_group.namespace
        self.min_available = pod_group.spec.min_member
        self.queue = pod_group.spec.queue
        self.creation_timestamp = pod_group.creation_timestamp
        self.pod_group = pod_group

    def unset_pod_group(self) -> None:
        self.pod_group = None

    def set_pdb(self, pdb: PodDisruptionBudget) -> None:
        self.name = pdb.name
        self.min_available = pdb.min_available
        self.namespace = pdb.namespace
        self.creation_timestamp = pdb.creation_timestamp
        self.pdb = pdb

    def unset_pdb(self) -> None:
        self.pdb = None

    def get_tasks(self, *statuses: TaskStatus) -> list[TaskInfo]:
        """Return copies of the tasks in any of the given statuses."""
        return [
            task.clone()
            for status in statuses
            for task in self.task_status_index.get(status, {}).values()
        ]

    def add_task_info(self, task: TaskInfo) -> None:
        self.tasks[task.uid] = task
        self.task_status_index.setdefault(task.status, {})[task.uid] = task
        self.total_request.add(task.resreq)
        if allocated_status(task.status):
            self.allocated.add(task.resreq)

    def update_task_status(self, task: TaskInfo, status: TaskStatus) -> None:
        """Move a task to a new status; on error job and task are unchanged."""
        validate_status_update(task.status, status)
        if task.uid in self.tasks:
            self.delete_task_info(task)
        task.status = status
        self.add_task_info(task)

    def delete_task_info(self, task: TaskInfo) -> None:
        """Remove a task; raise SchedulingError if it is not in this job."""
        stored = self.tasks.get(task.uid)
        if stored is None:
            raise SchedulingError(
                f"failed to find task <{task.namespace}/{task.name}> in job "
                f"<{self.namespace}/{self.name}>"
            )
        self.total_request.sub(stored.resreq)
        if allocated_status(stored.status):
            self.allocated.sub(stored.resreq)
        del self.tasks[stored.uid]
        indexed = self.task_status_index.get(stored.status)
        if indexed is not None:
            indexed.pop(stored.uid, None)
            if not indexed:
                del self.task_status_index[stored.status]

    def clone(self) -> JobInfo:
        info = JobInfo(self.uid)
        info.name = self.name
        info.namespace = self.namespace
        info.queue = self.queue
        info.priority = self.priority
        info.min_available = self.min_available
        info.node_selector = dict(self.node_selector)
        info.pdb = self.pdb
        info.pod_group = self.pod_group
        info.creation_timestamp = self.creation_timestamp
        for task in self.tasks.values():
            info.add_task_info(task.clone())
        return info

    def __str__(self) -> str:
        tasks = "".join(f"\n\t {i}: {task}" for i, task in enumerate(self.tasks.values()))
        return (
            f"Job ({self.uid}): namespace {self.namespace} ({self.queue}), "
            f"name {self.name}, minAvailable {self.min_available}, "
            f"podGroup {self.pod_group!r}" + tasks
        )

    def fit_error(self) -> str:
        """Explain why the job's task did not fit on the nodes it was tried on."""
        if not self.nodes_fit_delta:
            return "0 nodes are available"
        reasons: dict[str, int] = {}
        for delta in self.nodes_fit_delta.values():
            if delta.get(RESOURCE_CPU) < 0:
                reasons["cpu"] = reasons.get("cpu", 0) + 1
            if delta.get(RESOURCE_MEMORY) < 0:
                reasons["memory"] = reasons.get("memory", 0) + 1
            for name, quantity in (delta.scalar_resources or {}).items():
                if quantity < 0:
                    reasons[name] = reasons.get(name, 0) + 1
        histogram = sorted(f"{count} insufficient {name}" for name, count in reasons.items())
        return (
            f"0/{len(self.nodes_fit_delta)} nodes are available, {', '.join(histogram)}."
        )

    def _count(self, wanted) -> int:
        return sum(
            len(tasks) for status, tasks in self.task_status_index.items() if wanted(status)
        )

    def ready_task_num(self) -> int:
        return self._count(lambda s: allocated_status(s) or s == TaskStatus.SUCCEEDED)

    def waiting_task_num(self) -> int:
        return self._count(lambda s: s == TaskStatus.PIPELINED)

    def valid_task_num(self) -> int:
        return self._count(
            lambda s: allocated_status(s)
            or s in (TaskStatus.SUCCEEDED, TaskStatus.PIPELINED, TaskStatus.PENDING)
        )

    def ready(self) -> bool:
        return self.ready_task_num() >= self.min_available

    def pipelined(self) -> bool:
        return self.waiting_task_num() + self.ready_task_num() >= self.min_available


def job_terminated(job: JobInfo) -> bool:
    """True once a job has no pod group, no budget and no tasks left."""
    return job.pod_group is None and job.pdb is None and not job.tasks