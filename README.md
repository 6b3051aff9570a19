# batchsched

`batchsched` is the data model for a batch (gang) scheduler. It tracks
resources, tasks, jobs, queues and nodes, and gives you a snapshot of a
cluster that you can inspect and reason about. It has no dependencies outside
the standard library.

## Modules

- **`batchsched.types`**: `TaskStatus` (Pending, Allocated, Pipelined,
  Binding, Bound, Running, Releasing, Succeeded, Failed, Unknown),
  `NodePhase` (Ready, NotReady), `ValidateResult`, the base exception
  `SchedulingError`, `allocated_status(status)` (true for Bound, Binding,
  Running and Allocated), `validate_status_update` (currently allows every
  transition) and `merge_errors(*errors)`. `merge_errors` folds any
  non-`None` errors into one `SchedulingError` and returns `None` if there
  are none.
- **`batchsched.resource`**: `Resource` holds milli-CPU, memory, named scalar
  resources (GPUs, hugepages, extended resources) and a maximum task count.
  The methods `add`, `sub`, `set_max_resource`, `fit_delta` and `multi`
  change the resource in place and return it. `less` and `less_equal`
  compare two resources, with small tolerances in `less_equal`. The module
  also has `diff`, `get`, `resource_names`, `is_empty`, `is_zero`,
  `add_scalar` and `set_scalar`.
  `new_resource(mapping)` builds a resource from quantities such as
  `"1000m"`, `"1G"` or `"4Gi"`, which are parsed exactly by
  `parse_quantity`. `is_scalar_resource_name` decides which other names
  count as scalar resources. `resource_min` returns the per-dimension
  minimum of two resources. `share(left, right)` divides and gives 0 or 1
  when the divisor is zero.
- **`batchsched.pods`**: the `Pod`, `Container` and `Node` dataclasses and
  `PodPhase`, with these helpers:
  - `pod_key`: the `namespace/name` key of a pod.
  - `get_task_status`: maps a pod's phase, node and deletion state to a
    `TaskStatus`.
  - `get_pod_resource_without_init_containers`: the sum of the requests of
    the regular containers.
  - `get_pod_resource_request`: that sum, widened by the largest
    init-container request.
- **`batchsched.podgroup`**: the `PodGroup` class with its spec, status and
  conditions, and `PodDisruptionBudget`. `PodGroup.to_dict()` and
  `PodGroup.from_dict(data, version)` convert to and from the camel-case
  wire form and leave out empty fields.
- **`batchsched.queue`**: `Queue`, `QueueSpec`, `QueueStatus`, and
  `QueueInfo` built by `new_queue_info` (the queue's id is its name).
- **`batchsched.job`**: `TaskInfo`, built from a pod with `new_task_info`.
  The job comes from the pod's `scheduling.k8s.io/group-name` annotation.
  `JobInfo` indexes its tasks by id and by status and keeps the total
  request and the allocated resources up to date. It also provides:
  - `get_tasks`, `update_task_status`, `delete_task_info` and `clone`.
  - The counters `ready_task_num`, `waiting_task_num` and `valid_task_num`.
  - The gang checks `ready` and `pipelined`, measured against
    `min_available`.
  - `fit_error()`, a summary such as `0/2 nodes are available, 1 insufficient cpu.`
  - `job_terminated` is true once a job has no pod group, no budget and no
    tasks.
- **`batchsched.node`**: `NodeInfo`, built by `new_node_info`, tracks the
  idle, used and releasing resources of a node as tasks are added, removed
  or updated. The node is NotReady while it has no node object
  ("UnInitialized"), or while its usage exceeds what it can allocate
  ("OutOfSync").
- **`batchsched.cluster`**: `ClusterInfo` gathers jobs, nodes and queues and
  prints a readable dump with `str()`.

## Installation

```
pip install batchsched
```

## Example

```python
from batchsched.pods import Container, Node, Pod, PodPhase
from batchsched.node import new_node_info
from batchsched.job import JobInfo, new_task_info

node = Node(
    name="n1",
    allocatable={"cpu": "8000m", "memory": "10G"},
    capacity={"cpu": "8000m", "memory": "10G"},
)
info = new_node_info(node)

pod = Pod(
    uid="c1-p1",
    name="p1",
    namespace="c1",
    node_name="n1",
    phase=PodPhase.RUNNING,
    containers=[Container(requests={"cpu": "1000m", "memory": "1G"})],
)
info.add_task(new_task_info(pod))
print(info.idle)             # cpu 7000.00, memory 9000000000.00

job = JobInfo("job-1")
job.add_task_info(new_task_info(pod))
print(job.ready_task_num())  # 1
```

## Errors

Failures raise `SchedulingError`. Examples:

- adding a task to a node whose idle resources are too small;
- adding a task that is already on the node, or that belongs to another
  node;
- removing a task the node does not hold;
- deleting a task the job does not know.

`Resource.sub` raises `InsufficientResourceError`, a subclass of
`SchedulingError`, when asked to subtract more than is there.
`Resource.is_zero` raises `KeyError` for a scalar resource it does not hold.

## What it does not do

This package is the data model only. It does not include:

- the scheduling loop, such as allocation, backfill, preemption or reclaim;
- plugins;
- a cache that watches a live cluster;
- a command-line tool.

You build the pods, nodes, pod groups and queues yourself and feed them in.

## Running the tests

```
pip install -e ".[test]"
pytest
```