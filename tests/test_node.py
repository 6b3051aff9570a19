from datetime import datetime

import pytest

from batchsched.job import new_task_info
from batchsched.node import NodeInfo, NodeState, new_node_info
from batchsched.pods import Container, Node, Pod, PodPhase
from batchsched.resource import InsufficientResourceError, empty_resource, new_resource
from batchsched.types import NodePhase, SchedulingError, TaskStatus


def build_resource_list(cpu, memory):
    return {"cpu": cpu, "memory": memory}


def build_resource(cpu, memory):
    return new_resource(build_resource_list(cpu, memory))


def build_node(name, alloc):
    return Node(name=name, allocatable=dict(alloc), capacity=dict(alloc))


def build_pod(ns, name, node_name, phase, req, deletion_timestamp=None):
    return Pod(
        name=name,
        namespace=ns,
        uid=f"{ns}-{name}",
        phase=phase,
        node_name=node_name,
        containers=[Container(requests=dict(req))],
        deletion_timestamp=deletion_timestamp,
    )


def test_add_two_running_pods():
    node = build_node("n1", build_resource_list("8000m", "10G"))
    pod1 = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    pod2 = build_pod("c1", "p2", "n1", PodPhase.RUNNING, build_resource_list("2000m", "2G"))

    ni = new_node_info(node)
    ni.add_task(new_task_info(pod1))
    ni.add_task(new_task_info(pod2))

    expected = NodeInfo(
        name="n1",
        node=node,
        idle=build_resource("5000m", "7G"),
        used=build_resource("3000m", "3G"),
        releasing=empty_resource(),
        allocatable=build_resource("8000m", "10G"),
        capability=build_resource("8000m", "10G"),
        state=NodeState(phase=NodePhase.READY),
        tasks={"c1/p1": new_task_info(pod1), "c1/p2": new_task_info(pod2)},
    )
    assert ni == expected


def test_add_unknown_pod_that_does_not_fit():
    node = build_node("n2", build_resource_list("2000m", "1G"))
    pod = build_pod("c2", "p1", "n2", PodPhase.UNKNOWN, build_resource_list("1000m", "2G"))

    ni = new_node_info(node)
    with pytest.raises(SchedulingError):
        ni.add_task(new_task_info(pod))

    expected = NodeInfo(
        name="n2",
        node=node,
        idle=build_resource("2000m", "1G"),
        used=empty_resource(),
        releasing=empty_resource(),
        allocatable=build_resource("2000m", "1G"),
        capability=build_resource("2000m", "1G"),
        state=NodeState(phase=NodePhase.READY),
        tasks={},
    )
    assert ni == expected


def test_remove_pod():
    node = build_node("n1", build_resource_list("8000m", "10G"))
    pod1 = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    pod2 = build_pod("c1", "p2", "n1", PodPhase.RUNNING, build_resource_list("2000m", "2G"))
    pod3 = build_pod("c1", "p3", "n1", PodPhase.RUNNING, build_resource_list("3000m", "3G"))

    ni = new_node_info(node)
    for pod in (pod1, pod2, pod3):
        ni.add_task(new_task_info(pod))
    ni.remove_task(new_task_info(pod2))

    expected = NodeInfo(
        name="n1",
        node=node,
        idle=build_resource("4000m", "6G"),
        used=build_resource("4000m", "4G"),
        releasing=empty_resource(),
        allocatable=build_resource("8000m", "10G"),
        capability=build_resource("8000m", "10G"),
        state=NodeState(phase=NodePhase.READY),
        tasks={"c1/p1": new_task_info(pod1), "c1/p3": new_task_info(pod3)},
    )
    assert ni == expected


def test_uninitialized_node():
    ni = new_node_info(None)
    assert ni.state == NodeState(phase=NodePhase.NOT_READY, reason="UnInitialized")
    assert not ni.ready()
    assert ni.tasks == {}


def test_add_task_without_node_object_keeps_resources():
    ni = new_node_info(None)
    pod = build_pod("c1", "p1", "", PodPhase.PENDING, build_resource_list("1000m", "1G"))
    ni.add_task(new_task_info(pod))
    assert list(ni.tasks) == ["c1/p1"]
    assert ni.used == empty_resource()
    assert ni.idle == empty_resource()


def test_add_task_on_different_node_fails():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod = build_pod("c1", "p1", "n2", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    with pytest.raises(SchedulingError, match="already on different node"):
        ni.add_task(new_task_info(pod))
    assert ni.tasks == {}


def test_add_task_twice_fails():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    ni.add_task(new_task_info(pod))
    with pytest.raises(SchedulingError, match="already on node"):
        ni.add_task(new_task_info(pod))
    assert ni.used == build_resource("1000m", "1G")


def test_add_task_sets_node_name():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod = build_pod("c1", "p1", "", PodPhase.PENDING, build_resource_list("1000m", "1G"))
    task = new_task_info(pod)
    ni.add_task(task)
    assert task.node_name == "n1"
    assert ni.tasks["c1/p1"].node_name == "n1"
    assert ni.tasks["c1/p1"] is not task


def test_remove_missing_task_fails():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    with pytest.raises(SchedulingError, match="failed to find task"):
        ni.remove_task(new_task_info(pod))


def test_releasing_then_pipelined_accounting():
    ni = new_node_info(build_node("n1", build_resource_list("4000m", "4G")))
    releasing_pod = build_pod(
        "c1",
        "p1",
        "n1",
        PodPhase.RUNNING,
        build_resource_list("1000m", "1G"),
        deletion_timestamp=datetime(2020, 1, 1),
    )
    releasing = new_task_info(releasing_pod)
    assert releasing.status == TaskStatus.RELEASING
    ni.add_task(releasing)
    assert ni.releasing == build_resource("1000m", "1G")
    assert ni.idle == build_resource("3000m", "3G")

    pipelined = new_task_info(
        build_pod("c1", "p2", "", PodPhase.PENDING, build_resource_list("1000m", "1G"))
    )
    pipelined.status = TaskStatus.PIPELINED
    ni.add_task(pipelined)
    assert ni.releasing.milli_cpu == 0
    assert ni.releasing.memory == 0
    assert ni.used == build_resource("2000m", "2G")
    assert ni.idle == build_resource("3000m", "3G")

    ni.remove_task(pipelined)
    assert ni.releasing == build_resource("1000m", "1G")
    ni.remove_task(releasing)
    assert ni.releasing.milli_cpu == 0
    assert ni.idle == build_resource("4000m", "4G")


def test_pipelined_without_releasing_resource_fails():
    ni = new_node_info(build_node("n1", build_resource_list("4000m", "4G")))
    task = new_task_info(
        build_pod("c1", "p1", "", PodPhase.PENDING, build_resource_list("1000m", "1G"))
    )
    task.status = TaskStatus.PIPELINED
    with pytest.raises(InsufficientResourceError):
        ni.add_task(task)
    assert ni.tasks == {}


def test_update_task_changes_stored_status():
    ni = new_node_info(build_node("n1", build_resource_list("4000m", "4G")))
    task = new_task_info(
        build_pod("c1", "p1", "n1", PodPhase.PENDING, build_resource_list("1000m", "1G"))
    )
    ni.add_task(task)
    task.status = TaskStatus.RUNNING
    ni.update_task(task)
    assert ni.tasks["c1/p1"].status == TaskStatus.RUNNING
    assert ni.used == build_resource("1000m", "1G")
    assert ni.idle == build_resource("3000m", "3G")


def test_set_node_recomputes_resources():
    ni = new_node_info(build_node("n1", build_resource_list("4000m", "4G")))
    pod = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    ni.add_task(new_task_info(pod))

    bigger = build_node("n1", build_resource_list("8000m", "10G"))
    ni.set_node(bigger)
    assert ni.ready()
    assert ni.node is bigger
    assert ni.allocatable == build_resource("8000m", "10G")
    assert ni.idle == build_resource("7000m", "9G")
    assert ni.used == build_resource("1000m", "1G")


def test_set_node_out_of_sync():
    original = build_node("n1", build_resource_list("4000m", "4G"))
    ni = new_node_info(original)
    pod = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("3000m", "3G"))
    ni.add_task(new_task_info(pod))

    ni.set_node(build_node("n1", build_resource_list("1000m", "1G")))
    assert ni.state == NodeState(phase=NodePhase.NOT_READY, reason="OutOfSync")
    assert ni.node is original
    assert ni.allocatable == build_resource("4000m", "4G")


def test_clone_is_equal_and_independent():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    ni.add_task(new_task_info(pod))

    copy = ni.clone()
    assert copy == ni
    copy.remove_task(new_task_info(pod))
    assert "c1/p1" in ni.tasks
    assert ni.used == build_resource("1000m", "1G")


def test_pods_lists_task_pods():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    pod1 = build_pod("c1", "p1", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    pod2 = build_pod("c1", "p2", "n1", PodPhase.RUNNING, build_resource_list("1000m", "1G"))
    ni.add_task(new_task_info(pod1))
    ni.add_task(new_task_info(pod2))
    assert ni.pods() == [pod1, pod2]


def test_str_mentions_name_and_state():
    ni = new_node_info(build_node("n1", build_resource_list("8000m", "10G")))
    text = str(ni)
    assert text.startswith("Node (n1): idle <")
    assert "phase Ready" in text