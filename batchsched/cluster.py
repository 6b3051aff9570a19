"""Snapshot of the whole cluster as seen by the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field

from batchsched.job import JobInfo
from batchsched.node import NodeInfo
from batchsched.queue import QueueInfo


@dataclass
class ClusterInfo:
    """Jobs, nodes and queues taken from the cache at one moment."""

    jobs: dict[str, JobInfo] = field(default_factory=dict)
    nodes: dict[str, NodeInfo] = field(default_factory=dict)
    queues: dict[str, QueueInfo] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = ["Cache:\n"]

        if self.nodes:
            lines.append("Nodes:\n")
            for node in self.nodes.values():
                lines.append(
                    f"\t {node.name}: idle({node.idle}) used({node.used}) "
                    f"allocatable({node.allocatable}) pods({len(node.tasks)})\n"
                )
                lines.extend(
                    f"\t\t {i}: {task}\n" for i, task in enumerate(node.tasks.values())
                )

        if self.jobs:
            lines.append("Jobs:\n")
            for job in self.jobs.values():
                lines.append(
                    f"\t Job({job.uid}) name({job.name}) minAvailable({job.min_available})\n"
                )
                lines.extend(
                    f"\t\t {i}: {task}\n" for i, task in enumerate(job.tasks.values())
                )

        return "".join(lines)