"""Data model for batch scheduling: resources, pods, tasks, jobs, pod groups, queues, nodes and cluster snapshots."""

__version__ = "0.5.0"

__all__ = ["cluster", "job", "node", "podgroup", "pods", "queue", "resource", "types"]