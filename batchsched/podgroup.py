"""Pod groups (gang-scheduled sets of pods) and disruption budgets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

POD_GROUP_VERSION_V1ALPHA1 = "v1alpha1"
POD_GROUP_VERSION_V1ALPHA2 = "v1alpha2"


class PodGroupPhase(str, Enum):
    """Phase of a pod group."""

    PENDING = "Pending"
    RUNNING = "Running"
    UNKNOWN = "Unknown"


class PodGroupConditionType(str, Enum):
    """Kind of a pod group condition."""

    UNSCHEDULABLE = "Unschedulable"


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_time(text: str | None) -> datetime | None:
    if not text:
        return None
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def _omit_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, "", 0, [], {})}


@dataclass
class PodGroupCondition:
    """Details of the current state of a pod group."""

    type: PodGroupConditionType | str = ""
    status: str = ""
    transition_id: str = ""
    last_transition_time: datetime | None = None
    reason: str = ""
    message: str = ""

    def _to_dict(self) -> dict[str, Any]:
        return _omit_empty(
            {
                "type": str(getattr(self.type, "value", self.type)),
                "status": self.status,
                "transitionID": self.transition_id,
                "lastTransitionTime": _format_time(self.last_transition_time)
                if self.last_transition_time is not None
                else None,
                "reason": self.reason,
                "message": self.message,
            }
        )

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any]) -> PodGroupCondition:
        raw_type = data.get("type", "")
        try:
            cond_type: PodGroupConditionType | str = PodGroupConditionType(raw_type)
        except ValueError:
            cond_type = raw_type
        return cls(
            type=cond_type,
            status=data.get("status", ""),
            transition_id=data.get("transitionID", ""),
            last_transition_time=_parse_time(data.get("lastTransitionTime")),
            reason=data.get("reason", ""),
            message=data.get("message", ""),
        )


@dataclass
class PodGroupSpec:
    """Desired behaviour of a pod group."""

    min_member: int = 0
    queue: str = ""
    priority_class_name: str = ""


@dataclass
class PodGroupStatus:
    """Observed state of a pod group."""

    phase: PodGroupPhase | None = None
    conditions: list[PodGroupCondition] = field(default_factory=list)
    running: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass
class PodGroup:
    """A collection of pods scheduled together."""

    name: str
    namespace: str = ""
    spec: PodGroupSpec = field(default_factory=PodGroupSpec)
    status: PodGroupStatus = field(default_factory=PodGroupStatus)
    creation_timestamp: datetime | None = None
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the versioned wire form, leaving out empty fields."""
        metadata = _omit_empty(
            {
                "name": self.name,
                "namespace": self.namespace,
                "creationTimestamp": _format_time(self.creation_timestamp)
                if self.creation_timestamp is not None
                else None,
            }
        )
        spec = _omit_empty(
            {
                "minMember": self.spec.min_member,
                "queue": self.spec.queue,
                "priorityClassName": self.spec.priority_class_name,
            }
        )
        status = _omit_empty(
            {
                "phase": self.status.phase.value if self.status.phase else None,
                "conditions": [c._to_dict() for c in self.status.conditions],
                "running": self.status.running,
                "succeeded": self.status.succeeded,
                "failed": self.status.failed,
            }
        )
        return {"metadata": metadata, "spec": spec, "status": status}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], version: str = "") -> PodGroup:
        """Build a pod group from its wire form, tagging it with the given version."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        phase = status.get("phase")
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            creation_timestamp=_parse_time(metadata.get("creationTimestamp")),
            spec=PodGroupSpec(
                min_member=int(spec.get("minMember", 0)),
                queue=spec.get("queue", ""),
                priority_class_name=spec.get("priorityClassName", ""),
            ),
            status=PodGroupStatus(
                phase=PodGroupPhase(phase) if phase else None,
                conditions=[
                    PodGroupCondition._from_dict(c) for c in status.get("conditions") or []
                ],
                running=int(status.get("running", 0)),
                succeeded=int(status.get("succeeded", 0)),
                failed=int(status.get("failed", 0)),
            ),
            version=version,
        )


@dataclass
class PodDisruptionBudget:
    """A disruption budget that can stand in for a pod group."""

    name: str
    namespace: str = ""
    min_available: int = 0
    selector: dict[str, str] = field(default_factory=dict)
    creation_timestamp: datetime | None = None