"""Resource vectors: CPU, memory and scalar resources."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping, Union

from batchsched.types import SchedulingError

RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
RESOURCE_PODS = "pods"

GPU_RESOURCE_NAME = "nvidia.com/gpu"

MIN_MILLI_CPU = 10.0
MIN_MILLI_SCALAR_RESOURCES = 10.0
MIN_MEMORY = 10.0 * 1024 * 1024

Quantity = Union[str, int, float, Fraction]

_SUFFIXES = {
    "n": Fraction(1, 10**9),
    "u": Fraction(1, 10**6),
    "m": Fraction(1, 1000),
    "": Fraction(1),
    "k": Fraction(10**3),
    "M": Fraction(10**6),
    "G": Fraction(10**9),
    "T": Fraction(10**12),
    "P": Fraction(10**15),
    "E": Fraction(10**18),
    "Ki": Fraction(2**10),
    "Mi": Fraction(2**20),
    "Gi": Fraction(2**30),
    "Ti": Fraction(2**40),
    "Pi": Fraction(2**50),
    "Ei": Fraction(2**60),
}

_QUANTITY_RE = re.compile(
    r"^(?P<num>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?:(?P<exp>[eE][+-]?\d+)|(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E)?)$"
)
_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_DNS_SUBDOMAIN_RE = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)


class InsufficientResourceError(SchedulingError):
    """Raised when subtracting more resource than is available."""


def parse_quantity(value: Quantity) -> Fraction:
    """Parse a quantity such as '500m', '1G' or '4Gi' into an exact number."""
    if isinstance(value, bool):
        raise ValueError(f"invalid quantity: {value!r}")
    if isinstance(value, (int, float, Fraction)):
        return Fraction(value)
    match = _QUANTITY_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid quantity: {value!r}")
    number = Fraction(match.group("num"))
    exponent = match.group("exp")
    if exponent:
        return number * Fraction(10) ** int(exponent[1:])
    return number * _SUFFIXES[match.group("suffix") or ""]


def _milli_value(value: Quantity) -> float:
    return float(math.ceil(parse_quantity(value) * 1000))


def _value(value: Quantity) -> float:
    return float(math.ceil(parse_quantity(value)))


def _is_qualified_name(value: str) -> bool:
    parts = value.split("/")
    if len(parts) == 1:
        name = parts[0]
    elif len(parts) == 2:
        prefix, name = parts
        if not prefix or len(prefix) > 253 or not _DNS_SUBDOMAIN_RE.match(prefix):
            return False
    else:
        return False
    return bool(name) and len(name) <= 63 and bool(_NAME_RE.match(name))


def _is_native_resource(name: str) -> bool:
    return "/" not in name or "kubernetes.io/" in name


def is_scalar_resource_name(name: str) -> bool:
    """Return True for extended, hugepage, prefixed native or attachable-volume names."""
    extended = (
        not _is_native_resource(name)
        and not name.startswith("requests.")
        and _is_qualified_name("requests." + name)
    )
    return (
        extended
        or name.startswith("hugepages-")
        or "kubernetes.io/" in name
        or name.startswith("attachable-volumes-")
    )


@dataclass
class Resource:
    """A resource vector; arithmetic methods update it in place and return it."""

    milli_cpu: float = 0.0
    memory: float = 0.0
    scalar_resources: dict[str, float] | None = None
    # Only used by predicates; not part of arithmetic.
    max_task_num: int = 0

    def clone(self) -> Resource:
        return Resource(
            milli_cpu=self.milli_cpu,
            memory=self.memory,
            scalar_resources=None
            if self.scalar_resources is None
            else dict(self.scalar_resources),
            max_task_num=self.max_task_num,
        )

    def is_empty(self) -> bool:
        """True if every dimension is below its minimum meaningful value."""
        if not (self.milli_cpu < MIN_MILLI_CPU and self.memory < MIN_MEMORY):
            return False
        return all(
            q < MIN_MILLI_SCALAR_RESOURCES for q in (self.scalar_resources or {}).values()
        )

    def is_zero(self, name: str) -> bool:
        """True if the named resource is below its minimum meaningful value."""
        if name == RESOURCE_CPU:
            return self.milli_cpu < MIN_MILLI_CPU
        if name == RESOURCE_MEMORY:
            return self.memory < MIN_MEMORY
        if self.scalar_resources is None:
            return True
        if name not in self.scalar_resources:
            raise KeyError(f"unknown resource {name}")
        return self.scalar_resources[name] < MIN_MILLI_SCALAR_RESOURCES

    def add(self, other: Resource) -> Resource:
        self.milli_cpu += other.milli_cpu
        self.memory += other.memory
        for name, quantity in (other.scalar_resources or {}).items():
            if self.scalar_resources is None:
                self.scalar_resources = {}
            self.scalar_resources[name] = self.scalar_resources.get(name, 0.0) + quantity
        return self

    def sub(self, other: Resource) -> Resource:
        if not other.less_equal(self):
            raise InsufficientResourceError(
                f"Resource is not sufficient to do operation: <{self}> sub <{other}>"
            )
        self.milli_cpu -= other.milli_cpu
        self.memory -= other.memory
        for name, quantity in (other.scalar_resources or {}).items():
            if self.scalar_resources is None:
                return self
            self.scalar_resources[name] = self.scalar_resources.get(name, 0.0) - quantity
        return self

    def set_max_resource(self, other: Resource | None) -> None:
        """Take the maximum of each dimension of this and the other resource."""
        if other is None:
            return
        self.milli_cpu = max(self.milli_cpu, other.milli_cpu)
        self.memory = max(self.memory, other.memory)
        for name, quantity in (other.scalar_resources or {}).items():
            if self.scalar_resources is None:
                self.scalar_resources = dict(other.scalar_resources)
                return
            if quantity > self.scalar_resources.get(name, 0.0):
                self.scalar_resources[name] = quantity

    def fit_delta(self, other: Resource) -> Resource:
        """Subtract a request plus minimum margins; negative fields are insufficient."""
        if other.milli_cpu > 0:
            self.milli_cpu -= other.milli_cpu + MIN_MILLI_CPU
        if other.memory > 0:
            self.memory -= other.memory + MIN_MEMORY
        for name, quantity in (other.scalar_resources or {}).items():
            if self.scalar_resources is None:
                self.scalar_resources = {}
            if quantity > 0:
                self.scalar_resources[name] = self.scalar_resources.get(name, 0.0) - (
                    quantity + MIN_MILLI_SCALAR_RESOURCES
                )
        return self

    def multi(self, ratio: float) -> Resource:
        self.milli_cpu *= ratio
        self.memory *= ratio
        if self.scalar_resources is not None:
            for name, quantity in self.scalar_resources.items():
                self.scalar_resources[name] = quantity * ratio
        return self

    def less(self, other: Resource) -> bool:
        """True if every dimension is strictly less than the other's."""
        if not self.milli_cpu < other.milli_cpu:
            return False
        if not self.memory < other.memory:
            return False
        if self.scalar_resources is None:
            return all(
                q > MIN_MILLI_SCALAR_RESOURCES
                for q in (other.scalar_resources or {}).values()
            )
        if other.scalar_resources is None:
            return False
        return all(
            q < other.scalar_resources.get(name, 0.0)
            for name, q in self.scalar_resources.items()
        )

    def less_equal(self, other: Resource) -> bool:
        """True if every dimension is less than or about equal to the other's."""

        def le(left: float, right: float, margin: float) -> bool:
            return left < right or abs(left - right) < margin

        if not le(self.milli_cpu, other.milli_cpu, MIN_MILLI_CPU):
            return False
        if not le(self.memory, other.memory, MIN_MEMORY):
            return False
        if self.scalar_resources is None:
            return True
        for name, quantity in self.scalar_resources.items():
            if quantity <= MIN_MILLI_SCALAR_RESOURCES:
                continue
            if other.scalar_resources is None:
                return False
            if not le(
                quantity, other.scalar_resources.get(name, 0.0), MIN_MILLI_SCALAR_RESOURCES
            ):
                return False
        return True

    def diff(self, other: Resource) -> tuple[Resource, Resource]:
        """Return (increased, decreased) amounts of this resource relative to the other."""
        increased = empty_resource()
        decreased = empty_resource()
        if self.milli_cpu > other.milli_cpu:
            increased.milli_cpu += self.milli_cpu - other.milli_cpu
        else:
            decreased.milli_cpu += other.milli_cpu - self.milli_cpu
        if self.memory > other.memory:
            increased.memory += self.memory - other.memory
        else:
            decreased.memory += other.memory - self.memory
        other_scalars = other.scalar_resources or {}
        for name, quantity in (self.scalar_resources or {}).items():
            other_quantity = other_scalars.get(name, 0.0)
            if quantity > other_quantity:
                increased.add_scalar(name, quantity - other_quantity)
            else:
                decreased.add_scalar(name, other_quantity - quantity)
        return increased, decreased

    def __str__(self) -> str:
        text = f"cpu {self.milli_cpu:0.2f}, memory {self.memory:0.2f}"
        for name, quantity in (self.scalar_resources or {}).items():
            text += f", {name} {quantity:0.2f}"
        return text

    def get(self, name: str) -> float:
        if name == RESOURCE_CPU:
            return self.milli_cpu
        if name == RESOURCE_MEMORY:
            return self.memory
        return (self.scalar_resources or {}).get(name, 0.0)

    def resource_names(self) -> list[str]:
        return [RESOURCE_CPU, RESOURCE_MEMORY, *(self.scalar_resources or {})]

    def add_scalar(self, name: str, quantity: float) -> None:
        self.set_scalar(name, (self.scalar_resources or {}).get(name, 0.0) + quantity)

    def set_scalar(self, name: str, quantity: float) -> None:
        if self.scalar_resources is None:
            self.scalar_resources = {}
        self.scalar_resources[name] = quantity


def empty_resource() -> Resource:
    return Resource()


def new_resource(resource_list: Mapping[str, Quantity]) -> Resource:
    """Build a Resource from a mapping of resource names to quantities."""
    result = empty_resource()
    for name, quantity in resource_list.items():
        if name == RESOURCE_CPU:
            result.milli_cpu += _milli_value(quantity)
        elif name == RESOURCE_MEMORY:
            result.memory += _value(quantity)
        elif name == RESOURCE_PODS:
            result.max_task_num += int(_value(quantity))
        elif is_scalar_resource_name(name):
            result.add_scalar(name, _milli_value(quantity))
    return result


def resource_min(left: Resource, right: Resource) -> Resource:
    """Return the per-dimension minimum of two resources."""
    result = Resource(
        milli_cpu=min(left.milli_cpu, right.milli_cpu),
        memory=min(left.memory, right.memory),
    )
    if left.scalar_resources is None or right.scalar_resources is None:
        return result
    result.scalar_resources = {
        name: min(quantity, right.scalar_resources.get(name, 0.0))
        for name, quantity in left.scalar_resources.items()
    }
    return result


def share(left: float, right: float) -> float:
    """Return left/right, treating division by zero as 0 or 1."""
    if right == 0:
        return 0.0 if left == 0 else 1.0
    return left / right