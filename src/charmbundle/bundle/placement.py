"""
Parser for unit placement directives.

A placement directive says where a unit of a service should be deployed:

    placement   := [container ":"] target
    target      := "new" | numeral | identifier ["/" numeral]

Examples: "99" (machine 99), "new" (a new machine), "lxc:mysql/0" (in an LXC
container on the machine running unit 0 of mysql).
"""

import re
from dataclasses import dataclass

from charmbundle.bundle.errors import PlacementSyntaxError

__author__ = "ft"

NEW_MACHINE = "new"

IDENTIFIER = r"[A-Za-z][A-Za-z0-9-]*"
NUMERAL = r"0|[1-9][0-9]*"

_PLACEMENT_RE = re.compile(
    rf"(?:(?P<container>{IDENTIFIER}):)?"
    rf"(?:(?P<machine>{NEW_MACHINE}|{NUMERAL})"
    # "new" is never a service name, so "new/2" is rejected
    rf"|(?!{NEW_MACHINE}(?:/|$))(?P<service>{IDENTIFIER})(?:/(?P<unit>{NUMERAL}))?)"
)


@dataclass(frozen=True)
class ServiceTarget:
    """Placement next to a unit of another service. A unit of None means any unit."""

    service: str
    unit: int | None = None


@dataclass(frozen=True)
class MachineTarget:
    """Placement on a machine id, or on a new machine."""

    machine: str

    @property
    def is_new(self) -> bool:
        return self.machine == NEW_MACHINE


@dataclass(frozen=True)
class UnitPlacement:
    """A parsed unit placement directive."""

    target: ServiceTarget | MachineTarget
    container_type: str = ""

    @property
    def service(self) -> str | None:
        if isinstance(self.target, ServiceTarget):
            return self.target.service
        return None

    @property
    def machine(self) -> str | None:
        if isinstance(self.target, MachineTarget):
            return self.target.machine
        return None

    @property
    def unit(self) -> int | None:
        if isinstance(self.target, ServiceTarget):
            return self.target.unit
        return None


def parse_placement(placement: str) -> UnitPlacement:
    """
    Parse a unit placement directive.

    :raise PlacementSyntaxError: If the string is not a valid placement directive.
    """
    match = _PLACEMENT_RE.fullmatch(placement)
    if match is None:
        raise PlacementSyntaxError(placement)
    container = match.group("container") or ""
    target: ServiceTarget | MachineTarget
    if match.group("machine") is not None:
        target = MachineTarget(machine=match.group("machine"))
    else:
        unit = match.group("unit")
        target = ServiceTarget(
            service=match.group("service"),
            unit=int(unit) if unit is not None else None,
        )
    return UnitPlacement(target=target, container_type=container)
