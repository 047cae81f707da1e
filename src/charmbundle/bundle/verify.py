"""
Consistency checks of a decoded bundle.

Each check_* function looks at one aspect of the bundle and returns a list of
the problems found, possibly empty. The checks are independent of each other,
and verify_bundle() runs all of them so that the bundle author gets a complete
list of problems in one go instead of having to fix them one at a time.

The syntax of charm URLs and constraints are checked by callables provided by
the caller. They are expected to raise ValueError (or a subclass thereof) for
invalid input, and the text of that exception is included in the resulting
error message.
"""

import logging
import re
from collections.abc import Callable, Iterator
from logging import Logger

from charmbundle.bundle.data import BundleData
from charmbundle.bundle.errors import (
    BundleViolation,
    MachineViolation,
    PlacementSyntaxError,
    PlacementViolation,
    RelationSyntaxError,
    RelationViolation,
    SeriesViolation,
    ServiceViolation,
    VerificationError,
    quote,
    quote_relation,
)
from charmbundle.bundle.placement import (
    IDENTIFIER,
    NUMERAL,
    MachineTarget,
    ServiceTarget,
    UnitPlacement,
    parse_placement,
)

__author__ = "ft"

logger = logging.getLogger(__name__)

Validator = Callable[[str], None]

_SERIES_RE = re.compile(r"[a-z]+")
_MACHINE_ID_RE = re.compile(NUMERAL)
_ENDPOINT_RE = re.compile(rf"(?P<service>{IDENTIFIER}):(?P<relation>{IDENTIFIER})")


def verify_bundle(
    bundle: BundleData,
    validate_charm_url: Validator,
    validate_constraints: Validator,
    logger: Logger = logger,
) -> None:
    """
    Verify that a bundle is internally consistent.

    :raise VerificationError: Listing every problem found in the bundle.
    """
    logger.debug('Begin "Verify bundle"')

    errors: list[BundleViolation] = []
    errors += check_series(bundle, logger)
    errors += check_machine_ids(bundle, logger)
    errors += check_machine_constraints(bundle, validate_constraints, logger)
    errors += check_machines_referenced(bundle, logger)
    errors += check_charm_urls(bundle, validate_charm_url, logger)
    errors += check_service_constraints(bundle, validate_constraints, logger)
    errors += check_unit_counts(bundle, logger)
    errors += check_placements(bundle, logger)
    errors += check_relations(bundle, logger)

    logger.debug(f'End "Verify bundle" ({len(errors)} problems found)')
    if errors:
        raise VerificationError(errors)


def check_series(bundle: BundleData, logger: Logger) -> list[BundleViolation]:
    """Check that the series, if set, is a valid series name."""
    logger.debug(f"Checking series {bundle.series!r}")
    if bundle.series and not _SERIES_RE.fullmatch(bundle.series):
        return [
            SeriesViolation(
                f"bundle declares an invalid series {quote(bundle.series)}"
            )
        ]
    return []


def check_machine_ids(bundle: BundleData, logger: Logger) -> list[BundleViolation]:
    """Check that all machine ids are non-negative integers without leading zeros."""
    logger.debug(f"Checking the ids of {len(bundle.machines)} machine(s)")
    errors: list[BundleViolation] = []
    for machine_id in bundle.machines:
        if not _MACHINE_ID_RE.fullmatch(machine_id):
            errors += [
                MachineViolation(
                    f"invalid machine id {quote(machine_id)} found in machines"
                )
            ]
    return errors


def check_machine_constraints(
    bundle: BundleData, validate_constraints: Validator, logger: Logger
) -> list[BundleViolation]:
    """Check the constraints of all machines that have any."""
    errors: list[BundleViolation] = []
    for machine_id, machine in bundle.machines.items():
        if not machine.constraints:
            continue
        logger.debug(f"Checking constraints of machine {machine_id}")
        try:
            validate_constraints(machine.constraints)
        except ValueError as exc:
            errors += [
                MachineViolation(
                    f"invalid constraints {quote(machine.constraints)} in machine "
                    f"{quote(machine_id)}: {exc}"
                )
            ]
    return errors


def check_machines_referenced(
    bundle: BundleData, logger: Logger
) -> list[BundleViolation]:
    """
    Check that every machine is used by at least one placement directive.

    Placements in containers ("lxc:1") count as references to the machine.
    """
    referenced = set()
    for _service, _placement, parsed in _placements(bundle):
        if isinstance(parsed, UnitPlacement) and parsed.machine is not None:
            referenced.add(parsed.machine)
    errors: list[BundleViolation] = []
    for machine_id in bundle.machines:
        if machine_id not in referenced:
            errors += [
                MachineViolation(
                    f"machine {quote(machine_id)} is not referred to by a placement directive"
                )
            ]
        else:
            logger.debug(f"Machine {machine_id} is referenced by a placement")
    return errors


def check_charm_urls(
    bundle: BundleData, validate_charm_url: Validator, logger: Logger
) -> list[BundleViolation]:
    """Check the charm URL of every service."""
    errors: list[BundleViolation] = []
    for name, service in bundle.services.items():
        logger.debug(f"Checking charm URL of service {name}")
        try:
            validate_charm_url(service.charm)
        except ValueError as exc:
            errors += [
                ServiceViolation(f"invalid charm URL in service {quote(name)}: {exc}")
            ]
    return errors


def check_service_constraints(
    bundle: BundleData, validate_constraints: Validator, logger: Logger
) -> list[BundleViolation]:
    """Check the constraints of all services that have any."""
    errors: list[BundleViolation] = []
    for name, service in bundle.services.items():
        if not service.constraints:
            continue
        logger.debug(f"Checking constraints of service {name}")
        try:
            validate_constraints(service.constraints)
        except ValueError as exc:
            errors += [
                ServiceViolation(
                    f"invalid constraints {quote(service.constraints)} in service "
                    f"{quote(name)}: {exc}"
                )
            ]
    return errors


def check_unit_counts(bundle: BundleData, logger: Logger) -> list[BundleViolation]:
    """
    Check the number of units of every service.

    The number of units can't be negative, and there can't be more placement
    directives than there are units to place. The latter is not checked when
    the number of units is negative.
    """
    logger.debug(f"Checking unit counts of {len(bundle.services)} service(s)")
    errors: list[BundleViolation] = []
    for name, service in bundle.services.items():
        if service.num_units < 0:
            errors += [
                ServiceViolation(
                    f"negative number of units specified on service {quote(name)}"
                )
            ]
        elif len(service.to) > service.num_units:
            errors += [
                ServiceViolation(
                    f"too many units specified in unit placement for service {quote(name)}"
                )
            ]
    return errors


def check_placements(bundle: BundleData, logger: Logger) -> list[BundleViolation]:
    """
    Check every unit placement directive.

    Placements must be syntactically valid, and must refer to services and
    machines defined in the bundle. A specific unit of a service must be one
    of the units started by that service.
    """
    errors: list[BundleViolation] = []
    for service, placement, parsed in _placements(bundle):
        logger.debug(f"Checking placement {placement!r} of service {service}")
        if isinstance(parsed, PlacementSyntaxError):
            errors += [parsed]
            continue
        target = parsed.target
        if isinstance(target, ServiceTarget):
            if target.service not in bundle.services:
                errors += [
                    PlacementViolation(
                        f"placement {quote(placement)} refers to a service not defined in this bundle"
                    )
                ]
                continue
            num_units = bundle.services[target.service].num_units
            if target.unit is not None and target.unit >= num_units:
                errors += [
                    PlacementViolation(
                        f"placement {quote(placement)} specifies a unit greater than the "
                        f"{num_units} unit(s) started by the target service"
                    )
                ]
        elif isinstance(target, MachineTarget) and not target.is_new:
            if target.machine not in bundle.machines:
                errors += [
                    PlacementViolation(
                        f"placement {quote(placement)} refers to a machine not defined in this bundle"
                    )
                ]
    return errors


def check_relations(bundle: BundleData, logger: Logger) -> list[BundleViolation]:
    """
    Check every relation.

    A relation must have exactly two endpoints of the form service:relation,
    both services must be defined in the bundle, a service can't be related
    to itself and the same relation (in any order) can't occur twice. The
    last two checks are only made for relations that passed the first ones.
    """
    errors: list[BundleViolation] = []
    seen: set[tuple[str, ...]] = set()
    for relation in bundle.relations:
        logger.debug(f"Checking relation {relation}")
        if len(relation) != 2:
            errors += [
                RelationViolation(
                    f"relation {quote_relation(relation)} has {len(relation)} endpoint(s), not 2"
                )
            ]
            continue
        _errors = _check_endpoints(bundle, relation)
        if _errors:
            errors += _errors
            continue
        services = [this.partition(":")[0] for this in relation]
        if services[0] == services[1]:
            errors += [
                RelationViolation(
                    f"relation {quote_relation(relation)} relates a service to itself"
                )
            ]
        key = tuple(sorted(relation))
        if key in seen:
            errors += [
                RelationViolation(
                    f"relation {quote_relation(relation)} is defined more than once"
                )
            ]
        seen.add(key)
    return errors


def _check_endpoints(bundle: BundleData, relation: list[str]) -> list[BundleViolation]:
    """Check the syntax of both endpoints, and that the services they name exist."""
    errors: list[BundleViolation] = []
    for endpoint in relation:
        match = _ENDPOINT_RE.fullmatch(endpoint)
        if match is None:
            errors += [RelationSyntaxError(endpoint)]
            continue
        service = match.group("service")
        if service not in bundle.services:
            errors += [
                RelationViolation(
                    f"relation {quote_relation(relation)} refers to service "
                    f"{quote(service)} not defined in this bundle"
                )
            ]
    return errors


def _placements(
    bundle: BundleData,
) -> Iterator[tuple[str, str, UnitPlacement | PlacementSyntaxError]]:
    """Yield (service name, placement, parsed placement or syntax error) for all placements."""
    for name, service in bundle.services.items():
        for placement in service.to:
            try:
                parsed: UnitPlacement | PlacementSyntaxError = parse_placement(
                    placement
                )
            except PlacementSyntaxError as exc:
                parsed = exc
            yield name, placement, parsed
