"""
Constraints syntax checking.

Constraints are a whitespace separated list of key=value items, for example
"arch=amd64 mem=4G cpu-cores=2". An empty value (e.g. "tags=") is allowed and
means the constraint is explicitly unset.
"""

import re
from collections.abc import Callable, Sequence

from charmbundle.bundle.errors import quote
from charmbundle.common.config import DEFAULT_ARCHITECTURES, BundleCheckConfig

__author__ = "ft"

INTEGER_KEYS = ("cpu-cores", "cpu-power")
SIZE_KEYS = ("mem", "root-disk")
STRING_KEYS = ("container", "instance-type", "virt-type")
LIST_KEYS = ("spaces", "tags", "zones")
KNOWN_KEYS = ("arch",) + INTEGER_KEYS + SIZE_KEYS + STRING_KEYS + LIST_KEYS

_INTEGER_RE = re.compile(r"0|[1-9][0-9]*")
_SIZE_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?[MGTP]?", re.IGNORECASE)


class ConstraintsError(ValueError):
    """The constraints string is not valid."""

    pass


def validate_constraints(
    value: str, architectures: Sequence[str] = DEFAULT_ARCHITECTURES
) -> None:
    """
    Check a constraints string.

    :raise ConstraintsError: With a message describing the first problem found.
    """
    seen: set[str] = set()
    for item in value.split():
        key, sep, val = item.partition("=")
        if not sep or not key:
            raise ConstraintsError(f"malformed constraint {quote(item)}")
        if key not in KNOWN_KEYS:
            raise ConstraintsError(f"unknown constraint {quote(key)}")
        if key in seen:
            raise ConstraintsError(f"bad {quote(key)} constraint: already set")
        seen.add(key)
        if not val:
            continue
        if key == "arch" and val not in architectures:
            raise ConstraintsError(
                f"bad {quote(key)} constraint: {quote(val)} not recognized"
            )
        if key in INTEGER_KEYS and not _INTEGER_RE.fullmatch(val):
            raise ConstraintsError(
                f"bad {quote(key)} constraint: must be a non-negative integer"
            )
        if key in SIZE_KEYS and not _SIZE_RE.fullmatch(val):
            raise ConstraintsError(
                f"bad {quote(key)} constraint: must be a non-negative float "
                f"with optional M/G/T/P suffix"
            )


def constraints_validator(config: BundleCheckConfig) -> Callable[[str], None]:
    """Return a constraints validator accepting the architectures from the configuration."""
    architectures = tuple(config.architectures)
    return lambda value: validate_constraints(value, architectures=architectures)
