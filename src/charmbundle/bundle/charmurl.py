"""
Charm URL syntax checking.

A charm URL has the form

    [schema:][~user/][series/]name[-revision]

e.g. "cs:precise/mysql-28", "cs:~bob/trusty/wordpress", "local:foo-45" or just
"wordpress". Only the syntax is checked, no charm store lookups are made.
"""

import re
from collections.abc import Callable, Sequence

from charmbundle.bundle.errors import quote
from charmbundle.common.config import BundleCheckConfig

__author__ = "ft"

DEFAULT_SCHEMAS = ("cs", "local")

_USER_RE = re.compile(r"[a-z0-9][a-zA-Z0-9+.-]+")
_SERIES_RE = re.compile(r"[a-z]+(?:[a-z0-9]+)?")
_NAME_RE = re.compile(r"[a-z][a-z0-9]*(?:-[a-z0-9]*[a-z][a-z0-9]*)*")
_REVISION_RE = re.compile(r"-(0|[1-9][0-9]*)$")


class CharmURLError(ValueError):
    """The charm URL is not syntactically valid."""

    pass


def validate_charm_url(url: str, schemas: Sequence[str] = DEFAULT_SCHEMAS) -> None:
    """
    Check the syntax of a charm URL.

    :raise CharmURLError: With a message describing the first problem found.
    """
    schema, sep, rest = url.partition(":")
    if not sep:
        schema, rest = "cs", url
    if schema not in schemas:
        raise CharmURLError(f"charm URL has invalid schema: {quote(url)}")

    parts = rest.split("/")
    if parts[0].startswith("~"):
        if schema == "local" or not _USER_RE.fullmatch(parts[0][1:]):
            raise CharmURLError(f"charm URL has invalid user name: {quote(url)}")
        parts = parts[1:]
    if len(parts) > 2:
        raise CharmURLError(f"charm URL has invalid form: {quote(url)}")
    if len(parts) == 2:
        series = parts.pop(0)
        if not _SERIES_RE.fullmatch(series):
            raise CharmURLError(f"charm URL has invalid series: {quote(url)}")

    name = _REVISION_RE.sub("", parts[0])
    if not _NAME_RE.fullmatch(name):
        raise CharmURLError(f"charm URL has invalid charm name: {quote(url)}")


def charm_url_validator(config: BundleCheckConfig) -> Callable[[str], None]:
    """Return a charm URL validator accepting the schemas from the configuration."""
    schemas = tuple(config.charm_schemas)
    return lambda url: validate_charm_url(url, schemas=schemas)
