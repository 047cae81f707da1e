"""Exception classes used when verifying bundles."""

from collections.abc import Sequence

__author__ = "ft"

_ESCAPES = {
    "\a": r"\a",
    "\b": r"\b",
    "\f": r"\f",
    "\n": r"\n",
    "\r": r"\r",
    "\t": r"\t",
    "\v": r"\v",
    "\\": r"\\",
    '"': r"\"",
}


def _escape(ch: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    if ch.isprintable():
        return ch
    code = ord(ch)
    if code < 0x80:
        return f"\\x{code:02x}"
    if code <= 0xFFFF:
        return f"\\u{code:04x}"
    return f"\\U{code:08x}"


def quote(value: str) -> str:
    """
    Quote a value from the bundle for inclusion in an error message.

    Printable characters are kept as they are, everything else is escaped so that
    control characters in a bundle can't garble the output (e.g. "a\\x7fb").
    """
    return '"' + "".join(_escape(ch) for ch in value) + '"'


def quote_relation(relation: Sequence[str]) -> str:
    """Format a relation (list of endpoints) as ["a:b" "c:d"]."""
    return "[" + " ".join(quote(this) for this in relation) + "]"


class BundleViolation(Exception):
    """Base class exception for all problems found in a bundle."""


class SeriesViolation(BundleViolation):
    """The bundle series is invalid."""

    pass


class MachineViolation(BundleViolation):
    """Problem with an entry in the 'machines' section."""

    pass


class ServiceViolation(BundleViolation):
    """Problem with an entry in the 'services' section."""

    pass


class PlacementViolation(BundleViolation):
    """A unit placement directive is invalid."""

    pass


class PlacementSyntaxError(PlacementViolation):
    """A unit placement directive could not be parsed."""

    def __init__(self, placement: str):
        super().__init__(f"invalid placement syntax {quote(placement)}")
        self.placement = placement


class RelationViolation(BundleViolation):
    """A relation is invalid."""

    pass


class RelationSyntaxError(RelationViolation):
    """A relation endpoint could not be parsed."""

    def __init__(self, endpoint: str):
        super().__init__(f"invalid relation syntax {quote(endpoint)}")
        self.endpoint = endpoint


class VerificationError(Exception):
    """
    All the problems found when verifying a bundle.

    Raised by verify_bundle() when at least one check failed. The individual
    problems are available in 'errors', in the order they were found.
    """

    def __init__(self, errors: Sequence[BundleViolation]):
        self.errors = list(errors)
        super().__init__(self._summary())

    @property
    def messages(self) -> list[str]:
        """The text of each problem found."""
        return [str(this) for this in self.errors]

    def _summary(self) -> str:
        if not self.errors:
            return "no verification errors!"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return f"{self.errors[0]} (and {len(self.errors) - 1} more errors)"
