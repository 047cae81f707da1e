"""Bundle data classes."""

from abc import ABC
from collections.abc import Callable, Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

__author__ = "ft"


class FrozenBaseModel(BaseModel, ABC):
    """
    A frozen abstract base class for Pydantic models.

    Bundles are built once by the decoder and are never modified afterwards,
    in particular not by the verifier.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def replace(self, **kwargs: Any) -> Self:
        """Return a new instance with the provided attributes updated. Used in tests."""
        return self.model_copy(update=kwargs)


class MachineSpec(FrozenBaseModel):
    """A machine declared in the 'machines' section of a bundle."""

    constraints: str = ""
    annotations: dict[str, str] = Field(default_factory=dict)


class ServiceSpec(FrozenBaseModel):
    """
    A service declared in the 'services' section of a bundle.

    Example:
    -------
        mysql:
            charm: "cs:precise/mysql-28"
            num_units: 2
            to: [0, mediawiki/0]
            options:
                flavor: distro
            annotations:
                "gui-x": 610
            constraints: "mem=8g"
    """

    charm: str
    num_units: int = 0
    to: list[str] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    constraints: str = ""


class BundleData(FrozenBaseModel):
    """
    A decoded bundle.

    The keys of 'services' and 'machines' are the names used to refer to
    those entities from placement directives and relations. An empty
    'series' means the bundle does not declare one.
    """

    series: str = ""
    services: Mapping[str, ServiceSpec] = Field(default_factory=dict)
    machines: Mapping[str, MachineSpec] = Field(default_factory=dict)
    relations: list[list[str]] = Field(default_factory=list)

    def verify(
        self,
        validate_charm_url: Callable[[str], None],
        validate_constraints: Callable[[str], None],
    ) -> None:
        """Verify the bundle, raising VerificationError listing all problems found."""
        from charmbundle.bundle.verify import verify_bundle

        verify_bundle(self, validate_charm_url, validate_constraints)
