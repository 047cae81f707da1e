"""Load and parse configuration."""

from __future__ import annotations

import logging
from io import BufferedReader, StringIO
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

__author__ = "ft"

logger = logging.getLogger(__name__)

DEFAULT_ARCHITECTURES = ("amd64", "arm64", "armhf", "i386", "ppc64el", "s390x")

MAX_BUNDLE_SIZE = 1024 * 1024


class BundleCheckConfig(BaseModel):
    """
    Configuration object.

    Holds configuration loaded from charmbundle.yaml.

    Example:
    -------
        charm_schemas:
          - cs
          - local
        architectures:
          - amd64
          - arm64
        max_bundle_size: 1048576
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Schemas accepted in charm URLs
    charm_schemas: list[str] = Field(default_factory=lambda: ["cs", "local"])
    # Values accepted for the 'arch' constraint
    architectures: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ARCHITECTURES)
    )
    # Bundle files larger than this are refused without being parsed
    max_bundle_size: PositiveInt = MAX_BUNDLE_SIZE

    def update(self, data: dict[str, Any]) -> BundleCheckConfig:
        """Update configuration on the fly. Usable in tests."""
        logger.warning(f"Updating configuration (sections {data.keys()})")
        _config = self.model_dump()
        _config.update(data)
        return self.from_dict(_config)

    @classmethod
    def from_yaml(
        cls: type[BundleCheckConfig], stream: BufferedReader | StringIO
    ) -> BundleCheckConfig:
        """Load configuration from a YAML stream."""
        config = yaml.safe_load(stream)
        return cls.from_dict(config or {})

    @classmethod
    def from_dict(
        cls: type[BundleCheckConfig], config: dict[str, Any]
    ) -> BundleCheckConfig:
        return cls.model_validate(config)


def get_config(filename: str | None) -> BundleCheckConfig:
    """Top-level function to load configuration, or return a default BundleCheckConfig instance."""
    if not filename:
        # Always have a config, even if it is empty
        logger.warning(
            "No configuration filename provided, using default configuration."
        )
        return BundleCheckConfig()
    with open(filename, "rb") as fd:
        logger.info("Loading configuration from file %s", filename)
        return BundleCheckConfig.from_yaml(fd)
