import unittest

import pytest

from charmbundle.bundle.constraints import (
    ConstraintsError,
    constraints_validator,
    validate_constraints,
)
from charmbundle.common.config import BundleCheckConfig


class Test_validate_constraints(unittest.TestCase):
    def test_valid(self):
        for value in [
            "",
            "mem=8g",
            "arch=amd64 mem=4g",
            "cpu-cores=2 cpu-power=100 root-disk=10.5G",
            "mem=512M  tags=foo,bar zones=az1",
            "container=lxd virt-type=kvm instance-type=m1.small spaces=db,^admin",
            "tags=",
        ]:
            with self.subTest(value=value):
                validate_constraints(value)

    def test_malformed(self):
        with pytest.raises(ConstraintsError) as exc:
            validate_constraints("bad constraints")
        self.assertEqual(str(exc.value), 'malformed constraint "bad"')

    def test_missing_key(self):
        with pytest.raises(ConstraintsError, match="malformed constraint"):
            validate_constraints("=4G")

    def test_unknown(self):
        with pytest.raises(ConstraintsError) as exc:
            validate_constraints("mem=4G memory=4G")
        self.assertEqual(str(exc.value), 'unknown constraint "memory"')

    def test_duplicate(self):
        with pytest.raises(ConstraintsError) as exc:
            validate_constraints("mem=4G mem=8G")
        self.assertEqual(str(exc.value), 'bad "mem" constraint: already set')

    def test_arch(self):
        with pytest.raises(ConstraintsError) as exc:
            validate_constraints("arch=sparc")
        self.assertEqual(str(exc.value), 'bad "arch" constraint: "sparc" not recognized')

    def test_integer(self):
        for value in ["cpu-cores=-1", "cpu-cores=1.5", "cpu-power=01"]:
            with self.subTest(value=value):
                with pytest.raises(ConstraintsError, match="must be a non-negative integer"):
                    validate_constraints(value)

    def test_size(self):
        for value in ["mem=lots", "root-disk=-1G", "mem=4X", "mem=4GB"]:
            with self.subTest(value=value):
                with pytest.raises(ConstraintsError, match="must be a non-negative float"):
                    validate_constraints(value)

    def test_validator_from_config(self):
        """Test the architectures from the configuration being used"""
        validator = constraints_validator(BundleCheckConfig(architectures=["sparc"]))
        validator("arch=sparc")
        with pytest.raises(ConstraintsError, match="not recognized"):
            validator("arch=amd64")
