import os
import unittest
from pathlib import Path
from tempfile import mkstemp

import pytest

from charmbundle.bundle import BundleData, MachineSpec, ServiceSpec, VerificationError
from charmbundle.bundle.charmurl import validate_charm_url
from charmbundle.bundle.constraints import validate_constraints
from charmbundle.bundle.verify import verify_bundle
from charmbundle.bundle.load import (
    BundleFormatError,
    bundle_from_dict,
    bundle_from_yaml,
    load_bundle,
)

DATA_DIR = Path(os.path.dirname(__file__), "data")


class Test_load_bundle(unittest.TestCase):
    def test_mediawiki(self):
        """Test loading the mediawiki bundle"""
        bundle = load_bundle(DATA_DIR.joinpath("mediawiki.yaml"))
        expected = BundleData(
            series="precise",
            services={
                "mediawiki": ServiceSpec(
                    charm="cs:precise/mediawiki-10",
                    num_units=1,
                    options={
                        "debug": False,
                        "name": "Please set name of wiki",
                        "skin": "vector",
                    },
                    annotations={"gui-x": "609", "gui-y": "-15"},
                ),
                "mysql": ServiceSpec(
                    charm="cs:precise/mysql-28",
                    num_units=2,
                    to=["0", "mediawiki/0"],
                    options={
                        "binlog-format": "MIXED",
                        "block-size": 5,
                        "dataset-size": "80%",
                        "flavor": "distro",
                        "ha-bindiface": "eth0",
                        "ha-mcastport": 5411,
                    },
                    annotations={"gui-x": "610", "gui-y": "255"},
                    constraints="mem=8g",
                ),
            },
            machines={
                "0": MachineSpec(
                    constraints="arch=amd64 mem=4g", annotations={"foo": "bar"}
                ),
            },
            relations=[
                ["mediawiki:db", "mysql:db"],
                ["mysql:foo", "mediawiki:bar"],
            ],
        )
        self.assertEqual(bundle, expected)

    def test_too_large(self):
        """Test that large files are refused"""
        with pytest.raises(BundleFormatError, match="exceeds maximum size of 100 bytes"):
            load_bundle(DATA_DIR.joinpath("mediawiki.yaml"), max_size=100)

    def test_not_utf8(self):
        _, fn = mkstemp()
        with open(fn, "wb") as fd:
            fd.write(b"series: \xff\xfe\n")
        with pytest.raises(BundleFormatError, match="not valid UTF-8"):
            load_bundle(fn)
        os.unlink(fn)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_bundle(DATA_DIR.joinpath("no-such-bundle.yaml"))


class Test_bundle_from_yaml(unittest.TestCase):
    def test_relations_with_hyphens(self):
        """Test relations specified as block sequences"""
        bundle = bundle_from_yaml(
            """
relations:
    - - "mediawiki:db"
      - "mysql:db"
    - - "mysql:foo"
      - "mediawiki:bar"
"""
        )
        self.assertEqual(
            bundle,
            BundleData(
                relations=[
                    ["mediawiki:db", "mysql:db"],
                    ["mysql:foo", "mediawiki:bar"],
                ]
            ),
        )

    def test_empty_document(self):
        self.assertEqual(bundle_from_yaml(""), BundleData())

    def test_empty_sections(self):
        self.assertEqual(
            bundle_from_yaml("services:\nmachines:\nrelations:\n"), BundleData()
        )

    def test_machine_without_body(self):
        bundle = bundle_from_yaml("machines:\n    bogus:\n    3:\n")
        self.assertEqual(bundle.machines, {"bogus": MachineSpec(), "3": MachineSpec()})

    def test_annotation_values_become_strings(self):
        bundle = bundle_from_yaml(
            """
services:
    wordpress:
        charm: wordpress
        annotations:
            "gui-x": 12
            ratio: 0.5
            hidden: true
"""
        )
        self.assertEqual(
            bundle.services["wordpress"].annotations,
            {"gui-x": "12", "ratio": "0.5", "hidden": "true"},
        )

    def test_source_text_of_numbers_kept(self):
        """Test that octal-looking and hex machine ids are not rewritten as decimal"""
        bundle = bundle_from_yaml(
            """
services:
    wordpress:
        charm: wordpress
        num_units: 4
        to: [05, 010, 0x10, 1_000]
        annotations:
            "gui-x": 0x10
machines:
    010:
    0x10:
        annotations:
            "gui-y": 07
"""
        )
        self.assertEqual(bundle.services["wordpress"].to, ["05", "010", "0x10", "1_000"])
        self.assertEqual(bundle.services["wordpress"].num_units, 4)
        self.assertEqual(bundle.services["wordpress"].annotations, {"gui-x": "0x10"})
        self.assertEqual(
            bundle.machines,
            {"010": MachineSpec(), "0x10": MachineSpec(annotations={"gui-y": "07"})},
        )

    def test_source_text_of_booleans_kept(self):
        bundle = bundle_from_yaml(
            """
services:
    wordpress:
        charm: wordpress
        num_units: 1
        to: [yes]
        options:
            debug: yes
"""
        )
        self.assertEqual(bundle.services["wordpress"].to, ["yes"])
        # options keep their YAML types
        self.assertEqual(bundle.services["wordpress"].options, {"debug": True})

    def test_malformed_numbers_rejected_by_verifier(self):
        """Test that machine ids and placements with leading zeros fail verification"""
        bundle = bundle_from_yaml(
            """
services:
    wordpress:
        charm: wordpress
        num_units: 3
        to: [05, 010, yes]
machines:
    010:
"""
        )
        with pytest.raises(VerificationError) as exc:
            verify_bundle(bundle, validate_charm_url, validate_constraints)
        self.assertEqual(
            sorted(exc.value.messages),
            [
                'invalid machine id "010" found in machines',
                'invalid placement syntax "010"',
                'invalid placement syntax "05"',
                'machine "010" is not referred to by a placement directive',
                'placement "yes" refers to a service not defined in this bundle',
            ],
        )

    def test_json(self):
        """Test that JSON bundles can be loaded too"""
        bundle = bundle_from_yaml(
            '{"services": {"wordpress": {"charm": "wordpress", "num_units": 1, "to": [0]}},'
            ' "machines": {"0": {}}}'
        )
        self.assertEqual(bundle.services["wordpress"].to, ["0"])
        self.assertEqual(bundle.machines, {"0": MachineSpec()})

    def test_invalid_yaml(self):
        with pytest.raises(BundleFormatError, match="Failed parsing bundle"):
            bundle_from_yaml("services: [unterminated")


class Test_bundle_from_dict(unittest.TestCase):
    def test_unknown_top_level_key(self):
        with pytest.raises(BundleFormatError, match="extra keys not allowed"):
            bundle_from_dict({"xyzzy": False})

    def test_unknown_service_key(self):
        with pytest.raises(BundleFormatError, match="'services'"):
            bundle_from_dict({"services": {"wordpress": {"charm": "wordpress", "units": 1}}})

    def test_missing_charm(self):
        with pytest.raises(BundleFormatError, match="charm"):
            bundle_from_dict({"services": {"wordpress": {"num_units": 1}}})

    def test_num_units_not_integer(self):
        with pytest.raises(BundleFormatError):
            bundle_from_dict(
                {"services": {"wordpress": {"charm": "wordpress", "num_units": "one"}}}
            )

    def test_relation_not_list_of_lists(self):
        with pytest.raises(BundleFormatError):
            bundle_from_dict({"relations": ["mysql:db", "wordpress:db"]})

    def test_not_a_mapping(self):
        with pytest.raises(BundleFormatError):
            bundle_from_dict(["services"])  # type: ignore

    def test_negative_units_accepted(self):
        """Test that semantic problems are left to the verifier"""
        bundle = bundle_from_dict(
            {"services": {"wordpress": {"charm": "bogus:wordpress", "num_units": -4}}}
        )
        self.assertEqual(bundle.services["wordpress"].num_units, -4)

    def test_boolean_placement_from_caller(self):
        bundle = bundle_from_dict({"services": {"a": {"charm": "a", "to": [True, 3]}}})
        self.assertEqual(bundle.services["a"].to, ["true", "3"])

    def test_caller_data_not_modified(self):
        data = {"machines": {0: None}, "services": {"a": {"charm": "a", "to": [0]}}}
        bundle_from_dict(data)
        self.assertEqual(
            data, {"machines": {0: None}, "services": {"a": {"charm": "a", "to": [0]}}}
        )
