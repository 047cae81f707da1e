"""Sub-package dealing with deployment bundles."""
from charmbundle.bundle.data import BundleData, MachineSpec, ServiceSpec  # noqa
from charmbundle.bundle.errors import VerificationError  # noqa
from charmbundle.bundle.load import bundle_from_yaml, load_bundle  # noqa
from charmbundle.bundle.placement import UnitPlacement, parse_placement  # noqa
from charmbundle.bundle.verify import verify_bundle  # noqa

__author__ = 'ft'
