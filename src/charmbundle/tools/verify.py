"""
Bundle verifier.

  - load configuration
  - for each bundle file given on the command line:
    - load and decode the bundle
    - verify it, logging every problem found

Exits with status 0 if all bundles were found to be consistent, 1 otherwise.
"""

import argparse
import logging
import os
import sys
from argparse import Namespace as ArgsType
from pathlib import Path

from charmbundle.bundle.charmurl import charm_url_validator
from charmbundle.bundle.constraints import constraints_validator
from charmbundle.bundle.errors import VerificationError
from charmbundle.bundle.load import BundleFormatError, load_bundle
from charmbundle.bundle.verify import verify_bundle
from charmbundle.common.config import BundleCheckConfig, get_config
from charmbundle.common.logging import get_logger
from charmbundle.version import __verbose_version__

_DEFAULTS = {
    "debug": False,
    "config": None,
}


def parse_args(defaults: dict, args: list[str] | None = None) -> ArgsType:
    """
    Parse command line arguments.

    Site specific settings (accepted charm URL schemas, architectures etc.)
    are read from the config file (--config).
    """
    parser = argparse.ArgumentParser(
        description=f"Deployment bundle verifier {__verbose_version__}",
        add_help=True,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Required arguments
    parser.add_argument(
        "bundles",
        metavar="BUNDLE",
        type=Path,
        nargs="+",
        help="Path to bundle file (YAML or JSON)",
    )

    # Optional arguments
    parser.add_argument(
        "--config",
        dest="config",
        metavar="CFGFILE",
        type=str,
        default=defaults["config"],
        help="Path to the configuration file",
    )
    parser.add_argument(
        "--debug",
        dest="debug",
        action="store_true",
        default=defaults["debug"],
        help="Enable debug operation",
    )
    parser.add_argument(
        "--logdir",
        dest="logdir",
        metavar="DIR",
        type=Path,
        default=None,
        help="Also write a log of this run to a file in this directory",
    )

    return parser.parse_args(args)


def verify_file(filename: Path, config: BundleCheckConfig, logger: logging.Logger) -> bool:
    """Load and verify a single bundle file. Return True if it is consistent."""
    try:
        bundle = load_bundle(filename, max_size=config.max_bundle_size)
    except (OSError, BundleFormatError) as exc:
        logger.critical(str(exc))
        return False
    try:
        verify_bundle(
            bundle,
            charm_url_validator(config),
            constraints_validator(config),
            logger=logger.getChild("verify"),
        )
    except VerificationError as exc:
        for this in exc.messages:
            logger.error(f"{filename}: {this}")
        logger.error(f"{filename}: {len(exc.errors)} problem(s) found")
        return False
    logger.info(f"{filename}: OK")
    return True


def verify(
    logger: logging.Logger,
    args: ArgsType,
    config: BundleCheckConfig | None = None,
) -> bool:
    """Main entry point for verifying bundles."""
    #
    # Load configuration, if not provided already
    #
    if config is None:
        try:
            config = get_config(args.config)
        except FileNotFoundError as exc:
            logger.critical(str(exc))
            sys.exit(-1)

    res = True
    for filename in args.bundles:
        if not verify_file(filename, config, logger):
            res = False
    return res


def main() -> None:
    """Main program function."""
    try:
        progname = os.path.basename(sys.argv[0])
        args = parse_args(_DEFAULTS)
        logger = get_logger(
            progname=progname, debug=args.debug, syslog=False, logdir=args.logdir
        ).getChild(__name__)
        res = verify(logger, args)
        if res is True:
            sys.exit(0)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
