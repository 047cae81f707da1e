"""Logging initialisation code."""

import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path

__author__ = "ft"

LOG_FORMAT = "%(asctime)s: %(name)s: %(levelname)s %(message)s"
SYSLOG_FORMAT = "%(name)s: %(levelname)s %(message)s"


def get_logger(
    progname: str,
    debug: bool = False,
    syslog: bool = False,
    logdir: Path | None = None,
) -> logging.Logger:
    """
    Initialize logging for one of the command line tools.

    Everything goes to stderr. When stderr is not a TTY (e.g. in a CI job),
    only warnings and errors are written there unless debug is enabled. With
    'logdir' set, a complete log of the run is also written to a timestamped
    file in that directory.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)
    if not sys.stderr.isatty() and not debug:
        for this_h in logging.getLogger("").handlers:
            this_h.setLevel(logging.WARNING)
    logger = logging.getLogger(progname)
    if syslog:
        _add_handler(logger, logging.handlers.SysLogHandler(), SYSLOG_FORMAT)
    if logdir is not None:
        _fn = f"{progname}-{time.strftime('%Y%m%d-%H%M%S')}-{os.getpid()}.log"
        _add_handler(logger, logging.FileHandler(logdir / _fn), LOG_FORMAT)
    return logger


def _add_handler(logger: logging.Logger, handler: logging.Handler, fmt: str) -> None:
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
