"""Version information."""

# https://www.python.org/dev/peps/pep-0440
__version__ = "0.1.0"

try:
    from charmbundle.buildinfo import __commit__, __timestamp__  # type: ignore

    __verbose_version__ = f"{__version__} ({__commit__})"
except ImportError:
    __verbose_version__ = __version__
    __commit__ = None
    __timestamp__ = None
