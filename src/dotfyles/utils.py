"""Shared utilities."""

import logging
from importlib.metadata import PackageNotFoundError, version

LOG_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format=VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT,
        )
    root.setLevel(level)


def get_version() -> str:
    """Return the installed package version."""
    try:
        return version("dotfyles")
    except PackageNotFoundError:
        return "0.0.0+unknown"
