import logging
import sys

from sitetrack.config import settings

_ROOT_LOGGER = "sitetrack"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Attach a single stream handler to the ``sitetrack`` logger tree.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
