"""
Logging setup.

Modules log through `logging.getLogger(__name__)`; this module only
installs the root handler. stderr only (gunicorn / the platform captures it).
"""
from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Replace any existing root handlers with a single stderr handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; keep it quiet unless debugging.
    if root_logger.level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
