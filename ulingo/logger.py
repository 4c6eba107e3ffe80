"""
Logging setup for the U-Lingo service.

Modules log through ``logging.getLogger(__name__)``; everything below the
``ulingo`` namespace goes through a single stream handler installed by
``setup_logging`` at startup.
"""
import logging
import sys
from typing import Optional

LOGGER_NAME = "ulingo"
LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)-5s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: str = "INFO", stream: Optional[object] = None) -> logging.Logger:
    """Configure the ``ulingo`` logger once; repeated calls only change the level."""
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level.upper())

    if not any(getattr(h, "_ulingo_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._ulingo_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
        root.propagate = False

    return root
