"""Root logger setup for the command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Log replay progress and handler warnings to stderr.

    Handlers log per event at INFO and DEBUG; ``--verbose`` lowers the level to DEBUG.
    ``force`` replaces handlers installed by an earlier call.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
