"""Logging configuration for the simulator package."""

import logging
import os

_LEVEL_NAME = os.getenv("FOUR_STROKE_SIM_LOG_LEVEL", "WARNING").upper()
_PACKAGE_LOGGER_LEVEL = getattr(logging, _LEVEL_NAME, logging.WARNING)

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module-level logger without touching handlers.

    Handlers are installed only by the CLI via ``configure_logging``.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_PACKAGE_LOGGER_LEVEL)
    return logger


def configure_logging(verbose: int = 0) -> None:
    """Install a stderr handler for command-line runs.

    ``verbose`` 0 keeps the environment level, 1 selects INFO, 2+ DEBUG.
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = _PACKAGE_LOGGER_LEVEL

    logging.basicConfig(level=level, format=_FORMAT)
    logging.getLogger("four_stroke_sim").setLevel(level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("four_stroke_sim."):
            logging.getLogger(name).setLevel(level)
