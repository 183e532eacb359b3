"""Application logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "ipscope-handler"


def _resolve_level(level: str | int) -> int:
    """Convert level names to logging constants, defaulting to WARNING."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.WARNING


def verbosity_to_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(level: str | int = "WARNING", use_rich: bool = True) -> logging.Logger:
    """Attach a single stderr handler to the ``ipscope`` logger.

    Calling it again only adjusts the level. Output goes to stderr so JSON
    written to stdout stays parseable.
    """
    logger = logging.getLogger("ipscope")
    logger.setLevel(_resolve_level(level))
    logger.propagate = False

    if any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        return logger

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True), show_path=False, markup=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    handler.set_name(_HANDLER_NAME)
    logger.addHandler(handler)
    return logger
