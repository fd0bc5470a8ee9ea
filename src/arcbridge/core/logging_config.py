"""Logging configuration for arcbridge."""

import logging

from rich.logging import RichHandler


def setup_logging(verbose: bool = False, level: str | None = None) -> None:
    """Configure application logging levels.

    Args:
        verbose: If True, show debug logs with timestamps and paths.
        level: Explicit level name for the arcbridge logger (overrides verbose).
    """
    # Root logger - suppress everything by default
    logging.getLogger().setLevel(logging.WARNING)

    if level:
        bridge_level = getattr(logging, level.upper(), logging.INFO)
    else:
        bridge_level = logging.DEBUG if verbose else logging.INFO
    bridge_logger = logging.getLogger("arcbridge")
    bridge_logger.setLevel(bridge_level)

    # HTTP libraries log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if not bridge_logger.handlers:
        handler = RichHandler(
            show_time=verbose,
            show_path=verbose,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        bridge_logger.addHandler(handler)
        bridge_logger.propagate = False
