import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "media_rules"


def configure_logging(*, verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Attach one rich handler to the package logger; safe to call repeatedly."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        show_time=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
