"""
Logging setup for hosts embedding helmsman.

The library itself only emits records through `logging.getLogger(__name__)`
loggers under the "helmsman" namespace; it never installs handlers on import.
Hosts (and `python -m helmsman`) call configure_logging() once at startup.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level="INFO", /, *, fancy=True, console=None):
    """
    Install a single handler on the "helmsman" logger and return that logger.

    - fancy=True: rich.logging.RichHandler on stderr (tracebacks rendered by rich).
    - fancy=False: a plain StreamHandler with a timestamped format.

    Calling it again replaces the handler installed by the previous call.
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger("helmsman")
    logger.setLevel(level)

    if fancy:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = (
    "configure_logging",
)
