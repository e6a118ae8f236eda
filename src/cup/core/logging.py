"""Logging configuration for cup.

Console records go through rich on stderr so they never mix with command
output. A log file, when configured, receives every record in plain text.

Example:
    ```python
    from cup.core.logging import setup_logging

    setup_logging(debug=True, log_file="~/.cache/cup/cup.log")
    ```
"""

import logging
import sys
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _log_uncaught(
    exc_type: Type[BaseException],
    exc_value: BaseException,
    exc_traceback: Optional[TracebackType],
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> None:
    """Route log records to the console and an optional file.

    The console shows warnings, or everything with ``debug``. The log file
    always gets DEBUG records.

    Args:
        debug: Show debug records and source locations on the console.
        log_file: File to append plain-text records to; ``~`` is expanded
            and missing parent directories are created.
    """
    console_level = logging.DEBUG if debug else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if log_file else console_level)

    console_handler = RichHandler(
        console=console,
        show_path=debug,
        enable_link_path=debug,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=debug,
    )
    console_handler.setLevel(console_level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)
        logger.debug("Logging to %s", log_path)

    sys.excepthook = _log_uncaught
