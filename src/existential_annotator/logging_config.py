"""
Logging configuration for the existential annotator.

Console output is rendered by rich on stderr so that stdout stays free for
the ``--json`` summary. An optional log file always records DEBUG, including
the worker thread that handled each file.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "existential_annotator"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the annotator's logger.

    Args:
        verbosity: One of "quiet" (errors only), "normal" (one line per
            annotated file) or "verbose" (every parsed file and inserted marker)
        log_file: Optional file path; receives DEBUG records regardless of
            verbosity

    Returns:
        The existential_annotator logger
    """
    console_level = LEVELS.get(verbosity, logging.INFO)
    verbose = console_level == logging.DEBUG

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    console_handler.setLevel(console_level)
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else console_level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``existential_annotator`` namespace."""
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
