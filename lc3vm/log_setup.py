"""
Logging setup for lc3vm.

Modules log through logging.getLogger(__name__) under the "lc3vm"
namespace; this module attaches the handlers once:

  - console: rich RichHandler on stderr (stdout carries the emulated
    program's output), WARNING by default
  - file (optional): everything from DEBUG up, one line per record
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "lc3vm"

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


def verbosity_to_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    """Configure and return the package logger.

    Calling it again only adjusts levels; handlers are never duplicated.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    console_handler = None
    file_handler = None
    for h in logger.handlers:
        if isinstance(h, RichHandler):
            console_handler = h
        elif isinstance(h, logging.FileHandler):
            file_handler = h

    if console_handler is None:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        logger.addHandler(console_handler)
    console_handler.setLevel(console_level)

    if log_file is not None and file_handler is None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)
        logger.info("Log file: %s", log_file)

    return logger
