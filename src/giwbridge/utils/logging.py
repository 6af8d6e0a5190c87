"""
Logging setup for giwbridge.

Everything logs under the ``giwbridge`` logger, which does not propagate:
the bridge usually runs inside a debugger that has its own idea of what
the root logger should do.
"""

import logging
import sys
from typing import Optional

from giwbridge.utils.colors import Colors

# Below DEBUG: one record per frame and per recv()
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')

ROOT_NAME = 'giwbridge'


class ColoredFormatter(logging.Formatter):
    """Colors the level name when writing to a terminal."""

    LEVEL_COLORS = {
        TRACE: Colors.DIM,
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.BRIGHT_CYAN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
    }

    def __init__(self, fmt: str = None, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if color:
            # Work on a copy so other handlers see the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{Colors.RESET}"
        return super().format(record)


def _level_for(quiet: bool, debug: bool, verbose: bool) -> int:
    if verbose:
        return TRACE
    if debug:
        return logging.DEBUG
    return logging.WARNING if quiet else logging.INFO


def setup_logging(
    quiet: bool = False,
    debug: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the giwbridge logger.

    Args:
        quiet: No console output at all
        debug: Log at DEBUG
        verbose: Log at TRACE, one record per frame on the wire
        log_file: Also append everything to this file, uncolored

    Returns:
        The configured ``giwbridge`` logger
    """
    level = _level_for(quiet, debug, verbose)

    root = logging.getLogger(ROOT_NAME)
    root.setLevel(TRACE if log_file else level)
    root.handlers.clear()
    root.propagate = False

    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(level)
        console.setFormatter(ColoredFormatter(
            fmt='[giw] %(levelname)s: %(message)s',
            use_colors=hasattr(sys.stderr, 'isatty') and sys.stderr.isatty(),
        ))
        root.addHandler(console)

    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setLevel(TRACE)
        handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s %(name)s %(levelname)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
        root.addHandler(handler)

    if not root.handlers:
        # Keeps logging.lastResort from printing warnings anyway
        root.addHandler(logging.NullHandler())

    return root


def get_logger(name: str = None) -> logging.Logger:
    """The ``giwbridge`` logger, or its ``giwbridge.<name>`` child."""
    return logging.getLogger(f'{ROOT_NAME}.{name}' if name else ROOT_NAME)


def log_trace(log: logging.Logger, msg: str, *args, **kwargs):
    """Log ``msg`` at TRACE on ``log``."""
    if log.isEnabledFor(TRACE):
        log.log(TRACE, msg, *args, **kwargs)
