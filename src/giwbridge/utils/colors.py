"""
ANSI color helpers for giwbridge console output.
"""

import os
import sys


def _stream_supports_color(stream) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


SUPPORTS_COLOR = _stream_supports_color(sys.stdout)


class Colors:
    """ANSI escape sequences."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    UNDERLINE = "\033[4m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def _wrap(code: str, text: str) -> str:
    if not SUPPORTS_COLOR:
        return text
    return f"{code}{text}{Colors.RESET}"


def error(text: str) -> str:
    """Format an error message."""
    return _wrap(Colors.BRIGHT_RED, text)


def warning(text: str) -> str:
    """Format a warning message."""
    return _wrap(Colors.BRIGHT_YELLOW, text)


def info(text: str) -> str:
    """Format an informational message."""
    return _wrap(Colors.BRIGHT_CYAN, text)


def symbol_name(text: str) -> str:
    return _wrap(Colors.MAGENTA, text)
