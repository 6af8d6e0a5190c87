"""
CLI module for giwbridge commands.
"""

from .main import main

__all__ = [
    'main',
    'run_command',
    'probe_command',
]


# Lazy imports to avoid circular dependencies
def run_command(args):
    """Execute the run command."""
    from .run import run_command as _run_command
    return _run_command(args)


def probe_command(args):
    """Execute the probe command."""
    from .run import probe_command as _probe_command
    return _probe_command(args)
