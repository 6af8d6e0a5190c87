#!/usr/bin/env python3
"""
Main entry point for giwbridge

This module serves as the CLI entry point, handling argument parsing
and routing to the command implementations in the cli/ module.
"""

import sys
import argparse

from giwbridge import __version__
from giwbridge.utils.logging import setup_logging
from .run import run_command, probe_command


def _add_bridge_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--config', '-c', help='TOML file with a [bridge] table')
    parser.add_argument('--host', help='Address to listen on (default: 0.0.0.0)')
    parser.add_argument('--port', '-p', type=int, help='Port to listen on (default: 9588)')
    parser.add_argument('--window-binary', '-w', help='Path to the window executable (default: giwwindow on PATH)')
    parser.add_argument('--window-arg', dest='window_args', action='append', help='Argument passed to the window executable; repeat for several (default: -style fusion)')
    parser.add_argument('--accept-timeout', type=float, help='Seconds to wait for the window to connect (default: 10)')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress log output')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--verbose', action='store_true', help='Log every frame on the wire')
    parser.add_argument('--log-file', help='Also write logs to this file')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='giwbridge - debugger side of the image watch window')
    parser.add_argument('--version', '-v', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    run_parser = subparsers.add_parser('run', help='Start the window and report its plot requests until it exits')
    _add_bridge_arguments(run_parser)
    run_parser.add_argument('--symbols', '-s', nargs='*', default=[], help='Symbols to announce as available')

    probe_parser = subparsers.add_parser('probe', help='Start the window and print the symbols it observes')
    _add_bridge_arguments(probe_parser)
    probe_parser.add_argument('--json', action='store_true', help='Output as JSON')

    return parser


def main(argv=None):
    """Main entry point for giwbridge CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        quiet=args.quiet,
        debug=args.debug,
        verbose=args.verbose,
        log_file=args.log_file,
    )

    if args.command == 'run':
        return run_command(args)
    elif args.command == 'probe':
        return probe_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
