"""
Run and probe command implementations.

Both commands start a bridge with a window process. ``run`` keeps ticking
the event loop and reports plot requests until the window goes away;
``probe`` asks the window for its observed symbols once and exits.
"""

import json
from typing import Optional

from giwbridge.bridge import GiwBridge
from giwbridge.config import BridgeConfig, load_config
from giwbridge.utils.colors import error, info, symbol_name, warning
from giwbridge.utils.exceptions import ConfigError, format_error
from giwbridge.utils.logging import get_logger

log = get_logger('cli')


def config_from_args(args) -> BridgeConfig:
    """Build the bridge configuration from file, environment and flags."""
    window_args = getattr(args, 'window_args', None)
    return load_config(
        config_file=getattr(args, 'config', None),
        host=getattr(args, 'host', None),
        port=getattr(args, 'port', None),
        window_binary=getattr(args, 'window_binary', None),
        window_args=list(window_args) if window_args else None,
        accept_timeout=getattr(args, 'accept_timeout', None),
    )


def _printable(name: str) -> str:
    # Non-UTF-8 bytes in a name arrive as surrogate escapes
    return name.encode('utf-8', errors='backslashreplace').decode('utf-8')


def _print_plot_request(buffer_name: str) -> int:
    print(info(f"Plot requested: {symbol_name(_printable(buffer_name))}"))
    return 0


def _start(args, plot_callback) -> Optional[GiwBridge]:
    try:
        config = config_from_args(args)
    except ConfigError as e:
        print(format_error(e, getattr(args, 'json', False)))
        return None

    bridge = GiwBridge(plot_callback, config)
    if not bridge.start():
        print(error(f"Could not start window '{config.window_binary}'"))
        bridge.close()
        return None
    return bridge


def run_command(args) -> int:
    """
    Execute the run command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    bridge = _start(args, _print_plot_request)
    if bridge is None:
        return 1

    with bridge:
        symbols = getattr(args, 'symbols', None) or []
        try:
            if symbols:
                bridge.push_available_symbols(symbols)
            while bridge.is_ready():
                bridge.run_one_tick()
        except KeyboardInterrupt:
            print("\nBridge stopped.")
            return 0

    log.info("Window exited")
    return 0


def probe_command(args) -> int:
    """Query the window's observed symbols once and print them."""
    json_mode = getattr(args, 'json', False)
    bridge = _start(args, lambda name: 0)
    if bridge is None:
        return 1

    with bridge:
        symbols = bridge.request_observed_symbols()

    if json_mode:
        print(json.dumps({"answered": symbols is not None, "symbols": symbols or []}, indent=2))
    elif symbols is None:
        print(warning("Window did not answer"))
    elif not symbols:
        print("No observed symbols")
    else:
        for name in symbols:
            print(symbol_name(_printable(name)))
    return 0 if symbols is not None else 2
