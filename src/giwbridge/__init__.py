"""
giwbridge - debugger side of the image watch window
"""

__version__ = "0.1.0"

# Main entry point
from .cli.main import main

# Core components
from .bridge import GiwBridge, BridgeState
from .config import BridgeConfig, load_config

# Protocol
from .ipc import (
    MessageKind,
    BufferType,
    BufferDescriptor,
    Dispatcher,
    Inbox,
    PeerSession,
)

# Utilities
from .utils import (
    GiwBridgeError,
    BridgeSetupError,
    BridgeStateError,
    ProtocolError,
    setup_logging,
    get_logger,
)

__all__ = [
    # Version
    '__version__',
    # Main
    'main',
    # Core
    'GiwBridge',
    'BridgeState',
    'BridgeConfig',
    'load_config',
    # Protocol
    'MessageKind',
    'BufferType',
    'BufferDescriptor',
    'Dispatcher',
    'Inbox',
    'PeerSession',
    # Utils
    'GiwBridgeError',
    'BridgeSetupError',
    'BridgeStateError',
    'ProtocolError',
    'setup_logging',
    'get_logger',
]
