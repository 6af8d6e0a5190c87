"""
Utilities module for giwbridge.

Provides exception handling, logging and colors.
"""

from .exceptions import (
    GiwBridgeError,
    BridgeSetupError,
    AcceptTimeoutError,
    PeerLaunchError,
    ConnectionLostError,
    ProtocolError,
    UnknownMessageKindError,
    TruncatedFrameError,
    OversizedFrameError,
    BridgeStateError,
    BufferMetadataError,
    MissingFieldError,
    FieldTypeError,
    ConfigError,
    format_error,
)
from .logging import setup_logging, get_logger, TRACE
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    error, warning, info,
    symbol_name,
)

__all__ = [
    # Exceptions
    'GiwBridgeError',
    'BridgeSetupError',
    'AcceptTimeoutError',
    'PeerLaunchError',
    'ConnectionLostError',
    'ProtocolError',
    'UnknownMessageKindError',
    'TruncatedFrameError',
    'OversizedFrameError',
    'BridgeStateError',
    'BufferMetadataError',
    'MissingFieldError',
    'FieldTypeError',
    'ConfigError',
    # Formatting
    'format_error',
    # Logging
    'setup_logging',
    'get_logger',
    'TRACE',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'error', 'warning', 'info',
    'symbol_name',
]
