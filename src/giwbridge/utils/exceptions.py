"""
Custom exceptions for giwbridge.

This module provides a hierarchy of exceptions for the failure cases of the
debugger/window bridge, along with utilities for formatting errors consistently.
"""

import json
from typing import Any, Dict, Optional


class GiwBridgeError(Exception):
    """
    Base exception for all giwbridge errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ============================================================================
# Setup Errors
# ============================================================================

class BridgeSetupError(GiwBridgeError):
    """Raised when the listening endpoint cannot be opened."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        **kwargs
    ):
        details = {}
        if host is not None:
            details["host"] = host
        if port is not None:
            details["port"] = port
        details.update(kwargs)
        super().__init__(message, details, "BridgeSetupError")


class AcceptTimeoutError(BridgeSetupError):
    """Raised when the window process never connected back."""

    def __init__(self, timeout: float, **kwargs):
        super().__init__(
            f"No clients connected to ImageWatch server within {timeout:g}s",
            timeout=timeout,
            **kwargs
        )
        self.error_code = "AcceptTimeoutError"


class PeerLaunchError(GiwBridgeError):
    """Raised when the window process cannot be spawned."""

    def __init__(self, executable: str, reason: str, **kwargs):
        super().__init__(
            f"Could not launch window process '{executable}': {reason}",
            {"executable": executable, "reason": reason, **kwargs},
            "PeerLaunchError"
        )


class ConnectionLostError(GiwBridgeError):
    """Raised when writing to a window that has gone away."""

    def __init__(self, reason: str, **kwargs):
        super().__init__(
            f"Connection to window lost: {reason}",
            {"reason": reason, **kwargs},
            "ConnectionLostError"
        )


# ============================================================================
# Protocol Errors
# ============================================================================

class ProtocolError(GiwBridgeError):
    """Raised when bytes on the wire do not form a valid frame."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, dict(kwargs), "ProtocolError")


class UnknownMessageKindError(ProtocolError):
    """Raised when a frame header carries a tag outside MessageKind."""

    def __init__(self, tag: int, **kwargs):
        super().__init__(f"Received message with incorrect header: {tag}", tag=tag, **kwargs)
        self.tag = tag
        self.error_code = "UnknownMessageKindError"


class TruncatedFrameError(ProtocolError):
    """Raised when the buffer ends before the value being decoded does."""

    def __init__(self, needed: int, available: int, **kwargs):
        super().__init__(
            f"Frame truncated: needed {needed} bytes, {available} available",
            needed=needed,
            available=available,
            **kwargs
        )
        self.error_code = "TruncatedFrameError"


class OversizedFrameError(ProtocolError):
    """Raised when a length prefix exceeds the largest payload accepted."""

    def __init__(self, size: int, limit: int, **kwargs):
        super().__init__(
            f"Length prefix {size} exceeds the {limit} byte limit",
            size=size,
            limit=limit,
            **kwargs
        )
        self.error_code = "OversizedFrameError"


# ============================================================================
# Usage Errors
# ============================================================================

class BridgeStateError(GiwBridgeError):
    """Raised when an operation is invoked on a bridge that is not ready."""

    def __init__(self, operation: str, state: str, **kwargs):
        super().__init__(
            f"{operation} requires a ready bridge (current state: {state})",
            {"operation": operation, "state": state, **kwargs},
            "BridgeStateError"
        )


class BufferMetadataError(GiwBridgeError):
    """Base class for invalid plot_buffer metadata."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(message, details, "BufferMetadataError")
        self.field = field


class MissingFieldError(BufferMetadataError, KeyError):
    """Raised when a required buffer metadata field is absent."""

    def __init__(self, field: str, operation: str = "plot_buffer"):
        super().__init__(
            f"Missing field '{field}' in {operation} metadata",
            field=field,
        )
        self.error_code = "MissingFieldError"

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class FieldTypeError(BufferMetadataError, TypeError):
    """Raised when a buffer metadata field has the wrong type."""

    def __init__(self, field: str, expected: str, actual: str, operation: str = "plot_buffer"):
        super().__init__(
            f"Field '{field}' in {operation} metadata must be {expected}, got {actual}",
            field=field,
            expected=expected,
            actual=actual,
        )
        self.error_code = "FieldTypeError"


class ConfigError(GiwBridgeError):
    """Raised when bridge configuration is invalid."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = {"source": source} if source else {}
        details.update(kwargs)
        super().__init__(message, details, "ConfigError")


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from giwbridge.utils.colors import error

    if isinstance(e, GiwBridgeError):
        if json_mode:
            return e.to_json()
        return error(e.message)

    if json_mode:
        return json.dumps({
            "error": True,
            "type": type(e).__name__,
            "message": str(e)
        }, indent=2)
    return error(str(e))

