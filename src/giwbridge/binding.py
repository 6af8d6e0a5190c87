"""
Entry points for debugger scripts.

Debugger extensions hold the bridge as an opaque handle and pass loosely
typed values (dicts, lists of bytes or str). These functions check the
handle and the arguments, convert them, and forward to GiwBridge.
"""

from typing import Any, Callable, List, Mapping, Optional

from giwbridge.bridge import GiwBridge
from giwbridge.config import BridgeConfig
from giwbridge.ipc.protocol import BufferDescriptor, BufferType
from giwbridge.utils.exceptions import FieldTypeError, MissingFieldError

REQUIRED_FIELDS = (
    "variable_name",
    "display_name",
    "pointer",
    "width",
    "height",
    "channels",
    "type",
    "row_stride",
    "pixel_layout",
)

STRING_FIELDS = ("variable_name", "display_name", "pixel_layout")
INT_FIELDS = ("width", "height", "channels", "type", "row_stride")


def _check_handle(handle: Optional[GiwBridge], operation: str) -> GiwBridge:
    if handle is None:
        raise RuntimeError(f"{operation} received null application handler")
    if not isinstance(handle, GiwBridge):
        raise TypeError(
            f"{operation} expected a GiwBridge handle, got {type(handle).__name__}"
        )
    return handle


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="surrogateescape")
    return value


def _is_text(value: Any) -> bool:
    return isinstance(value, (str, bytes))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_buffer(value: Any) -> bool:
    if isinstance(value, (memoryview, bytes, bytearray)):
        return True
    try:
        memoryview(value).release()
    except TypeError:
        return False
    return True


def buffer_descriptor_from_metadata(buffer_metadata: Mapping[str, Any]) -> BufferDescriptor:
    """
    Validate a plot_buffer metadata dict and build a BufferDescriptor.

    Raises:
        TypeError: if buffer_metadata is not a dict
        MissingFieldError: if a required field is absent
        FieldTypeError: if a field has the wrong type or value
    """
    if not isinstance(buffer_metadata, dict):
        raise TypeError("Invalid object given to plot_buffer (was expecting a dict).")

    for name in REQUIRED_FIELDS:
        if name not in buffer_metadata:
            raise MissingFieldError(name)

    for name in STRING_FIELDS:
        value = buffer_metadata[name]
        if not _is_text(value):
            raise FieldTypeError(name, "str or bytes", type(value).__name__)
    for name in INT_FIELDS:
        value = buffer_metadata[name]
        if not _is_int(value):
            raise FieldTypeError(name, "int", type(value).__name__)
    pointer = buffer_metadata["pointer"]
    if not _is_buffer(pointer):
        raise FieldTypeError("pointer", "a buffer (memoryview or bytes-like)", type(pointer).__name__)

    transpose_buffer = buffer_metadata.get("transpose_buffer", False)
    if not isinstance(transpose_buffer, bool):
        raise FieldTypeError("transpose_buffer", "bool", type(transpose_buffer).__name__)

    try:
        buffer_type = BufferType(buffer_metadata["type"])
    except ValueError:
        valid = ", ".join(f"{t.value} ({t.name})" for t in BufferType)
        raise FieldTypeError("type", f"one of {valid}", str(buffer_metadata["type"])) from None

    return BufferDescriptor(
        variable_name=_as_text(buffer_metadata["variable_name"]),
        display_name=_as_text(buffer_metadata["display_name"]),
        pointer=pointer,
        width=buffer_metadata["width"],
        height=buffer_metadata["height"],
        channels=buffer_metadata["channels"],
        type=buffer_type,
        row_stride=buffer_metadata["row_stride"],
        pixel_layout=_as_text(buffer_metadata["pixel_layout"]),
        transpose_buffer=transpose_buffer,
    )


def initialize(plot_callback: Callable[[str], int], config: Optional[BridgeConfig] = None) -> GiwBridge:
    """Create a bridge handle. Nothing is started until exec_bridge()."""
    if not callable(plot_callback):
        raise TypeError("plot_callback must be callable")
    return GiwBridge(plot_callback, config)


def cleanup(handle: Optional[GiwBridge]) -> None:
    _check_handle(handle, "cleanup").close()


def exec_bridge(handle: Optional[GiwBridge]) -> bool:
    """Start the window and wait for it to connect."""
    return _check_handle(handle, "exec_bridge").start()


def is_window_ready(handle: Optional[GiwBridge]) -> bool:
    return _check_handle(handle, "is_window_ready").is_ready()


def get_observed_buffers(handle: Optional[GiwBridge]) -> List[str]:
    return _check_handle(handle, "get_observed_buffers").query_observed_symbols()


def set_available_symbols(handle: Optional[GiwBridge], available_vars: Any) -> None:
    bridge = _check_handle(handle, "set_available_symbols")
    if not isinstance(available_vars, (list, tuple)):
        raise TypeError(
            f"set_available_symbols expected a list, got {type(available_vars).__name__}"
        )
    names = []
    for position, name in enumerate(available_vars):
        if not _is_text(name):
            raise TypeError(
                f"Symbol at position {position} must be str or bytes, got {type(name).__name__}"
            )
        names.append(_as_text(name))
    bridge.push_available_symbols(names)


def run_event_loop(handle: Optional[GiwBridge]) -> int:
    return _check_handle(handle, "run_event_loop").run_one_tick()


def plot_buffer(handle: Optional[GiwBridge], buffer_metadata: Any) -> None:
    bridge = _check_handle(handle, "plot_buffer")
    bridge.plot_buffer(buffer_descriptor_from_metadata(buffer_metadata))
