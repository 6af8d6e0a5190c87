"""
Bridge <-> Window Protocol Definitions

Defines the closed set of messages exchanged between the debugger-side
bridge and the visualization window over a single TCP connection.

Every frame starts with a MessageKind tag; the payload that follows is
kind-specific and carries its own length prefixes.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Union

DEFAULT_PORT = 9588


class MessageKind(IntEnum):
    """Frame header tag. Values are fixed by the window's wire format."""
    PlotBufferContents = 0
    PlotBufferRequest = 1
    GetObservedSymbols = 2
    GetObservedSymbolsResponse = 3
    SetAvailableSymbols = 4


class BufferType(IntEnum):
    """Element type tag of a plotted buffer."""
    UnsignedByte = 0
    UnsignedShort = 2
    Short = 3
    Int32 = 4
    Float32 = 5
    Float64 = 6

    @property
    def element_size(self) -> int:
        """Size of one channel value in bytes."""
        return _ELEMENT_SIZES[self]


_ELEMENT_SIZES = {
    BufferType.UnsignedByte: 1,
    BufferType.UnsignedShort: 2,
    BufferType.Short: 2,
    BufferType.Int32: 4,
    BufferType.Float32: 4,
    BufferType.Float64: 8,
}


@dataclass
class BufferDescriptor:
    """
    Everything the window needs to display one buffer.

    ``pointer`` is any bytes-like object (usually a memoryview over debuggee
    memory). ``row_stride`` is measured in pixels, like ``width``.
    """
    variable_name: str
    display_name: str
    pointer: Union[bytes, bytearray, memoryview]
    width: int
    height: int
    channels: int
    type: int
    row_stride: int
    pixel_layout: str
    transpose_buffer: bool = False

    @property
    def expected_size(self) -> int:
        """Number of bytes spanned by the buffer according to its geometry."""
        element_size = BufferType(self.type).element_size
        return self.height * self.row_stride * self.channels * element_size

    def raw_bytes(self) -> bytes:
        return memoryview(self.pointer).tobytes()


@dataclass
class UiMessage:
    """Common base of every message variant."""
    kind = None


@dataclass
class PlotBufferContents(UiMessage):
    descriptor: BufferDescriptor
    kind = MessageKind.PlotBufferContents


@dataclass
class PlotBufferRequest(UiMessage):
    """Sent by the window when the user asks to plot a buffer."""
    buffer_name: str
    kind = MessageKind.PlotBufferRequest


@dataclass
class GetObservedSymbols(UiMessage):
    kind = MessageKind.GetObservedSymbols


@dataclass
class GetObservedSymbolsResponse(UiMessage):
    """Symbols the user currently has open in the window."""
    symbols: List[str] = field(default_factory=list)
    kind = MessageKind.GetObservedSymbolsResponse


@dataclass
class SetAvailableSymbols(UiMessage):
    """Symbols in scope at the debugger's current frame."""
    symbols: List[str] = field(default_factory=list)
    kind = MessageKind.SetAvailableSymbols

