"""
Wire codec for the bridge protocol.

Frame layout: ``[i32 kind][payload]``. There is no length prefix on the
frame as a whole; each payload shape carries its own prefixes:

- string: ``u64`` byte length followed by UTF-8 bytes, no terminator.
  Bytes that are not valid UTF-8 decode to surrogate escapes and encode
  back unchanged, so a name always reaches the debugger as sent
- symbol list: ``u64`` count followed by that many strings
- buffer descriptor: three strings (variable name, display name, pixel
  layout), a ``u8`` transpose flag, five ``i32`` (width, height, channels,
  type, row stride) and the pixel bytes as a ``u64`` length plus data

All integers are little-endian.

Length prefixes above the MAX_* limits below are rejected with
OversizedFrameError rather than waited for.
"""

import struct
from typing import Iterable, List

from giwbridge.ipc.protocol import (
    BufferDescriptor,
    GetObservedSymbols,
    GetObservedSymbolsResponse,
    MessageKind,
    PlotBufferContents,
    PlotBufferRequest,
    SetAvailableSymbols,
    UiMessage,
)
from giwbridge.utils.exceptions import (
    OversizedFrameError,
    TruncatedFrameError,
    UnknownMessageKindError,
)

HEADER = struct.Struct('<i')
SIZE = struct.Struct('<Q')
FLAG = struct.Struct('<B')
GEOMETRY = struct.Struct('<5i')

HEADER_SIZE = HEADER.size

MAX_STRING_SIZE = 1 << 20
MAX_SYMBOL_COUNT = 1 << 20
MAX_PIXEL_DATA_SIZE = 1 << 32


# ---- encoding ----

def encode(kind: MessageKind, payload: bytes = b"") -> bytes:
    """Prefix an already encoded payload with the header for ``kind``."""
    return HEADER.pack(int(kind)) + payload


def encode_string(value: str) -> bytes:
    data = value.encode('utf-8', errors='surrogateescape')
    return SIZE.pack(len(data)) + data


def encode_symbol_list(symbols: Iterable[str]) -> bytes:
    symbols = list(symbols)
    parts = [SIZE.pack(len(symbols))]
    parts.extend(encode_string(symbol) for symbol in symbols)
    return b"".join(parts)


def encode_buffer_descriptor(descriptor: BufferDescriptor) -> bytes:
    data = descriptor.raw_bytes()
    return b"".join([
        encode_string(descriptor.variable_name),
        encode_string(descriptor.display_name),
        encode_string(descriptor.pixel_layout),
        FLAG.pack(1 if descriptor.transpose_buffer else 0),
        GEOMETRY.pack(
            descriptor.width,
            descriptor.height,
            descriptor.channels,
            int(descriptor.type),
            descriptor.row_stride,
        ),
        SIZE.pack(len(data)),
        data,
    ])


def encode_message(message: UiMessage) -> bytes:
    """Encode a complete frame for any message variant."""
    if isinstance(message, PlotBufferContents):
        payload = encode_buffer_descriptor(message.descriptor)
    elif isinstance(message, PlotBufferRequest):
        payload = encode_string(message.buffer_name)
    elif isinstance(message, GetObservedSymbols):
        payload = b""
    elif isinstance(message, (GetObservedSymbolsResponse, SetAvailableSymbols)):
        payload = encode_symbol_list(message.symbols)
    else:
        raise TypeError(f"Cannot encode {type(message).__name__}")
    return encode(message.kind, payload)


# ---- decoding ----

def decode_header(data: bytes) -> MessageKind:
    """
    Decode a frame header.

    Raises:
        TruncatedFrameError: fewer than HEADER_SIZE bytes were given
        UnknownMessageKindError: the tag is not a MessageKind
    """
    if len(data) < HEADER_SIZE:
        raise TruncatedFrameError(HEADER_SIZE, len(data))
    (tag,) = HEADER.unpack_from(data)
    try:
        return MessageKind(tag)
    except ValueError:
        raise UnknownMessageKindError(tag) from None


class FrameReader:
    """
    Cursor over a buffer of received bytes.

    Every read either consumes a complete value or raises
    TruncatedFrameError without a partial result; callers rewind by
    restoring ``offset``.
    """

    def __init__(self, data, offset: int = 0):
        self.data = memoryview(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _take(self, count: int) -> memoryview:
        if self.remaining < count:
            raise TruncatedFrameError(count, self.remaining)
        chunk = self.data[self.offset:self.offset + count]
        self.offset += count
        return chunk

    def read_header(self) -> MessageKind:
        raw = self._take(HEADER_SIZE)
        return decode_header(raw)

    def read_size(self, limit: int) -> int:
        (size,) = SIZE.unpack(self._take(SIZE.size))
        if size > limit:
            raise OversizedFrameError(size, limit)
        return size

    def read_string(self) -> str:
        length = self.read_size(MAX_STRING_SIZE)
        return self._take(length).tobytes().decode('utf-8', errors='surrogateescape')

    def read_symbol_list(self) -> List[str]:
        count = self.read_size(MAX_SYMBOL_COUNT)
        return [self.read_string() for _ in range(count)]

    def read_buffer_descriptor(self) -> BufferDescriptor:
        variable_name = self.read_string()
        display_name = self.read_string()
        pixel_layout = self.read_string()
        (transpose,) = FLAG.unpack(self._take(FLAG.size))
        width, height, channels, buffer_type, row_stride = GEOMETRY.unpack(
            self._take(GEOMETRY.size))
        length = self.read_size(MAX_PIXEL_DATA_SIZE)
        pixels = self._take(length).tobytes()
        return BufferDescriptor(
            variable_name=variable_name,
            display_name=display_name,
            pointer=pixels,
            width=width,
            height=height,
            channels=channels,
            type=buffer_type,
            row_stride=row_stride,
            pixel_layout=pixel_layout,
            transpose_buffer=bool(transpose),
        )


def decode_payload(kind: MessageKind, reader: FrameReader) -> UiMessage:
    """Decode the payload that follows a header of the given kind."""
    if kind is MessageKind.PlotBufferContents:
        return PlotBufferContents(reader.read_buffer_descriptor())
    if kind is MessageKind.PlotBufferRequest:
        return PlotBufferRequest(reader.read_string())
    if kind is MessageKind.GetObservedSymbols:
        return GetObservedSymbols()
    if kind is MessageKind.GetObservedSymbolsResponse:
        return GetObservedSymbolsResponse(reader.read_symbol_list())
    if kind is MessageKind.SetAvailableSymbols:
        return SetAvailableSymbols(reader.read_symbol_list())
    raise AssertionError(f"Unhandled message kind {kind!r}")


def decode_message(reader: FrameReader) -> UiMessage:
    """
    Read one complete frame.

    On TruncatedFrameError the reader is rewound to the start of the frame.
    On UnknownMessageKindError the header has been consumed, so the caller
    resumes at the next header-aligned offset.
    """
    start = reader.offset
    kind = reader.read_header()
    try:
        return decode_payload(kind, reader)
    except TruncatedFrameError:
        reader.offset = start
        raise


def decode_frames(data: bytes) -> List[UiMessage]:
    """Decode a buffer holding only complete, well-formed frames."""
    reader = FrameReader(data)
    messages = []
    while reader.remaining:
        messages.append(decode_message(reader))
    return messages
