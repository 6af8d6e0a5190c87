"""
Bridge <-> window messaging layer

Wire codec, peer session, inbox and dispatcher.
"""

from .protocol import (
    DEFAULT_PORT,
    MessageKind,
    BufferType,
    BufferDescriptor,
    UiMessage,
    PlotBufferContents,
    PlotBufferRequest,
    GetObservedSymbols,
    GetObservedSymbolsResponse,
    SetAvailableSymbols,
)
from .codec import FrameReader, encode, encode_message, decode_header, decode_message
from .inbox import Inbox
from .dispatcher import Dispatcher
from .session import PeerSession

__all__ = [
    "DEFAULT_PORT",
    "MessageKind",
    "BufferType",
    "BufferDescriptor",
    "UiMessage",
    "PlotBufferContents",
    "PlotBufferRequest",
    "GetObservedSymbols",
    "GetObservedSymbolsResponse",
    "SetAvailableSymbols",
    "FrameReader",
    "encode",
    "encode_message",
    "decode_header",
    "decode_message",
    "Inbox",
    "Dispatcher",
    "PeerSession",
]
