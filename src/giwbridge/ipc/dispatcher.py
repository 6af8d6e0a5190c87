"""
Event loop primitives: drain the socket into the Inbox and hand messages
out by kind.
"""

import select
import socket
from typing import Callable, Optional

from giwbridge.ipc.codec import FrameReader, decode_message
from giwbridge.ipc.inbox import Inbox
from giwbridge.ipc.protocol import MessageKind, UiMessage
from giwbridge.utils.exceptions import (
    OversizedFrameError,
    TruncatedFrameError,
    UnknownMessageKindError,
)
from giwbridge.utils.logging import get_logger, log_trace

log = get_logger('ipc.dispatcher')

RECV_SIZE = 64 * 1024


class Dispatcher:
    """
    Reads frames off a connected socket and files them by kind.

    The dispatcher borrows both the socket and the inbox; it never closes
    either. Bytes of a frame that has not fully arrived are kept until a
    later pump completes it. A frame whose length prefix is over the codec
    limits cannot be skipped, so the stream is abandoned: buffered bytes are
    dropped and the dispatcher behaves as if the window hung up.
    """

    def __init__(
        self,
        sock: socket.socket,
        inbox: Inbox,
        on_disconnect: Optional[Callable[[], None]] = None,
    ):
        self.sock = sock
        self.inbox = inbox
        self.on_disconnect = on_disconnect
        self.eof = False
        self._buffer = bytearray()

    def try_take(self, kind: MessageKind) -> Optional[UiMessage]:
        """Non-blocking: the pending message of ``kind`` or None."""
        return self.inbox.try_take(kind)

    def pump(self, max_wait: float) -> int:
        """
        Wait up to ``max_wait`` seconds for the socket to become readable,
        then read everything already available and file every complete
        frame in arrival order.

        Returns:
            Number of messages filed
        """
        if self.eof:
            return 0
        readable, _, _ = select.select([self.sock], [], [], max_wait)
        if not readable:
            return 0

        self._receive_available()
        return self._decode_buffered()

    def fetch_blocking(self, kind: MessageKind, max_wait: float) -> Optional[UiMessage]:
        """
        Return the pending message of ``kind``, pumping at most once if it
        has not arrived yet.
        """
        message = self.try_take(kind)
        if message is not None:
            return message
        self.pump(max_wait)
        return self.try_take(kind)

    def drain(self, kind: MessageKind, callback: Callable[[UiMessage], object]) -> int:
        """Invoke ``callback`` for every pending message of ``kind``."""
        count = 0
        while True:
            message = self.try_take(kind)
            if message is None:
                return count
            callback(message)
            count += 1

    def _receive_available(self) -> None:
        while True:
            try:
                chunk = self.sock.recv(RECV_SIZE)
            except (ConnectionResetError, ConnectionAbortedError) as e:
                log.error(f"Connection to window reset: {e}")
                chunk = b""
            if not chunk:
                self._handle_eof()
                return
            self._buffer += chunk
            log_trace(log, f"Received {len(chunk)} bytes")

            readable, _, _ = select.select([self.sock], [], [], 0)
            if not readable:
                return

    def _handle_eof(self, reason: str = "Window closed the connection") -> None:
        self.eof = True
        log.warning(reason)
        if self.on_disconnect is not None:
            self.on_disconnect()

    def _decode_buffered(self) -> int:
        reader = FrameReader(bytes(self._buffer))
        filed = 0
        while reader.remaining:
            try:
                message = decode_message(reader)
            except UnknownMessageKindError as e:
                log.error(e.message)
                continue
            except OversizedFrameError as e:
                log.error(e.message)
                self._buffer.clear()
                if not self.eof:
                    self._handle_eof("Stopped reading from the window after a corrupt frame")
                return filed
            except TruncatedFrameError:
                if self.eof:
                    log.error(f"Discarding {reader.remaining} bytes of an incomplete frame")
                    reader.offset = len(reader.data)
                break
            log_trace(log, f"Decoded {message.kind.name}")
            self.inbox.file(message)
            filed += 1

        consumed = reader.offset
        del self._buffer[:consumed]
        return filed
