#!/usr/bin/env python3
"""
Scriptable stand-in for the image watch window.

Connects to a running bridge, sends the scripted pushes, answers every
GetObservedSymbols request with the configured symbol list and logs what
the bridge sends. Used by the test suite and for manual smoke runs:

    giwbridge run -w python3 --window-arg src/tools/stub_window.py \
        --window-arg=--plot --window-arg img
"""

import argparse
import select
import socket
import sys
import time
from typing import List, Optional

from giwbridge.ipc.codec import HEADER, FrameReader, decode_message, encode_message
from giwbridge.ipc.protocol import (
    DEFAULT_PORT,
    GetObservedSymbols,
    GetObservedSymbolsResponse,
    PlotBufferContents,
    PlotBufferRequest,
    SetAvailableSymbols,
)
from giwbridge.utils.exceptions import TruncatedFrameError, UnknownMessageKindError
from giwbridge.utils.logging import get_logger, setup_logging

log = get_logger('stub_window')

CONNECT_TIMEOUT = 10.0


class StubWindow:
    """Minimal window peer speaking the bridge protocol."""

    def __init__(self, host: str, port: int, observed: List[str], answer_requests: bool = True):
        self.host = host
        self.port = port
        self.observed = observed
        self.answer_requests = answer_requests
        self.sock: Optional[socket.socket] = None
        self._buffer = bytearray()

    def connect(self) -> None:
        deadline = time.monotonic() + CONNECT_TIMEOUT
        while True:
            try:
                self.sock = socket.create_connection((self.host, self.port), timeout=1.0)
                return
            except OSError:
                if time.monotonic() >= deadline:
                    raise
                time.sleep(0.05)

    def send_script(self, unknown_tags: List[int], plots: List[str], push_observed: bool) -> None:
        # One write, so the bridge sees every scripted frame in a single pump
        frames = [HEADER.pack(tag) for tag in unknown_tags]
        if push_observed:
            frames.append(encode_message(GetObservedSymbolsResponse(self.observed)))
        frames.extend(encode_message(PlotBufferRequest(name)) for name in plots)
        if frames:
            self.sock.sendall(b"".join(frames))

    def serve(self, linger: float) -> None:
        """Answer requests until the bridge disconnects or ``linger`` passes."""
        deadline = time.monotonic() + linger
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            readable, _, _ = select.select([self.sock], [], [], remaining)
            if not readable:
                return
            try:
                chunk = self.sock.recv(64 * 1024)
            except OSError:
                return
            if not chunk:
                return
            self._buffer += chunk
            self._handle_buffered()

    def _handle_buffered(self) -> None:
        reader = FrameReader(bytes(self._buffer))
        while reader.remaining:
            try:
                message = decode_message(reader)
            except UnknownMessageKindError as e:
                log.error(e.message)
                continue
            except TruncatedFrameError:
                break
            self._handle(message)
        del self._buffer[:reader.offset]

    def _handle(self, message) -> None:
        if isinstance(message, GetObservedSymbols):
            if not self.answer_requests:
                log.info("Ignoring GetObservedSymbols")
                return
            self.sock.sendall(encode_message(GetObservedSymbolsResponse(self.observed)))
        elif isinstance(message, SetAvailableSymbols):
            log.info(f"Available symbols: {', '.join(message.symbols)}")
        elif isinstance(message, PlotBufferContents):
            descriptor = message.descriptor
            log.info(
                f"Buffer {descriptor.display_name}: {descriptor.width}x{descriptor.height}"
                f"x{descriptor.channels}, {len(descriptor.raw_bytes())} bytes"
            )

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Stub image watch window')
    parser.add_argument('--host', default='127.0.0.1', help='Bridge address')
    parser.add_argument('--port', '-p', type=int, default=DEFAULT_PORT, help='Bridge port')
    parser.add_argument('--observed', nargs='*', default=[], help='Symbols reported as observed')
    parser.add_argument('--push-observed', action='store_true', help='Send the observed symbols right after connecting')
    parser.add_argument('--plot', nargs='*', default=[], help='Buffer names to request, in order')
    parser.add_argument('--unknown-tag', type=int, action='append', default=[], help='Send a bare header with this tag first')
    parser.add_argument('--ignore-requests', action='store_true', help='Never answer GetObservedSymbols')
    parser.add_argument('--linger', type=float, default=30.0, help='Seconds to keep serving after the script')
    parser.add_argument('-style', dest='style', help='Accepted for compatibility with the real window')
    args = parser.parse_args(argv)

    setup_logging()

    window = StubWindow(args.host, args.port, args.observed, not args.ignore_requests)
    try:
        window.connect()
    except OSError as e:
        log.error(f"Could not connect to bridge at {args.host}:{args.port}: {e}")
        return 1

    try:
        window.send_script(args.unknown_tag, args.plot, args.push_observed)
        window.serve(args.linger)
    finally:
        window.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
