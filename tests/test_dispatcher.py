"""
test_dispatcher.py — Pumping frames off a socket into the inbox

Uses a local socketpair; the test holds the window's end.
"""

import logging
import socket
import struct
from unittest.mock import MagicMock, patch

import pytest

from giwbridge.ipc.codec import encode_message
from giwbridge.ipc.dispatcher import Dispatcher
from giwbridge.ipc.inbox import Inbox
from giwbridge.ipc.protocol import GetObservedSymbolsResponse, MessageKind, PlotBufferRequest

WAIT = 2.0


@pytest.fixture
def sockets():
    bridge_end, window_end = socket.socketpair()
    yield bridge_end, window_end
    bridge_end.close()
    window_end.close()


@pytest.fixture
def dispatcher(sockets):
    bridge_end, _ = sockets
    return Dispatcher(bridge_end, Inbox())


class TestPump:

    def test_nothing_to_read(self, dispatcher):
        assert dispatcher.pump(0.05) == 0
        assert len(dispatcher.inbox) == 0

    def test_drains_every_available_frame(self, sockets, dispatcher):
        _, window = sockets
        window.sendall(
            encode_message(GetObservedSymbolsResponse(["a", "b"]))
            + encode_message(PlotBufferRequest("img"))
        )

        assert dispatcher.pump(WAIT) == 2
        assert dispatcher.try_take(MessageKind.GetObservedSymbolsResponse).symbols == ["a", "b"]
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "img"

    def test_same_kind_collapses_to_latest(self, sockets, dispatcher):
        _, window = sockets
        window.sendall(
            encode_message(PlotBufferRequest("img1"))
            + encode_message(PlotBufferRequest("img2"))
        )

        dispatcher.pump(WAIT)
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "img2"
        assert dispatcher.try_take(MessageKind.PlotBufferRequest) is None

    def test_partial_frame_waits_for_the_rest(self, sockets, dispatcher):
        _, window = sockets
        frame = encode_message(PlotBufferRequest("split"))
        window.sendall(frame[:7])

        assert dispatcher.pump(WAIT) == 0
        assert dispatcher.try_take(MessageKind.PlotBufferRequest) is None

        window.sendall(frame[7:])
        assert dispatcher.pump(WAIT) == 1
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "split"

    def test_unknown_tag_is_skipped(self, sockets, dispatcher, caplog):
        _, window = sockets
        window.sendall(struct.pack("<i", 77) + encode_message(PlotBufferRequest("foo")))

        with caplog.at_level(logging.ERROR, logger="giwbridge"):
            assert dispatcher.pump(WAIT) == 1

        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "foo"
        assert "incorrect header: 77" in caplog.text

    def test_peer_close_is_reported(self, sockets):
        bridge_end, window = sockets
        on_disconnect = MagicMock()
        dispatcher = Dispatcher(bridge_end, Inbox(), on_disconnect=on_disconnect)

        window.sendall(encode_message(PlotBufferRequest("last")))
        window.close()

        assert dispatcher.pump(WAIT) == 1
        assert dispatcher.eof
        on_disconnect.assert_called_once_with()
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "last"
        # Nothing left to wait on once the window is gone
        assert dispatcher.pump(WAIT) == 0

    def test_oversized_length_abandons_the_stream(self, sockets, caplog):
        bridge_end, window = sockets
        on_disconnect = MagicMock()
        dispatcher = Dispatcher(bridge_end, Inbox(), on_disconnect=on_disconnect)

        window.sendall(
            encode_message(PlotBufferRequest("before"))
            + struct.pack("<iQ", int(MessageKind.PlotBufferRequest), 2 ** 40)
        )
        with caplog.at_level(logging.ERROR, logger="giwbridge"):
            assert dispatcher.pump(WAIT) == 1

        assert "exceeds" in caplog.text
        assert dispatcher.eof
        on_disconnect.assert_called_once_with()
        assert dispatcher._buffer == bytearray()
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "before"

        # Later frames are not read into a buffer that can never drain
        for _ in range(5):
            window.sendall(encode_message(PlotBufferRequest("after")))
            assert dispatcher.pump(0.05) == 0
        assert dispatcher.try_take(MessageKind.PlotBufferRequest) is None
        assert dispatcher._buffer == bytearray()


class TestFetchBlocking:

    def test_pending_message_is_returned_without_pumping(self, dispatcher):
        dispatcher.inbox.file(GetObservedSymbolsResponse(["x"]))

        with patch.object(dispatcher, "pump", wraps=dispatcher.pump) as pump:
            message = dispatcher.fetch_blocking(MessageKind.GetObservedSymbolsResponse, WAIT)

        assert message.symbols == ["x"]
        pump.assert_not_called()

    def test_absent_message_pumps_exactly_once(self, dispatcher):
        with patch.object(dispatcher, "pump", wraps=dispatcher.pump) as pump:
            message = dispatcher.fetch_blocking(MessageKind.GetObservedSymbolsResponse, 0.05)

        assert message is None
        pump.assert_called_once_with(0.05)

    def test_message_arriving_during_the_pump(self, sockets, dispatcher):
        _, window = sockets
        window.sendall(encode_message(GetObservedSymbolsResponse(["late"])))

        with patch.object(dispatcher, "pump", wraps=dispatcher.pump) as pump:
            message = dispatcher.fetch_blocking(MessageKind.GetObservedSymbolsResponse, WAIT)

        assert message.symbols == ["late"]
        assert pump.call_count == 1

    def test_other_kinds_stay_filed(self, sockets, dispatcher):
        _, window = sockets
        window.sendall(
            encode_message(PlotBufferRequest("img"))
            + encode_message(GetObservedSymbolsResponse(["a"]))
        )

        dispatcher.fetch_blocking(MessageKind.GetObservedSymbolsResponse, WAIT)
        assert dispatcher.try_take(MessageKind.PlotBufferRequest).buffer_name == "img"


def test_drain_invokes_callback_per_pending_message(dispatcher):
    dispatcher.inbox.file(PlotBufferRequest("img"))
    received = []

    assert dispatcher.drain(MessageKind.PlotBufferRequest, received.append) == 1
    assert received == [PlotBufferRequest("img")]
    assert dispatcher.drain(MessageKind.PlotBufferRequest, received.append) == 0
