"""
test_session.py — Listening, accepting, liveness and teardown of a peer session
"""

import socket
import sys

import pytest

from giwbridge.ipc.session import PeerSession
from giwbridge.utils.exceptions import (
    AcceptTimeoutError,
    BridgeSetupError,
    ConnectionLostError,
    PeerLaunchError,
)

SLEEPER = ["-c", "import time; time.sleep(60)"]


@pytest.fixture
def session():
    s = PeerSession()
    yield s
    s.close()


def connect_client(session):
    return socket.create_connection(("127.0.0.1", session.port), timeout=5)


class TestEndpoint:

    def test_open_on_ephemeral_port(self, session):
        session.open(0, "127.0.0.1")
        assert session.port > 0

    def test_bind_failure_is_reported(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
            occupied.bind(("127.0.0.1", 0))
            occupied.listen(1)
            port = occupied.getsockname()[1]

            with pytest.raises(BridgeSetupError) as excinfo:
                PeerSession().open(port, "127.0.0.1")
            assert excinfo.value.details["port"] == port

    def test_accept_times_out_without_client(self, session):
        session.open(0, "127.0.0.1")
        with pytest.raises(AcceptTimeoutError) as excinfo:
            session.accept(0.1)
        assert not session.connected
        assert "No clients connected to ImageWatch server" in excinfo.value.message
        assert isinstance(excinfo.value, BridgeSetupError)

    def test_accept_without_listener(self, session):
        with pytest.raises(BridgeSetupError):
            session.accept(0.1)

    def test_only_one_connection_is_accepted(self, session):
        session.open(0, "127.0.0.1")
        port = session.port
        client = connect_client(session)
        try:
            session.accept(5)
            assert session.connected
            with pytest.raises(OSError):
                socket.create_connection(("127.0.0.1", port), timeout=1)
        finally:
            client.close()

    def test_send_reaches_the_client(self, session):
        session.open(0, "127.0.0.1")
        client = connect_client(session)
        try:
            session.accept(5)
            session.send(b"hello")
            assert client.recv(5) == b"hello"
        finally:
            client.close()

    def test_send_without_connection(self, session):
        with pytest.raises(ConnectionLostError):
            session.send(b"x")


class TestProcess:

    def test_launch_failure_is_reported(self, session):
        with pytest.raises(PeerLaunchError) as excinfo:
            session.launch_peer("/nonexistent/giwwindow", ["-style", "fusion"])
        assert excinfo.value.details["executable"] == "/nonexistent/giwwindow"

    def test_alive_needs_connection_and_running_process(self, session):
        session.open(0, "127.0.0.1")
        session.launch_peer(sys.executable, SLEEPER)
        assert not session.is_alive()

        client = connect_client(session)
        try:
            session.accept(5)
            assert session.is_alive()

            session.process.kill()
            session.process.wait(timeout=10)
            assert not session.is_alive()
        finally:
            client.close()

    def test_alive_false_after_disconnect(self, session):
        session.open(0, "127.0.0.1")
        session.launch_peer(sys.executable, SLEEPER)
        client = connect_client(session)
        try:
            session.accept(5)
            session.mark_disconnected()
            assert not session.is_alive()
        finally:
            client.close()

    def test_close_kills_the_process_and_is_idempotent(self, session):
        session.open(0, "127.0.0.1")
        session.launch_peer(sys.executable, SLEEPER)
        process = session.process

        session.close()
        assert process.poll() is not None
        assert session.process is None
        assert session.listener is None

        session.close()
        assert not session.is_alive()
