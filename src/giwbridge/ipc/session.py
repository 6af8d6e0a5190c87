"""
Peer session: the listening endpoint, the single accepted connection and the
window process handle.
"""

import os
import socket
import subprocess
from typing import Optional, Sequence

from giwbridge.utils.exceptions import (
    AcceptTimeoutError,
    BridgeSetupError,
    ConnectionLostError,
    PeerLaunchError,
)
from giwbridge.utils.logging import get_logger

log = get_logger('ipc.session')

# Upper bound for a single blocking write to the window
SEND_TIMEOUT = 10.0
KILL_WAIT_TIMEOUT = 5.0


class PeerSession:
    """
    Owns the server socket, the one connection accepted on it and the
    spawned window process.

    Lifecycle: empty -> listening (open) -> launched (launch_peer) ->
    connected (accept) -> closed (close).
    """

    def __init__(self):
        self.listener: Optional[socket.socket] = None
        self.connection: Optional[socket.socket] = None
        self.process: Optional[subprocess.Popen] = None
        self.peer_address = None
        self._disconnected = False

    # ---- endpoint ----

    def open(self, port: int, host: str = "0.0.0.0") -> None:
        """
        Bind and listen on ``host:port``.

        Raises:
            BridgeSetupError: if the address cannot be bound
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen(1)
        except OSError as e:
            sock.close()
            raise BridgeSetupError(
                f"Could not start TCP server on {host}:{port}: {e.strerror or e}",
                host=host,
                port=port,
            ) from e
        self.listener = sock
        log.debug(f"Listening on {host}:{self.port}")

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when opened on port 0."""
        if self.listener is None:
            return None
        return self.listener.getsockname()[1]

    # ---- process ----

    def launch_peer(self, executable: str, args: Sequence[str] = ()) -> None:
        """
        Spawn the window process. Its stderr is merged into stdout, which
        is shared with the host.

        Raises:
            PeerLaunchError: if the executable cannot be started
        """
        command = [executable, *args]
        log.debug(f"Launching window: {' '.join(command)}")
        try:
            self.process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise PeerLaunchError(executable, e.strerror or str(e)) from e
        log.debug(f"Window process started with pid {self.process.pid}")

    # ---- connection ----

    def accept(self, timeout: float) -> None:
        """
        Wait up to ``timeout`` seconds for the window to connect.

        Only one connection is ever accepted; the listener is closed right
        after so later connection attempts are refused.

        Raises:
            AcceptTimeoutError: if nothing connected in time
            BridgeSetupError: if the session is not listening
        """
        if self.connection is not None:
            return
        if self.listener is None:
            raise BridgeSetupError("Cannot accept a window connection before listening")

        self.listener.settimeout(timeout)
        try:
            conn, address = self.listener.accept()
        except socket.timeout:
            raise AcceptTimeoutError(timeout) from None

        conn.settimeout(SEND_TIMEOUT)
        conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        self.connection = conn
        self.peer_address = address
        self._disconnected = False
        log.debug(f"Window connected from {address[0]}:{address[1]}")

        self.listener.close()
        self.listener = None

    @property
    def connected(self) -> bool:
        return self.connection is not None and not self._disconnected

    def mark_disconnected(self) -> None:
        """Record that the window closed its end of the connection."""
        self._disconnected = True

    def send(self, data: bytes) -> None:
        """
        Write a complete frame to the window.

        Raises:
            ConnectionLostError: if the connection is gone or the write fails
        """
        if not self.connected:
            raise ConnectionLostError("not connected")
        try:
            self.connection.sendall(data)
        except OSError as e:
            self._disconnected = True
            raise ConnectionLostError(str(e)) from e

    # ---- liveness ----

    def is_alive(self) -> bool:
        """
        Point-in-time check: a connection was accepted and is still open,
        the process handle refers to a running process, and a zero signal
        can be delivered to it.
        """
        if not self.connected:
            return False
        if self.process is None or not self.process.pid:
            return False
        if self.process.poll() is not None:
            return False
        if os.name == 'posix':
            try:
                os.kill(self.process.pid, 0)
            except OSError:
                return False
        return True

    # ---- teardown ----

    def close(self) -> None:
        """Close the sockets and kill the window process. Safe to repeat."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
        if self.listener is not None:
            self.listener.close()
            self.listener = None

        process, self.process = self.process, None
        if process is None:
            return
        if process.poll() is None:
            log.debug(f"Killing window process {process.pid}")
            process.kill()
        try:
            process.wait(timeout=KILL_WAIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            log.warning(f"Window process {process.pid} did not exit after kill")
