"""
GiwBridge: the debugger-side end of the window connection.

Composes the peer session, the inbox and the dispatcher into the
operations a debugger extension calls: start the window, exchange symbol
lists, send buffers and run one event loop tick at a time.
"""

from enum import Enum
from typing import Callable, Iterable, List, Optional

from giwbridge.config import BridgeConfig
from giwbridge.ipc.codec import encode_message
from giwbridge.ipc.dispatcher import Dispatcher
from giwbridge.ipc.inbox import Inbox
from giwbridge.ipc.protocol import (
    BufferDescriptor,
    GetObservedSymbols,
    MessageKind,
    PlotBufferContents,
    PlotBufferRequest,
    SetAvailableSymbols,
)
from giwbridge.ipc.session import PeerSession
from giwbridge.utils.exceptions import (
    BridgeSetupError,
    BridgeStateError,
    ConnectionLostError,
    PeerLaunchError,
)
from giwbridge.utils.logging import get_logger

log = get_logger('bridge')

PlotCallback = Callable[[str], int]


class BridgeState(str, Enum):
    """Lifecycle of a GiwBridge."""
    UNINITIALIZED = "uninitialized"
    LISTENING = "listening"
    AWAITING_PEER = "awaiting_peer"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class GiwBridge:
    """
    One bridge session with one window process.

    Single-threaded: nothing runs in the background. The host calls
    run_one_tick() from its own loop to deliver plot requests, and every
    socket wait is bounded by a configured timeout.
    """

    def __init__(self, plot_callback: PlotCallback, config: Optional[BridgeConfig] = None):
        """
        Args:
            plot_callback: Called as plot_callback(buffer_name) for every plot
                request from the window; a nonzero return is logged
            config: Bridge settings (defaults if omitted)
        """
        self.plot_callback = plot_callback
        self.config = config or BridgeConfig()
        self.state = BridgeState.UNINITIALIZED

        self.session = PeerSession()
        self.inbox = Inbox()
        self.dispatcher: Optional[Dispatcher] = None

    # ---- lifecycle ----

    def start(self) -> bool:
        """
        Listen, launch the window and wait for it to connect.

        Returns:
            True when the window connected. On failure the bridge is left
            unusable; the caller decides whether to build a new one.
        """
        if self.state is not BridgeState.UNINITIALIZED:
            raise BridgeStateError("start", self.state.value)

        config = self.config
        try:
            self.session.open(config.port, config.host)
        except BridgeSetupError as e:
            log.error(e.message)
            self.state = BridgeState.FAILED
            return False
        self.state = BridgeState.LISTENING

        try:
            self.session.launch_peer(config.window_binary, config.window_args)
        except PeerLaunchError as e:
            # Nothing will connect, but the accept timeout still applies
            log.error(e.message)
        self.state = BridgeState.AWAITING_PEER

        try:
            self.session.accept(config.accept_timeout)
        except BridgeSetupError as e:
            log.error(e.message)
            self.session.close()
            self.state = BridgeState.FAILED
            return False

        self.dispatcher = Dispatcher(
            self.session.connection,
            self.inbox,
            on_disconnect=self.session.mark_disconnected,
        )
        self.state = BridgeState.READY
        host, port = self.session.peer_address[:2]
        log.info(f"Window connected from {host}:{port}")
        return True

    def is_ready(self) -> bool:
        """True while the window is connected and its process is alive."""
        return self.state is BridgeState.READY and self.session.is_alive()

    def close(self) -> None:
        """Tear down the connection and kill the window. Safe in any state."""
        if self.state is BridgeState.CLOSED:
            return
        self.session.close()
        self.inbox.clear()
        self.dispatcher = None
        self.state = BridgeState.CLOSED
        log.debug("Bridge closed")

    def __enter__(self) -> "GiwBridge":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        # Interpreter shutdown may already have torn down module globals
        if getattr(self, "state", BridgeState.CLOSED) is not BridgeState.CLOSED:
            self.close()

    # ---- requests and pushes ----

    def request_observed_symbols(self) -> Optional[List[str]]:
        """
        Ask the window which symbols the user is watching.

        Returns:
            The symbols, or None if the window did not answer within
            fetch_timeout or is no longer connected
        """
        self._require_ready("request_observed_symbols")
        if not self._send(GetObservedSymbols()):
            return None
        response = self.dispatcher.fetch_blocking(
            MessageKind.GetObservedSymbolsResponse,
            self.config.fetch_timeout,
        )
        if response is None:
            return None
        return list(response.symbols)

    def query_observed_symbols(self) -> List[str]:
        """Like request_observed_symbols(), with no answer treated as no symbols."""
        symbols = self.request_observed_symbols()
        if symbols is None:
            log.warning(
                f"Window did not report observed symbols within {self.config.fetch_timeout:g}s"
            )
            return []
        return symbols

    def push_available_symbols(self, symbols: Iterable[str]) -> None:
        """Tell the window which symbols exist in the current scope."""
        self._require_ready("push_available_symbols")
        message = SetAvailableSymbols(list(symbols))
        if self._send(message):
            log.debug(f"Sent {len(message.symbols)} available symbols")

    def plot_buffer(self, descriptor: BufferDescriptor) -> None:
        """Send a buffer's contents and geometry to the window."""
        self._require_ready("plot_buffer")
        available = memoryview(descriptor.pointer).nbytes
        if available < descriptor.expected_size:
            log.warning(
                f"Buffer '{descriptor.display_name}' holds {available} bytes, "
                f"geometry describes {descriptor.expected_size}"
            )
        if self._send(PlotBufferContents(descriptor)):
            log.debug(
                f"Sent buffer '{descriptor.display_name}' "
                f"({descriptor.width}x{descriptor.height}x{descriptor.channels})"
            )

    def _send(self, message) -> bool:
        """
        Write ``message`` to the window. A window that has gone away is
        logged and reported through is_ready(), never raised to the caller.
        """
        try:
            self.session.send(encode_message(message))
        except ConnectionLostError as e:
            log.warning(f"Dropped {message.kind.name}: {e.message}")
            self.session.mark_disconnected()
            return False
        return True

    # ---- event loop ----

    def run_one_tick(self) -> int:
        """
        Pump the socket for at most tick_timeout, then deliver every pending
        plot request to the plot callback in arrival order.

        Returns:
            Number of plot requests delivered
        """
        self._require_ready("run_one_tick")
        self.dispatcher.pump(self.config.tick_timeout)
        return self.dispatcher.drain(MessageKind.PlotBufferRequest, self._deliver_plot_request)

    def _deliver_plot_request(self, message: PlotBufferRequest) -> None:
        status = self.plot_callback(message.buffer_name)
        if status:
            log.warning(f"Plot callback for '{message.buffer_name}' returned {status}")

    def _require_ready(self, operation: str) -> None:
        if self.state is not BridgeState.READY:
            raise BridgeStateError(operation, self.state.value)
