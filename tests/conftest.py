"""
conftest.py — Shared pytest configuration and fixtures

This file is automatically loaded by pytest.
"""

import logging
import os
import socket
import sys
from pathlib import Path

import pytest

# Make the sources importable both here and in spawned stub windows,
# whether or not the package was installed
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))
os.environ["PYTHONPATH"] = os.pathsep.join(
    p for p in (str(src_dir), os.environ.get("PYTHONPATH")) if p
)

from giwbridge.bridge import GiwBridge  # noqa: E402
from giwbridge.config import BridgeConfig  # noqa: E402

STUB_WINDOW = src_dir / "tools" / "stub_window.py"


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: spawns a stub window process and talks to it over TCP"
    )


# ============================================================================
# Fixtures available to all tests
# ============================================================================

@pytest.fixture(autouse=True)
def reset_giwbridge_logger():
    """setup_logging() detaches the package logger from the root; undo that."""
    yield
    package_logger = logging.getLogger("giwbridge")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def stub_config(free_port):
    """Build a BridgeConfig that launches the stub window with extra arguments."""
    def make(*stub_args, **overrides):
        values = dict(
            host="127.0.0.1",
            port=free_port,
            window_binary=sys.executable,
            window_args=[str(STUB_WINDOW), "--port", str(free_port), *stub_args],
            accept_timeout=15.0,
            fetch_timeout=5.0,
            tick_timeout=2.0,
        )
        values.update(overrides)
        return BridgeConfig(**values)
    return make


class PlotRecorder:
    """Plot callback that remembers every buffer name it was given."""

    def __init__(self, status: int = 0):
        self.calls = []
        self.status = status

    def __call__(self, buffer_name: str) -> int:
        self.calls.append(buffer_name)
        return self.status


@pytest.fixture
def plot_recorder():
    return PlotRecorder()


@pytest.fixture
def make_bridge(plot_recorder):
    """Create bridges that are always closed at teardown."""
    bridges = []

    def make(config, callback=None):
        bridge = GiwBridge(callback or plot_recorder, config)
        bridges.append(bridge)
        return bridge

    yield make
    for bridge in bridges:
        bridge.close()
