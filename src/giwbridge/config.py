"""
Bridge configuration.

Values are layered: built-in defaults, then a TOML file (``[bridge]``
table), then ``GIW_*`` environment variables, then explicit overrides.
"""

import os
import shutil
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional

from giwbridge.ipc.protocol import DEFAULT_PORT
from giwbridge.utils.exceptions import ConfigError

DEFAULT_WINDOW_BINARY = "giwwindow"

ENV_VARS = {
    "GIW_BRIDGE_HOST": "host",
    "GIW_BRIDGE_PORT": "port",
    "GIW_WINDOW_BINARY": "window_binary",
    "GIW_ACCEPT_TIMEOUT": "accept_timeout",
}


def _default_window_binary() -> str:
    return shutil.which(DEFAULT_WINDOW_BINARY) or DEFAULT_WINDOW_BINARY


@dataclass
class BridgeConfig:
    """Settings for one bridge session. Timeouts are in seconds."""
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    window_binary: str = field(default_factory=_default_window_binary)
    window_args: List[str] = field(default_factory=lambda: ["-style", "fusion"])
    accept_timeout: float = 10.0
    fetch_timeout: float = 3.0
    tick_timeout: float = 0.2

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ConfigError(f"Invalid port: {self.port!r}")
        for name in ("accept_timeout", "fetch_timeout", "tick_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"Invalid {name}: {value!r}")
        if not self.window_binary:
            raise ConfigError("window_binary must not be empty")
        if not isinstance(self.window_args, list) or not all(
            isinstance(arg, str) for arg in self.window_args
        ):
            raise ConfigError(f"window_args must be a list of strings: {self.window_args!r}")

    def with_overrides(self, **overrides: Any) -> "BridgeConfig":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(values) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: Optional[str] = None) -> "BridgeConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                source=source,
            )
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config_file(path: str) -> Dict[str, Any]:
    """Read the ``[bridge]`` table of a TOML file."""
    import tomllib

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}", source=path) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", source=path) from e

    section = data.get("bridge", {})
    if not isinstance(section, dict):
        raise ConfigError("[bridge] must be a table", source=path)
    return section


def _coerce_env(key: str, name: str, raw: str) -> Any:
    try:
        if name == "port":
            return int(raw)
        if name == "accept_timeout":
            return float(raw)
    except ValueError:
        raise ConfigError(f"Invalid value for {key}: {raw!r}", source="environment") from None
    return raw


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    values = {}
    for key, name in ENV_VARS.items():
        raw = environ.get(key)
        if raw:
            values[name] = _coerce_env(key, name, raw)
    return values


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> BridgeConfig:
    """
    Build a BridgeConfig from all configuration sources.

    Args:
        config_file: Optional TOML file with a ``[bridge]`` table
        environ: Environment mapping (defaults to os.environ)
        **overrides: Explicit values; None means "not given"

    Raises:
        ConfigError: if any source holds an invalid value
    """
    values: Dict[str, Any] = {}
    if config_file:
        values.update(load_config_file(config_file))
    values.update(env_overrides(environ))
    config = BridgeConfig.from_dict(values, source=config_file)
    return config.with_overrides(**overrides)
