"""Server configuration loaded from ``config/server_config.json``."""

import json
import ssl
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

CONFIG_FILE_NAME = "server_config.json"

_NUMBER = (int, float)
_OPTIONAL_STR = (str, type(None))

_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "host": (str,),
    "port": (int,),
    "unit_name": (str,),
    "backend": (str,),
    "refresh_rate": _NUMBER,
    "sim_op_delay": _NUMBER,
    "systemctl_path": _OPTIONAL_STR,
    "tls_cert": _OPTIONAL_STR,
    "tls_key": _OPTIONAL_STR,
}


@dataclass(frozen=True)
class ServerConfig:
    """Settings for the control server.

    Args:
        host: Interface the websocket endpoint binds to.
        port: Websocket port; 0 lets the OS pick one.
        unit_name: Name of the managed unit, e.g. ``mc_server.service``.
        backend: ``"sim"`` for the simulated unit, ``"systemctl"`` for systemd.
        refresh_rate: Minimum seconds between reconciliations with the unit.
        sim_op_delay: Seconds a simulated boot or shutdown takes.
        systemctl_path: Override for the systemctl binary.
        tls_cert: PEM certificate chain; TLS is enabled when set with tls_key.
        tls_key: PEM private key.
    """

    host: str = "127.0.0.1"
    port: int = 2345
    unit_name: str = "mc_server.service"
    backend: str = "sim"
    refresh_rate: float = 5.0
    sim_op_delay: float = 5.0
    systemctl_path: str | None = None
    tls_cert: str | None = None
    tls_key: str | None = None

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert and self.tls_key)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerConfig":
        """Build from a parsed JSON object.

        Raises:
            ValueError: On unknown keys, values of the wrong JSON type, an
                out-of-range port or delay, or an invalid backend name.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        for key, value in data.items():
            expected = _FIELD_TYPES[key]
            # bool is an int subclass but never a valid port or delay
            if isinstance(value, bool) or not isinstance(value, expected):
                names = " or ".join("null" if t is type(None) else t.__name__ for t in expected)
                raise ValueError(f"Config key {key!r} must be {names}, got {type(value).__name__}")

        config = cls(**data)
        if config.backend not in ("sim", "systemctl"):
            raise ValueError(f"Invalid backend {config.backend!r}: must be 'sim' or 'systemctl'")
        if not 0 <= config.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {config.port}")
        if config.refresh_rate < 0:
            raise ValueError(f"refresh_rate must be non-negative, got {config.refresh_rate}")
        if config.sim_op_delay < 0:
            raise ValueError(f"sim_op_delay must be non-negative, got {config.sim_op_delay}")
        return config

    def create_ssl_context(self) -> ssl.SSLContext | None:
        """Return a server-side TLS context, or None when TLS is not configured."""
        if not self.tls_enabled:
            return None
        context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain(self.tls_cert, self.tls_key)
        return context


def load_config(config_path: Path) -> ServerConfig:
    """Load configuration from a JSON file.

    Args:
        config_path: Path to server_config.json

    Returns:
        Parsed ServerConfig

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is invalid or describes an invalid config.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config root must be an object, got {type(data).__name__}")
    return ServerConfig.from_dict(data)
