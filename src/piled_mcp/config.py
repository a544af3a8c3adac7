"""Client configuration: defaults, environment overrides, validation.

Environment variables::

    PILED_HOST             Controller address used when none is stored (192.168.0.4)
    PILED_PORT             Controller port used when none is stored (3384)
    PILED_CONNECT_TIMEOUT  Connect timeout in seconds (5)
    PILED_SETTINGS         Settings file path (~/.piled/settings.json)
    PILED_VERIFY_INBOUND   "1"/"true" to verify inbound auth tags (off)
    PILED_LOG_LEVEL        Logging level (INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .transport.tcp_connection import CONNECT_TIMEOUT, DEFAULT_PORT

DEFAULT_HOST = "192.168.0.4"
DEFAULT_SETTINGS_PATH = Path.home() / ".piled" / "settings.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    """Settings the core needs that do not come from the settings store."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout: float = CONNECT_TIMEOUT
    settings_path: Path = DEFAULT_SETTINGS_PATH
    verify_inbound: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ClientConfig:
        return cls(
            host=os.getenv("PILED_HOST", DEFAULT_HOST),
            port=int(os.getenv("PILED_PORT", str(DEFAULT_PORT))),
            connect_timeout=float(os.getenv("PILED_CONNECT_TIMEOUT", str(CONNECT_TIMEOUT))),
            settings_path=Path(
                os.getenv("PILED_SETTINGS", str(DEFAULT_SETTINGS_PATH))
            ).expanduser(),
            verify_inbound=os.getenv("PILED_VERIFY_INBOUND", "").lower() in _TRUE_VALUES,
            log_level=os.getenv("PILED_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Raise ValueError on values the client cannot run with."""
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {self.log_level}")
