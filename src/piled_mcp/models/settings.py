"""Key-value settings store for the shared secret and controller address.

The core only ever reads ``shared_secret``, ``piled_ip`` and
``piled_port``; how they are persisted is up to the store.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_SHARED_SECRET = "shared_secret"
KEY_IP = "piled_ip"
KEY_PORT = "piled_port"
KEY_FIRST_RUN = "is_first_run"

# Controller factory defaults, written once on first start
FIRST_RUN_DEFAULTS: dict[str, str] = {
    KEY_SHARED_SECRET: "shared_secret",
    KEY_IP: "192.168.0.4",
    KEY_PORT: "3384",
}


class SettingsStore:
    """Base class for settings backends."""

    def get(self, key: str, default: str | None = None) -> str | None:
        raise NotImplementedError

    def put(self, key: str, value: str | None) -> None:
        raise NotImplementedError

    @property
    def shared_secret(self) -> str | None:
        """The configured secret, or ``None`` if unset or empty."""
        return self.get(KEY_SHARED_SECRET) or None

    def to_dict(self) -> dict:
        """Settings summary safe to show to a user (the secret is hidden)."""
        return {
            "ip": self.get(KEY_IP),
            "port": self.get(KEY_PORT),
            "shared_secret_set": self.shared_secret is not None,
        }


class MemorySettings(SettingsStore):
    """Dict-backed store, for embedding and tests."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._values.get(key, default)

    def put(self, key: str, value: str | None) -> None:
        with self._lock:
            if value is None:
                self._values.pop(key, None)
            else:
                self._values[key] = value


class JsonFileSettings(SettingsStore):
    """Settings persisted to a JSON object file.

    The file and its parent directory are created on first write. A
    missing or unreadable file reads as empty.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings from %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self._path)
            return {}
        return data

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            value = self._load().get(key, default)
        return None if value is None else str(value)

    def put(self, key: str, value: str | None) -> None:
        with self._lock:
            data = self._load()
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._write(data)

    def _write(self, data: dict[str, str]) -> None:
        # Readers only ever see the old file or the complete new one
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=self._path.name + ".", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self._path)
        except Exception:
            os.unlink(tmp_path)
            raise


def apply_first_run_defaults(store: SettingsStore) -> bool:
    """Write the factory defaults the first time a store is used.

    Returns:
        True if defaults were written, False if the store was already set up.
    """
    if store.get(KEY_FIRST_RUN, "true") != "true":
        return False
    for key, value in FIRST_RUN_DEFAULTS.items():
        store.put(key, value)
    store.put(KEY_FIRST_RUN, "false")
    logger.debug("Default settings applied on first startup")
    return True
