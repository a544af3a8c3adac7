"""MCP server entry point for the PiLED LED controller.

Exposes tools and resources via the Model Context Protocol using the
official Python MCP SDK with stdio transport. Every tool forwards to a
single :class:`~piled_mcp.session.ClientSession`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import ClientConfig
from .errors import PiLEDError
from .models.settings import (
    KEY_IP,
    KEY_PORT,
    KEY_SHARED_SECRET,
    JsonFileSettings,
    SettingsStore,
    apply_first_run_defaults,
)
from .session import ClientSession
from .triggers import handle_trigger_uri

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "piled",
    instructions="MCP server for the PiLED addressable-LED controller",
)

# Global session state
_config: ClientConfig | None = None
_settings: SettingsStore | None = None
_session: ClientSession | None = None


def _get_config() -> ClientConfig:
    global _config
    if _config is None:
        _config = ClientConfig.from_env()
        _config.validate()
    return _config


def _get_settings() -> SettingsStore:
    global _settings
    if _settings is None:
        _settings = JsonFileSettings(_get_config().settings_path)
        apply_first_run_defaults(_settings)
    return _settings


def _get_session() -> ClientSession:
    """Get the process-wide session, creating it on first use."""
    global _session
    if _session is None:
        _session = ClientSession(_get_settings(), _get_config())
    return _session


def _status(session: ClientSession) -> dict[str, Any]:
    address = session.address
    return {
        "connected": session.is_connected,
        "state": session.state.value,
        "address": f"{address[0]}:{address[1]}" if address else None,
        "color": session.current_color.to_dict(),
    }


def _run(command, **result: Any) -> dict[str, Any]:
    """Call a session command, mapping client errors to an error dict."""
    try:
        command()
    except PiLEDError as e:
        return {"error": str(e), "type": type(e).__name__}
    return {"sent": True, **result}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(host: str | None = None, port: int | None = None) -> dict[str, Any]:
    """Connect to the PiLED controller.

    Uses the stored address when host/port are omitted, then requests the
    current color.

    Args:
        host: Controller IP address.
        port: Controller TCP port.
    """
    session = _get_session()
    if not session.connect(host, port):
        return {"connected": False, "error": "Connection failed"}
    return _status(session)


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the controller."""
    _get_session().disconnect()
    return {"disconnected": True}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Connection state, address and last-known color."""
    return _status(_get_session())


# ─── LED TOOLS ────────────────────────────────────────────────────────

@mcp.tool()
def set_color(red: float, green: float, blue: float) -> dict[str, Any]:
    """Set a static color.

    Args:
        red: Red channel (0.0-1.0).
        green: Green channel (0.0-1.0).
        blue: Blue channel (0.0-1.0).
    """
    session = _get_session()
    return _run(
        lambda: session.send_set_color(red, green, blue),
        color=[red, green, blue],
    )


@mcp.tool()
def start_fade_animation(
    red: float, green: float, blue: float, duration: int = 3, speed: int = 1
) -> dict[str, Any]:
    """Start the fade animation.

    Args:
        red: Red channel (0.0-1.0).
        green: Green channel (0.0-1.0).
        blue: Blue channel (0.0-1.0).
        duration: Animation duration (0-255).
        speed: Animation speed (0-255).
    """
    session = _get_session()
    return _run(
        lambda: session.send_fade(red, green, blue, duration, speed),
        animation="fade",
        duration=duration,
        speed=speed,
    )


@mcp.tool()
def start_pulse_animation(
    red: float, green: float, blue: float, duration: int = 3, speed: int = 1
) -> dict[str, Any]:
    """Start the pulse animation.

    Args:
        red: Red channel (0.0-1.0).
        green: Green channel (0.0-1.0).
        blue: Blue channel (0.0-1.0).
        duration: Animation duration (0-255).
        speed: Animation speed (0-255).
    """
    session = _get_session()
    return _run(
        lambda: session.send_pulse(red, green, blue, duration, speed),
        animation="pulse",
        duration=duration,
        speed=speed,
    )


@mcp.tool()
def toggle_suspend() -> dict[str, Any]:
    """Toggle the controller between suspended and running."""
    return _run(_get_session().send_toggle_suspend)


@mcp.tool()
def request_color() -> dict[str, Any]:
    """Ask the controller for its current color.

    The reply arrives asynchronously; read it with get_status or the
    piled://device/color resource.
    """
    return _run(_get_session().request_current_color)


@mcp.tool()
def handle_trigger(uri: str) -> dict[str, Any]:
    """Run the command bound to a trigger URI (e.g. piled://room_presence).

    Args:
        uri: Trigger URI read from an NFC tag or shortcut.
    """
    session = _get_session()
    try:
        handled = handle_trigger_uri(session, uri)
    except PiLEDError as e:
        return {"error": str(e), "type": type(e).__name__}
    return {"uri": uri, "handled": handled}


# ─── SETTINGS TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def configure(
    shared_secret: str | None = None,
    ip: str | None = None,
    port: int | None = None,
) -> dict[str, Any]:
    """Store the shared secret and/or controller address.

    Args:
        shared_secret: Key used to sign every command.
        ip: Controller IP address.
        port: Controller TCP port (1-65535).
    """
    if port is not None and not 0 < port < 65536:
        return {"error": "Port must be 1-65535"}

    settings = _get_settings()
    if shared_secret is not None:
        settings.put(KEY_SHARED_SECRET, shared_secret)
    if ip is not None:
        settings.put(KEY_IP, ip)
    if port is not None:
        settings.put(KEY_PORT, str(port))
    return {"settings": settings.to_dict()}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("piled://device/status")
def resource_device_status() -> str:
    """Connection state and address."""
    return json.dumps(_status(_get_session()))


@mcp.resource("piled://device/color")
def resource_device_color() -> str:
    """Last color reported by the controller."""
    return json.dumps(_get_session().current_color.to_dict())


@mcp.resource("piled://settings")
def resource_settings() -> str:
    """Stored address and whether a shared secret is set."""
    return json.dumps(_get_settings().to_dict())


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    config = _get_config()
    logging.basicConfig(level=config.log_level)
    try:
        mcp.run(transport="stdio")
    finally:
        if _session is not None:
            _session.disconnect()


if __name__ == "__main__":
    main()
