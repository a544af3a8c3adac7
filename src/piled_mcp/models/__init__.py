"""Data models for colors and client settings."""

from .color import Color
from .settings import (
    SettingsStore,
    MemorySettings,
    JsonFileSettings,
    apply_first_run_defaults,
)
