"""Client for the PiLED addressable-LED controller's authenticated TCP protocol."""

from .errors import (
    PiLEDError,
    ConnectError,
    NoConnection,
    SendError,
    NoCredential,
    MalformedFrame,
    ValueOutOfRange,
)
from .models.color import Color
from .models.settings import MemorySettings, JsonFileSettings
from .session import ClientSession, ConnectionState

__version__ = "0.1.0"
