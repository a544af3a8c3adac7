"""Protocol layer: frame codec, HMAC authentication, command builders, and message parsing."""

from .opcodes import Operation
from .framing import build_frame, parse_inbound
from .commands import build_command
from .parser import parse_message
