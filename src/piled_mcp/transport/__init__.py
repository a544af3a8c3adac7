"""Transport layer: TCP socket and the inbound listener thread."""

from .tcp_connection import TCPConnection
from .listener import InboundListener
