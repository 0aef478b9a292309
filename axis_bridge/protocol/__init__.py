"""Protocol layer for serial communication with motion devices."""

from .base import Protocol
from .ascii_protocol import ASCIIProtocol
from .parser import ReplyParser, checksum
from .serializer import CommandSerializer, GET_POSITION

__all__ = [
    "Protocol",
    "ASCIIProtocol",
    "ReplyParser",
    "checksum",
    "CommandSerializer",
    "GET_POSITION",
]
