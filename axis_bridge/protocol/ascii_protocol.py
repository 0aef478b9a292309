"""ASCII text-based protocol implementation.

Wraps ReplyParser and adds request framing.
"""
from __future__ import annotations

from typing import Optional

from ..models import Reply
from .base import Protocol
from .parser import ReplyParser, checksum

REQUEST_PREFIX = "/"


class ASCIIProtocol(Protocol):
    """ASCII text-based protocol for daisy-chained motion devices.

    Uses:
    - ``/<address> <command>`` requests, one per line
    - ``@<address> <axis> <flag> <status> <warning> <data>`` replies
    - optional ``:XX`` checksum on requests; verified on replies when present
    """

    def __init__(self, checksums: bool = False):
        self._parser = ReplyParser()
        self._checksums = checksums

    def serialize_command(self, unit_id: int, text: str) -> bytes:
        """Address command text and encode it with a trailing newline."""
        message = f"{unit_id} {text}".strip()
        if self._checksums:
            message = f"{message}:{checksum(message):02X}"
        return (REQUEST_PREFIX + message + "\n").encode("ascii")

    def parse_reply(self, line: str) -> Optional[Reply]:
        return self._parser.parse_line(line)

    @property
    def name(self) -> str:
        return "ascii"
