"""Reply parser for the ASCII device protocol.

Parses incoming serial lines into Reply objects.
Pure functions with no side effects.
"""
from __future__ import annotations

from typing import Optional

from ..errors import ProtocolError
from ..models import Reply, REPLY_STATUS_BUSY, REPLY_STATUS_IDLE

REPLY_PREFIX = "@"
ALERT_PREFIX = "!"
INFO_PREFIX = "#"

FLAG_OK = "OK"
FLAG_REJECTED = "RJ"


def checksum(message: str) -> int:
    """Longitudinal redundancy check over the message bytes.

    The sum of all message bytes plus the checksum is 0 modulo 256.
    """
    total = sum(message.encode("ascii", errors="replace")) & 0xFF
    return (256 - total) & 0xFF


class ReplyParser:
    """Parser for device reply lines.

    Handles the reply frame:
    - @<device> <axis> <OK|RJ> <BUSY|IDLE> <warning> <data>[:<checksum>]

    Alert (!) and info (#) lines are not replies and yield None.
    """

    @staticmethod
    def parse_line(line: str) -> Optional[Reply]:
        """Parse a single line from the serial stream.

        Args:
            line: Decoded line (with or without line terminator)

        Returns:
            Reply if the line is a reply frame, None for other traffic

        Raises:
            ProtocolError: if the line looks like a reply but is malformed

        Examples:
            >>> reply = ReplyParser.parse_line("@01 0 OK IDLE -- 12.500")
            >>> reply.data, reply.busy
            ('12.500', False)
        """
        line = line.strip()

        if not line or not line.startswith(REPLY_PREFIX):
            return None

        body = line[1:]

        # Strip and verify optional checksum
        if ":" in body:
            body, _, suffix = body.rpartition(":")
            try:
                received = int(suffix, 16)
            except ValueError:
                raise ProtocolError(f"bad checksum field in {line!r}") from None
            if (sum(body.encode("ascii", errors="replace")) + received) & 0xFF != 0:
                raise ProtocolError(f"checksum mismatch in {line!r}")

        parts = body.split(" ", 5)
        if len(parts) < 5:
            raise ProtocolError(f"truncated reply {line!r}")

        device_str, axis_str, flag, status, warning = parts[:5]
        data = parts[5] if len(parts) > 5 else ""

        try:
            device = int(device_str)
            axis = int(axis_str)
        except ValueError:
            raise ProtocolError(f"bad address in {line!r}") from None

        if flag not in (FLAG_OK, FLAG_REJECTED):
            raise ProtocolError(f"unknown reply flag {flag!r}")

        if status not in (REPLY_STATUS_BUSY, REPLY_STATUS_IDLE):
            raise ProtocolError(f"unknown device status {status!r}")

        return Reply(
            device=device,
            axis=axis,
            accepted=(flag == FLAG_OK),
            status=status,
            warning=warning,
            data=data.strip(),
        )
