"""Abstract base class for device communication protocols.

Defines the interface for framing commands and decoding replies.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..models import Reply


class Protocol(ABC):
    """Abstract protocol for device communication.

    Protocols handle:
    - Addressing and framing command text into wire bytes
    - Decoding incoming lines into replies
    """

    @abstractmethod
    def serialize_command(self, unit_id: int, text: str) -> bytes:
        """Frame command text addressed to one unit.

        Args:
            unit_id: Device address
            text: Command text without address, e.g. ``get pos``

        Returns:
            Bytes ready to write to the channel
        """
        pass

    @abstractmethod
    def parse_reply(self, line: str) -> Optional[Reply]:
        """Decode one incoming line.

        Args:
            line: Decoded line from the device

        Returns:
            Reply if the line is a reply, None for unsolicited traffic

        Raises:
            ProtocolError: if the line is a malformed reply
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Protocol identifier (e.g., 'ascii')."""
        pass
