"""Device link.

Serializes command/response exchanges over the single serial channel shared by
every unit, and maps transport failures to DeviceError subclasses.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ..errors import (
    ChannelUnavailableError,
    DeviceFaultError,
    DeviceTimeoutError,
    ProtocolError,
)
from ..models import Reply
from ..protocol import Protocol, ASCIIProtocol
from .channel import SerialChannel

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE_TIMEOUT = 1.0  # seconds


class DeviceLink:
    """Exclusive command/response access to the device chain.

    This class acts as a facade, managing:
    1. The physical channel (SerialChannel)
    2. Framing and decoding (Protocol)
    3. The lock that keeps at most one exchange in flight

    Every exchange holds the lock from the write until the matching reply (or
    the deadline), so callers on different threads never interleave bytes on
    the wire. Waiters are served in whatever order threading.Lock grants.
    """

    def __init__(
        self,
        channel: Optional[SerialChannel] = None,
        protocol: Optional[Protocol] = None,
        port: Optional[str] = None,
        timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
    ):
        """Initialize DeviceLink.

        Args:
            channel: Existing channel, or None to create one on ``port``
            protocol: Protocol implementation (default: ASCIIProtocol)
            port: Serial port for a new channel (if channel is None)
            timeout: Seconds to wait for a matching reply
        """
        if channel is None:
            channel = SerialChannel(port=port) if port else SerialChannel()
        self._channel = channel
        self._protocol = protocol or ASCIIProtocol()
        self._timeout = timeout
        self._lock = threading.Lock()

    @property
    def timeout(self) -> float:
        return self._timeout

    def connect(self) -> bool:
        """Open the underlying channel."""
        with self._lock:
            return self._channel.connect()

    def disconnect(self) -> None:
        """Close the underlying channel. Waits for a running exchange."""
        with self._lock:
            self._channel.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._channel.is_connected()

    def exchange(self, unit_id: int, command: str) -> Reply:
        """Send one command and wait for the reply from the same unit.

        A closed channel is reopened once at the start of the exchange; there
        is no retry of the exchange itself.

        Args:
            unit_id: Device address
            command: Command text, e.g. ``get pos``

        Returns:
            The matching, accepted Reply

        Raises:
            DeviceTimeoutError: no matching reply before the deadline
            ChannelUnavailableError: the port cannot be opened or fails
            ProtocolError: the device sent a malformed reply
            DeviceFaultError: the device rejected the command
        """
        frame = self._protocol.serialize_command(unit_id, command)

        with self._lock:
            if not self._channel.is_connected():
                logger.info(f"Channel closed, reopening before '{command}'")
                if not self._channel.connect():
                    raise ChannelUnavailableError(f"Cannot open {self._channel.port}")

            self._channel.reset_input()
            logger.debug(f">> {frame!r}")
            self._channel.write(frame)

            reply = self._await_reply(unit_id)

        if not reply.accepted:
            raise DeviceFaultError(reply.data or reply.warning)
        return reply

    def _await_reply(self, unit_id: int) -> Reply:
        """Read lines until a reply from ``unit_id`` arrives. Lock must be held."""
        deadline = time.monotonic() + self._timeout
        partial = b""

        while time.monotonic() < deadline:
            chunk = self._channel.read_line()
            if not chunk:
                continue

            # A read timeout can split a line
            partial += chunk
            if not partial.endswith(b"\n"):
                continue
            raw, partial = partial, b""

            logger.debug(f"<< {raw!r}")
            try:
                line = raw.decode("ascii")
            except UnicodeDecodeError:
                raise ProtocolError(f"non-ASCII reply {raw!r}") from None

            reply = self._protocol.parse_reply(line)
            if reply is None:
                # Alerts and info lines
                continue
            if reply.device != unit_id:
                logger.debug(f"Discarding reply from device {reply.device}")
                continue
            return reply

        raise DeviceTimeoutError(unit_id, self._timeout)
