"""Low-level serial channel to the device daisy chain.

The channel owns the pyserial handle and nothing else. It does not interpret
lines and does not lock; DeviceLink serializes all access to it.
"""
from __future__ import annotations

import logging
from typing import Optional

import serial

from ..errors import ChannelUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_PORT = "/dev/ttyACM0"
CONNECTION_BAUD = 115_200
READ_TIMEOUT = 0.1  # seconds

# Expected port failures. termios.error (from tcdrain/tcflush) is neither and
# is logged as unexpected, but still closes the port.
CHANNEL_ERRORS = (serial.SerialException, OSError)


class SerialChannel:
    """Line-oriented serial connection.

    Responsibilities:
    - Open/close the serial port
    - Write raw command bytes
    - Read single reply lines with a short timeout
    - Drop the handle when the port fails so the next open starts clean

    Example:
        >>> channel = SerialChannel(port="/dev/ttyACM0")
        >>> channel.connect()
        True
        >>> channel.write(b"/1 get pos\\n")
        >>> channel.read_line()
        b'@01 0 OK IDLE -- 12.500\\r\\n'
        >>> channel.disconnect()
    """

    def __init__(self,
                 port: str = DEFAULT_PORT,
                 baudrate: int = CONNECTION_BAUD,
                 timeout: float = READ_TIMEOUT):
        """Initialize serial channel.

        Args:
            port: Serial port path (e.g., '/dev/ttyACM0')
            baudrate: Serial baud rate
            timeout: Timeout of a single line read in seconds
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout

        self._serial: Optional[serial.Serial] = None

    @property
    def port(self) -> str:
        return self._port

    def connect(self) -> bool:
        """Open the serial port.

        Returns:
            True if the port is open, False otherwise
        """
        if self.is_connected():
            logger.warning("Already connected")
            return True

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                timeout=self._timeout,
            )

            # Clear buffers
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()

            logger.info(f"Opened {self._port} @ {self._baudrate} baud")

        except (serial.SerialException, OSError) as e:
            logger.error(f"Failed to open {self._port}: {e}")
            self._serial = None
            return False

        return True

    def disconnect(self) -> None:
        """Close the serial port. Safe to call multiple times."""
        if self._serial is None:
            return

        try:
            self._serial.close()
        except (serial.SerialException, OSError) as e:
            logger.error(f"Error closing serial port: {e}")
        finally:
            self._serial = None

        logger.info(f"Closed {self._port}")

    def is_connected(self) -> bool:
        return self._serial is not None

    def write(self, data: bytes) -> None:
        """Send raw bytes.

        Raises:
            ChannelUnavailableError: if the port is closed or the write fails
        """
        port = self._require_open()
        try:
            port.write(data)
            port.flush()
        except Exception as e:
            raise self._fail("Write to", e) from e

    def read_line(self) -> bytes:
        """Read one line.

        Returns:
            Line bytes including terminator, or whatever arrived before the
            read timeout (possibly empty)

        Raises:
            ChannelUnavailableError: if the port is closed or the read fails
        """
        port = self._require_open()
        try:
            return port.readline()
        except Exception as e:
            raise self._fail("Read from", e) from e

    def reset_input(self) -> None:
        """Discard unread input so no reply survives into the next exchange."""
        port = self._require_open()
        try:
            port.reset_input_buffer()
        except Exception as e:
            raise self._fail("Flush of", e) from e

    # Internal methods

    def _require_open(self) -> serial.Serial:
        if self._serial is None:
            raise ChannelUnavailableError(f"{self._port} is not open")
        return self._serial

    def _handle_error(self, error: Exception) -> None:
        """Close the handle after a fatal port error (e.g. device unplugged)."""
        logger.warning(f"Handling channel error: {error}")
        if self._serial is not None:
            try:
                self._serial.close()
            except Exception:
                logger.debug("Ignoring error while closing failed port", exc_info=True)
            self._serial = None

    def _fail(self, action: str, error: Exception) -> ChannelUnavailableError:
        """Close the port and build the error reported to the link."""
        if isinstance(error, CHANNEL_ERRORS):
            logger.error(f"{action} {self._port} failed: {error}")
        else:
            logger.error(f"Unexpected error: {action} {self._port} failed: {error}")
        self._handle_error(error)
        return ChannelUnavailableError(f"{action} {self._port} failed: {error}")
