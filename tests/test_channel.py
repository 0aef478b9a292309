"""Unit tests for SerialChannel."""

import unittest
from unittest.mock import MagicMock, patch

import serial

from axis_bridge.errors import ChannelUnavailableError
from axis_bridge.link.channel import SerialChannel


class TtyError(Exception):
    """Stands in for termios.error, which is not an OSError."""


class TestSerialChannelInit(unittest.TestCase):
    """Tests for SerialChannel initialization."""

    def test_init_defaults(self):
        channel = SerialChannel()

        self.assertEqual(channel.port, "/dev/ttyACM0")
        self.assertEqual(channel._baudrate, 115_200)
        self.assertEqual(channel._timeout, 0.1)
        self.assertFalse(channel.is_connected())

    def test_init_custom_params(self):
        channel = SerialChannel(port="/dev/ttyUSB5", baudrate=9600, timeout=0.5)

        self.assertEqual(channel.port, "/dev/ttyUSB5")
        self.assertEqual(channel._baudrate, 9600)
        self.assertEqual(channel._timeout, 0.5)


class TestSerialChannelConnect(unittest.TestCase):
    """Tests for opening and closing the port."""

    @patch('axis_bridge.link.channel.serial.Serial')
    def test_connect(self, mock_serial_class):
        mock_serial = MagicMock()
        mock_serial_class.return_value = mock_serial

        channel = SerialChannel(port="/dev/ttyUSB0")
        result = channel.connect()

        self.assertTrue(result)
        self.assertTrue(channel.is_connected())
        mock_serial_class.assert_called_once_with(
            port="/dev/ttyUSB0",
            baudrate=115_200,
            timeout=0.1
        )
        mock_serial.reset_input_buffer.assert_called_once()
        mock_serial.reset_output_buffer.assert_called_once()

    @patch('axis_bridge.link.channel.serial.Serial')
    def test_connect_already_connected(self, mock_serial_class):
        channel = SerialChannel()
        channel.connect()
        result = channel.connect()

        self.assertTrue(result)
        self.assertEqual(mock_serial_class.call_count, 1)

    @patch('axis_bridge.link.channel.serial.Serial',
           side_effect=serial.SerialException("Device busy"))
    def test_connect_busy_port(self, mock_serial_class):
        channel = SerialChannel()

        self.assertFalse(channel.connect())
        self.assertFalse(channel.is_connected())

    @patch('axis_bridge.link.channel.serial.Serial')
    def test_disconnect(self, mock_serial_class):
        mock_serial = mock_serial_class.return_value
        channel = SerialChannel()
        channel.connect()

        channel.disconnect()
        channel.disconnect()

        self.assertFalse(channel.is_connected())
        mock_serial.close.assert_called_once()


class TestSerialChannelIO(unittest.TestCase):
    """Tests for reading and writing."""

    def setUp(self):
        self.serial_patcher = patch('axis_bridge.link.channel.serial.Serial')
        self.MockSerial = self.serial_patcher.start()
        self.mock_serial = self.MockSerial.return_value

        self.channel = SerialChannel()
        self.channel.connect()

    def tearDown(self):
        self.serial_patcher.stop()

    def test_write(self):
        self.channel.write(b"/1 get pos\n")

        self.mock_serial.write.assert_called_once_with(b"/1 get pos\n")
        self.mock_serial.flush.assert_called_once()

    def test_read_line(self):
        self.mock_serial.readline.return_value = b"@01 0 OK IDLE -- 0\r\n"
        self.assertEqual(self.channel.read_line(), b"@01 0 OK IDLE -- 0\r\n")

    def test_reset_input(self):
        self.mock_serial.reset_input_buffer.reset_mock()
        self.channel.reset_input()
        self.mock_serial.reset_input_buffer.assert_called_once()

    def test_write_error_closes_port(self):
        """A failed write drops the handle and reports the channel unavailable."""
        self.mock_serial.write.side_effect = serial.SerialException("Device disconnected")

        with self.assertRaises(ChannelUnavailableError):
            self.channel.write(b"/1 home\n")

        self.assertFalse(self.channel.is_connected())
        self.assertIsNone(self.channel._serial)
        self.mock_serial.close.assert_called_once()

    def test_read_error_closes_port(self):
        self.mock_serial.readline.side_effect = serial.SerialException("Device disconnected")

        with self.assertRaises(ChannelUnavailableError):
            self.channel.read_line()

        self.assertFalse(self.channel.is_connected())

    def test_flush_os_error_closes_port(self):
        """tcdrain on a vanished tty raises OSError, not SerialException."""
        self.mock_serial.flush.side_effect = OSError(5, "Input/output error")

        with self.assertRaises(ChannelUnavailableError):
            self.channel.write(b"/1 home\n")

        self.assertFalse(self.channel.is_connected())
        self.mock_serial.close.assert_called_once()

    def test_port_errors_close_port(self):
        """Every I/O failure maps to ChannelUnavailableError and drops the handle."""
        failures = [
            serial.SerialException("Device disconnected"),
            OSError(5, "Input/output error"),
            TtyError("tcflush failed"),
        ]
        operations = [
            ("write", lambda: self.channel.write(b"/1 stop\n")),
            ("flush", lambda: self.channel.write(b"/1 stop\n")),
            ("readline", self.channel.read_line),
            ("reset_input_buffer", self.channel.reset_input),
        ]

        for failure in failures:
            for method, call in operations:
                with self.subTest(method=method, failure=type(failure).__name__):
                    self.channel.disconnect()
                    mock_serial = MagicMock()
                    self.MockSerial.return_value = mock_serial
                    self.assertTrue(self.channel.connect())
                    getattr(mock_serial, method).side_effect = failure

                    with self.assertRaises(ChannelUnavailableError) as ctx:
                        call()

                    self.assertIs(ctx.exception.__cause__, failure)
                    self.assertFalse(self.channel.is_connected())
                    mock_serial.close.assert_called_once()

    def test_io_when_closed(self):
        self.channel.disconnect()

        with self.assertRaises(ChannelUnavailableError):
            self.channel.write(b"/1 stop\n")
        with self.assertRaises(ChannelUnavailableError):
            self.channel.read_line()
        with self.assertRaises(ChannelUnavailableError):
            self.channel.reset_input()


if __name__ == '__main__':
    unittest.main()
