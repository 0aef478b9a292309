"""Exception hierarchy for the bridge."""
from __future__ import annotations


class BridgeError(Exception):
    """Base class for every error raised by the bridge."""


class ConfigError(BridgeError):
    """Raised when the configuration file holds invalid values."""


# Device link failures


class DeviceError(BridgeError):
    """Failure below the command/response boundary."""


class DeviceTimeoutError(DeviceError):
    """No matching reply arrived before the deadline."""

    def __init__(self, unit_id: int, timeout: float):
        super().__init__(f"No reply from device {unit_id} within {timeout:g}s")
        self.unit_id = unit_id
        self.timeout = timeout


class ChannelUnavailableError(DeviceError):
    """The serial channel is closed or failed during I/O."""


class ProtocolError(DeviceError):
    """The device sent something that is not a well-formed reply."""

    def __init__(self, detail: str):
        super().__init__(f"Protocol error: {detail}")
        self.detail = detail


class DeviceFaultError(DeviceError):
    """The device rejected the command."""

    def __init__(self, detail: str):
        super().__init__(f"Command rejected: {detail}")
        self.detail = detail


# Invocation failures


class InvocationError(BridgeError):
    """An invocation could not be carried out."""


class UnsupportedActionError(InvocationError):
    def __init__(self, unit_id: int, action: str):
        super().__init__(f"Action '{action}' is not supported by unit {unit_id}")
        self.unit_id = unit_id
        self.action = action


class InvalidArgumentsError(InvocationError):
    def __init__(self, action: str, detail: str):
        super().__init__(f"Invalid arguments for '{action}': {detail}")
        self.action = action
        self.detail = detail


class DeviceCommandError(InvocationError):
    """Wraps the DeviceError that made an invocation fail."""

    def __init__(self, unit_id: int, action: str, cause: DeviceError):
        super().__init__(f"'{action}' on unit {unit_id} failed: {cause}")
        self.unit_id = unit_id
        self.action = action
        self.cause = cause


class TelemetryParseError(BridgeError):
    """A telemetry payload could not be interpreted."""

    def __init__(self, payload: str, expected: str = "float"):
        super().__init__(f"Cannot parse {payload!r} as {expected}")
        self.payload = payload
