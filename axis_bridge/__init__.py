"""Axis bridge - publish serial motion devices as server nodes."""

from .models import (
    Unit,
    Reply,
    TelemetrySample,
    CommandRequest,
    CommandResult,
)
from .errors import (
    BridgeError,
    DeviceError,
    DeviceTimeoutError,
    ChannelUnavailableError,
    ProtocolError,
    DeviceFaultError,
    InvocationError,
    UnsupportedActionError,
    InvalidArgumentsError,
    DeviceCommandError,
    TelemetryParseError,
)
from .link import DeviceLink, SerialChannel
from .poller import TelemetryPoller
from .dispatcher import CommandDispatcher
from .state import PublishedState
from .bridge import Bridge

__all__ = [
    "Unit",
    "Reply",
    "TelemetrySample",
    "CommandRequest",
    "CommandResult",
    "BridgeError",
    "DeviceError",
    "DeviceTimeoutError",
    "ChannelUnavailableError",
    "ProtocolError",
    "DeviceFaultError",
    "InvocationError",
    "UnsupportedActionError",
    "InvalidArgumentsError",
    "DeviceCommandError",
    "TelemetryParseError",
    "DeviceLink",
    "SerialChannel",
    "TelemetryPoller",
    "CommandDispatcher",
    "PublishedState",
    "Bridge",
]
