"""Device link layer.

This module provides:
- Serial channel management (SerialChannel) - line-oriented I/O
- Serialized command/response exchanges (DeviceLink)
"""

from .channel import SerialChannel
from .manager import DeviceLink, DEFAULT_EXCHANGE_TIMEOUT

__all__ = [
    'SerialChannel',
    'DeviceLink',
    'DEFAULT_EXCHANGE_TIMEOUT',
]
