"""Node server boundary and the in-process implementation."""

from .base import DataValue, NodeId, NodeServer
from .local import LocalServer, OBJECTS_FOLDER
from .scheduler import RecurringTask

__all__ = ["DataValue", "NodeId", "NodeServer", "LocalServer", "OBJECTS_FOLDER", "RecurringTask"]
