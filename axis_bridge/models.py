"""Immutable data models shared by the link, poller and dispatcher.

All models are frozen dataclasses so they can be handed between the poller
threads and invocation threads without copying.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

# Actions every unit understands unless configured otherwise
ACTION_MOVE = "move"
ACTION_MOVE_RELATIVE = "move_relative"
ACTION_HOME = "home"
ACTION_STOP = "stop"

DEFAULT_ACTIONS = frozenset({ACTION_MOVE, ACTION_MOVE_RELATIVE, ACTION_HOME, ACTION_STOP})

# Published node fields
FIELD_POSITION = "position"
FIELD_BUSY = "busy"
FIELD_STATUS = "status"

STATUS_OK = "Ok"
STATUS_INIT = "Init"

REPLY_STATUS_BUSY = "BUSY"
REPLY_STATUS_IDLE = "IDLE"


@dataclass(frozen=True)
class Unit:
    """One addressable axis sharing the serial channel.

    Attributes:
        id: Device address on the daisy chain (1-99)
        name: Folder name the unit's nodes are published under
        actions: Action names this unit accepts
    """
    id: int
    name: str
    actions: FrozenSet[str] = field(default=DEFAULT_ACTIONS)

    def supports(self, action: str) -> bool:
        return action in self.actions

    def node_id(self, field_name: str) -> str:
        """Identifier of the published node for one field of this unit."""
        return f"{self.name}.{field_name}"


@dataclass(frozen=True)
class Reply:
    """A decoded device reply.

    Attributes:
        device: Address of the replying device
        axis: Axis number (0 for the whole device)
        accepted: False when the device rejected the command (RJ flag)
        status: Device status code, BUSY or IDLE
        warning: Highest priority warning flag, "--" when none
        data: Payload text
    """
    device: int
    axis: int
    accepted: bool
    status: str
    warning: str
    data: str

    @property
    def busy(self) -> bool:
        return self.status == REPLY_STATUS_BUSY


@dataclass(frozen=True)
class TelemetrySample:
    """Result of one poll cycle for one unit.

    ``position`` and ``busy`` are None when the cycle failed; ``status`` then
    holds the error text.
    """
    unit_id: int
    status: str
    timestamp: float
    position: Optional[float] = None
    busy: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


@dataclass(frozen=True)
class CommandRequest:
    """An invocation of a named action on a unit."""
    unit_id: int
    action: str
    arguments: Tuple[object, ...] = ()


@dataclass(frozen=True)
class CommandResult:
    """Successful outcome of an invocation.

    Attributes:
        unit_id: Target unit
        action: Action that was executed
        data: Reply payload, empty for most motion commands
        busy: Whether the device reported itself busy after accepting
    """
    unit_id: int
    action: str
    data: str = ""
    busy: bool = False
