"""Command serializer for unit actions.

Converts action requests to device command text.
Pure functions with no side effects.
"""
from __future__ import annotations

from decimal import Decimal

from ..errors import InvalidArgumentsError
from ..models import (
    CommandRequest,
    ACTION_MOVE,
    ACTION_MOVE_RELATIVE,
    ACTION_HOME,
    ACTION_STOP,
)

# Query issued by every poll cycle
GET_POSITION = "get pos"

# action -> number of positional arguments
ACTION_ARITY = {
    ACTION_MOVE: 1,
    ACTION_MOVE_RELATIVE: 1,
    ACTION_HOME: 0,
    ACTION_STOP: 0,
}


class CommandSerializer:
    """Serializer for unit actions.

    Converts CommandRequest objects into command text the firmware understands.
    The text is not yet addressed or framed; see ASCIIProtocol for that.
    """

    @staticmethod
    def serialize_request(request: CommandRequest) -> str:
        """Convert a request to command text.

        Args:
            request: Request naming a known action

        Returns:
            Command text, e.g. ``move abs 5``

        Raises:
            InvalidArgumentsError: if the arguments do not fit the action
            ValueError: if the action is unknown
        """
        action = request.action
        if action not in ACTION_ARITY:
            raise ValueError(f"Unknown action: {action}")

        expected = ACTION_ARITY[action]
        if len(request.arguments) != expected:
            raise InvalidArgumentsError(
                action, f"expected {expected} argument(s), got {len(request.arguments)}"
            )

        if action == ACTION_MOVE:
            return f"move abs {CommandSerializer._format_position(action, request.arguments[0])}"
        elif action == ACTION_MOVE_RELATIVE:
            return f"move rel {CommandSerializer._format_position(action, request.arguments[0])}"
        elif action == ACTION_HOME:
            return "home"
        else:  # STOP
            return "stop"

    @staticmethod
    def _format_position(action: str, value: object) -> str:
        # bool is an int subclass but never a position
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidArgumentsError(action, f"position must be a number, got {value!r}")
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidArgumentsError(action, f"position must be finite, got {value!r}")
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        # Fixed-point: the device does not accept exponents such as 1.5e-07
        return format(Decimal(repr(value)), "f")
