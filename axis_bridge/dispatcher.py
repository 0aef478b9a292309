"""Command dispatcher.

Turns method invocations into device commands and device replies into
invocation results.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import DeviceCommandError, DeviceError, UnsupportedActionError
from .link import DeviceLink
from .models import ACTION_STOP, CommandRequest, CommandResult, Unit
from .poller import TelemetryPoller
from .protocol import CommandSerializer

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Executes actions on units through the shared device link.

    Safe to call from any number of threads; the link serializes the actual
    exchanges.
    """

    def __init__(
        self,
        link: DeviceLink,
        poller: Optional[TelemetryPoller] = None,
        refresh_after_command: bool = True,
    ):
        """Initialize dispatcher.

        Args:
            link: Shared device link
            poller: Poller used for the post-command refresh, or None to skip it
            refresh_after_command: Whether to refresh published state after success
        """
        self._link = link
        self._poller = poller
        self._refresh = refresh_after_command and poller is not None
        self._units: Dict[int, Unit] = {}
        self._serializer = CommandSerializer()

    def add_unit(self, unit: Unit) -> None:
        self._units[unit.id] = unit

    def invoke(self, unit_id: int, action: str, *arguments: object) -> CommandResult:
        """Run an action on a unit.

        Raises:
            UnsupportedActionError: unknown unit or action outside its capabilities
            InvalidArgumentsError: arguments do not fit the action
            DeviceCommandError: the device exchange failed
        """
        return self.execute(CommandRequest(unit_id, action, tuple(arguments)))

    def execute(self, request: CommandRequest) -> CommandResult:
        unit = self._units.get(request.unit_id)
        if unit is None or not unit.supports(request.action):
            raise UnsupportedActionError(request.unit_id, request.action)

        command = self._serializer.serialize_request(request)

        try:
            reply = self._link.exchange(unit.id, command)
        except DeviceError as e:
            logger.warning(f"{request.action} on {unit.name} failed: {e}")
            raise DeviceCommandError(unit.id, request.action, e) from e

        logger.info(f"{request.action}{list(request.arguments) or ''} on {unit.name} accepted")
        result = CommandResult(
            unit_id=unit.id,
            action=request.action,
            data=reply.data,
            busy=reply.busy,
        )

        if self._refresh:
            self._refresh_unit(unit)

        return result

    def stop_all(self) -> List[CommandResult]:
        """Stop every unit in turn.

        Every unit is tried even if an earlier one fails; the first failure is
        raised afterwards.
        """
        results: List[CommandResult] = []
        first_error: Optional[DeviceCommandError] = None

        for unit_id in sorted(self._units):
            if not self._units[unit_id].supports(ACTION_STOP):
                continue
            try:
                results.append(self.invoke(unit_id, ACTION_STOP))
            except DeviceCommandError as e:
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error
        return results

    def _refresh_unit(self, unit: Unit) -> None:
        # A failed refresh must not turn the accepted command into a failure
        try:
            if not self._poller.refresh(unit.id):
                logger.info(f"Refresh of {unit.name} after command did not produce a good sample")
        except Exception as e:
            logger.error(f"Refresh of {unit.name} after command failed: {e}")
