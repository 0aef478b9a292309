"""Telemetry poller.

Queries each unit's position on a fixed schedule and publishes the result.
Every failure is absorbed into the published status text.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional

from .errors import BridgeError, TelemetryParseError
from .link import DeviceLink
from .models import STATUS_OK, Reply, TelemetrySample, Unit
from .protocol import GET_POSITION
from .state import PublishedState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000


def parse_position(reply: Reply) -> float:
    """Interpret a reply payload as a position.

    Raises:
        TelemetryParseError: if the payload is not a finite number
    """
    try:
        position = float(reply.data)
    except ValueError:
        raise TelemetryParseError(reply.data) from None
    if position != position or position in (float("inf"), float("-inf")):
        raise TelemetryParseError(reply.data)
    return position


class TelemetryPoller:
    """Runs poll cycles for the configured units.

    The poller does not own a timer; the server calls poll() for a unit on
    its own schedule. refresh() runs the same cycle on demand.
    """

    def __init__(self, link: DeviceLink, state: PublishedState):
        self._link = link
        self._state = state
        self._units: Dict[int, Unit] = {}
        self._failures: Dict[int, int] = {}
        self._failures_lock = threading.Lock()

    def add_unit(self, unit: Unit) -> None:
        self._units[unit.id] = unit

    def consecutive_failures(self, unit_id: int) -> int:
        """Number of failed cycles since the last good one."""
        with self._failures_lock:
            return self._failures.get(unit_id, 0)

    def sample(self, unit: Unit) -> TelemetrySample:
        """Query the unit once without publishing.

        Never raises for device or parse failures; they come back as a sample
        without position and busy.
        """
        # Stamped when the exchange ends, not while waiting for the link
        try:
            reply = self._link.exchange(unit.id, GET_POSITION)
            timestamp = time.time()
            position = parse_position(reply)
        except BridgeError as e:
            return TelemetrySample(unit_id=unit.id, status=str(e), timestamp=time.time())

        return TelemetrySample(
            unit_id=unit.id,
            status=STATUS_OK,
            timestamp=timestamp,
            position=position,
            busy=reply.busy,
        )

    def poll(self, unit_id: int) -> Optional[TelemetrySample]:
        """Run one cycle for a unit and publish the outcome.

        Returns:
            The published sample, or None if the cycle could not publish
        """
        unit = self._units[unit_id]
        sample = self.sample(unit)
        self._track(sample)

        try:
            self._state.publish_sample(sample)
        except Exception as e:
            logger.error(f"Failed to publish telemetry for {unit.name}: {e}")
            return None
        return sample

    def refresh(self, unit_id: int) -> bool:
        """Poll a unit outside its schedule.

        Returns:
            True if the refreshed sample was good and published
        """
        sample = self.poll(unit_id)
        return sample is not None and sample.ok

    def _track(self, sample: TelemetrySample) -> None:
        with self._failures_lock:
            previous = self._failures.get(sample.unit_id, 0)
            if sample.ok:
                self._failures[sample.unit_id] = 0
                if previous:
                    logger.info(f"Unit {sample.unit_id} recovered after {previous} failed poll(s)")
            else:
                self._failures[sample.unit_id] = previous + 1
                logger.warning(f"Poll of unit {sample.unit_id} failed: {sample.status}")
