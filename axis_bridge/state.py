"""Published state adapter.

Maps unit fields to server nodes and writes telemetry into them. The adapter
never reads values back; clients of the server do that.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .models import (
    FIELD_BUSY,
    FIELD_POSITION,
    FIELD_STATUS,
    STATUS_INIT,
    TelemetrySample,
    Unit,
)
from .server import NodeId, NodeServer

logger = logging.getLogger(__name__)

# field -> (initial value, description)
UNIT_FIELDS = {
    FIELD_POSITION: (0.0, "position"),
    FIELD_STATUS: (STATUS_INIT, "status"),
    FIELD_BUSY: (False, "busy"),
}


class PublishedState:
    """Externally visible mirror of the latest sample per unit.

    Each write goes through NodeServer.set_values, which applies a batch
    atomically, so the fields of one poll cycle appear together.
    """

    def __init__(self, server: NodeServer, namespace: int):
        self._server = server
        self._namespace = namespace
        self._nodes: Dict[int, Dict[str, NodeId]] = {}

    def register_unit(self, unit: Unit, folder: NodeId) -> Dict[str, NodeId]:
        """Create the unit's variables under ``folder`` with initial values.

        Returns:
            Mapping of field name to node id
        """
        if unit.id in self._nodes:
            raise ValueError(f"Unit {unit.id} is already registered")

        nodes = {name: NodeId(self._namespace, unit.node_id(name)) for name in UNIT_FIELDS}
        self._server.add_variables(
            folder,
            {nodes[name]: initial for name, (initial, _) in UNIT_FIELDS.items()},
        )
        self._nodes[unit.id] = nodes
        return nodes

    def node_id(self, unit_id: int, field: str) -> NodeId:
        return self._nodes[unit_id][field]

    def publish(self, unit_id: int, field: str, value: Any, timestamp: float) -> None:
        """Replace one field's value."""
        self.publish_fields(unit_id, {field: value}, timestamp)

    def publish_fields(self, unit_id: int, fields: Mapping[str, Any], timestamp: float) -> None:
        """Replace several fields of one unit with one timestamp."""
        nodes = self._nodes[unit_id]
        values = {nodes[name]: value for name, value in fields.items()}
        if not self._server.set_values(values, timestamp):
            logger.warning(f"Server refused some values for unit {unit_id}")

    def publish_sample(self, sample: TelemetrySample) -> None:
        """Publish a poll result.

        Status is always written. Position and busy are only written when the
        sample carries them, so a failed cycle leaves the last good values.
        """
        fields: Dict[str, Any] = {}
        if sample.position is not None:
            fields[FIELD_POSITION] = sample.position
        if sample.busy is not None:
            fields[FIELD_BUSY] = sample.busy
        fields[FIELD_STATUS] = sample.status
        self.publish_fields(sample.unit_id, fields, sample.timestamp)
