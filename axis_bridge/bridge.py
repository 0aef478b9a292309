"""Bridge assembly.

Registers every unit's nodes, polling action and methods on a node server and
wires them to one shared device link.
"""
from __future__ import annotations

import functools
import logging
from typing import Dict, Iterable, List

from .dispatcher import CommandDispatcher
from .link import DeviceLink
from .models import Unit
from .poller import DEFAULT_POLL_INTERVAL_MS, TelemetryPoller
from .server import NodeId, NodeServer
from .state import PublishedState

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "urn:axis-bridge"
STOP_ALL_METHOD = "stop_all"


class Bridge:
    """Connects a device link to a node server.

    Example:
        >>> server = LocalServer()
        >>> link = DeviceLink(port="/dev/ttyACM0")
        >>> bridge = Bridge(server, link, [Unit(1, "cross-slide")])
        >>> bridge.setup()
        >>> with server:
        ...     server.call_method(bridge.method_node(1, "home"))
    """

    def __init__(
        self,
        server: NodeServer,
        link: DeviceLink,
        units: Iterable[Unit],
        namespace_uri: str = DEFAULT_NAMESPACE,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        refresh_after_command: bool = True,
    ):
        self._server = server
        self._link = link
        self._units: List[Unit] = list(units)
        self._namespace_uri = namespace_uri
        self._poll_interval_ms = poll_interval_ms
        self._refresh_after_command = refresh_after_command

        ids = [unit.id for unit in self._units]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate unit ids in {ids}")

        self._namespace = -1
        self._state: PublishedState
        self._poller: TelemetryPoller
        self._dispatcher: CommandDispatcher
        self._folders: Dict[int, NodeId] = {}
        self._methods: Dict[int, Dict[str, NodeId]] = {}
        self._ready = False

    @property
    def namespace(self) -> int:
        return self._namespace

    @property
    def state(self) -> PublishedState:
        return self._state

    @property
    def poller(self) -> TelemetryPoller:
        return self._poller

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def units(self) -> List[Unit]:
        return list(self._units)

    def setup(self) -> None:
        """Register namespace, nodes, polling actions and methods."""
        if self._ready:
            return

        ns = self._server.register_namespace(self._namespace_uri)
        self._namespace = ns
        self._state = PublishedState(self._server, ns)
        self._poller = TelemetryPoller(self._link, self._state)
        self._dispatcher = CommandDispatcher(
            self._link,
            poller=self._poller,
            refresh_after_command=self._refresh_after_command,
        )

        self._server.add_method(
            NodeId(ns, STOP_ALL_METHOD),
            STOP_ALL_METHOD,
            self._dispatcher.stop_all,
        )

        for unit in self._units:
            self._add_unit(unit)

        self._ready = True
        logger.info(f"Bridge ready: {len(self._units)} unit(s) in namespace {self._namespace_uri}")

    def folder_node(self, unit_id: int) -> NodeId:
        return self._folders[unit_id]

    def method_node(self, unit_id: int, action: str) -> NodeId:
        return self._methods[unit_id][action]

    def stop_all_node(self) -> NodeId:
        return NodeId(self._namespace, STOP_ALL_METHOD)

    def _add_unit(self, unit: Unit) -> None:
        ns = self._namespace
        folder = self._server.add_folder(NodeId(ns, unit.name), unit.name)
        self._folders[unit.id] = folder

        self._state.register_unit(unit, folder)
        self._poller.add_unit(unit)
        self._dispatcher.add_unit(unit)

        self._server.add_polling_action(
            self._poll_interval_ms,
            functools.partial(self._poller.poll, unit.id),
        )

        methods = {}
        for action in sorted(unit.actions):
            methods[action] = self._server.add_method(
                NodeId(ns, unit.node_id(action)),
                action,
                functools.partial(self._dispatcher.invoke, unit.id, action),
                parent=folder,
            )
        self._methods[unit.id] = methods

        logger.debug(f"Registered unit {unit.name} (device {unit.id})")
