"""In-process node server.

Implements the NodeServer interface with an in-memory address space. It is
used when no network server is attached and by the tests; clients in the same
process read values with read_value() and invoke methods with call_method().
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from .base import DataValue, NodeId, NodeServer
from .scheduler import RecurringTask

logger = logging.getLogger(__name__)

STANDARD_NAMESPACE = "http://opcfoundation.org/UA/"
OBJECTS_FOLDER = NodeId(0, "Objects")


@dataclass(frozen=True)
class _Node:
    name: str
    parent: NodeId


class LocalServer(NodeServer):
    """Node server backed by dictionaries.

    Responsibilities:
    - Keep namespaces, folders, variables and methods
    - Apply batched writes under one lock
    - Own one RecurringTask per polling action
    """

    def __init__(self, application_name: str = "axis-bridge"):
        self._application_name = application_name
        self._lock = threading.RLock()

        self._namespaces: List[str] = [STANDARD_NAMESPACE]
        self._folders: Dict[NodeId, _Node] = {OBJECTS_FOLDER: _Node("Objects", OBJECTS_FOLDER)}
        self._variables: Dict[NodeId, DataValue] = {}
        self._variable_nodes: Dict[NodeId, _Node] = {}
        self._methods: Dict[NodeId, Callable[..., Any]] = {}
        self._method_nodes: Dict[NodeId, _Node] = {}

        self._tasks: List[RecurringTask] = []
        self._running = False

    @property
    def application_name(self) -> str:
        return self._application_name

    @property
    def running(self) -> bool:
        return self._running

    # --- Address space ---

    def register_namespace(self, uri: str) -> int:
        with self._lock:
            if uri in self._namespaces:
                return self._namespaces.index(uri)
            self._namespaces.append(uri)
            return len(self._namespaces) - 1

    def add_folder(self, node_id: NodeId, name: str, parent: Optional[NodeId] = None) -> NodeId:
        parent = parent or OBJECTS_FOLDER
        with self._lock:
            if parent not in self._folders:
                raise KeyError(f"Unknown parent folder {parent}")
            if node_id in self._folders:
                raise ValueError(f"Folder {node_id} already exists")
            self._folders[node_id] = _Node(name, parent)
        return node_id

    def add_variables(self, folder: NodeId, variables: Mapping[NodeId, Any]) -> None:
        now = time.time()
        with self._lock:
            if folder not in self._folders:
                raise KeyError(f"Unknown folder {folder}")
            for node_id, initial in variables.items():
                if node_id in self._variables:
                    raise ValueError(f"Variable {node_id} already exists")
                self._variables[node_id] = DataValue(initial, now, now)
                self._variable_nodes[node_id] = _Node(node_id.identifier, folder)

    def add_method(
        self,
        node_id: NodeId,
        name: str,
        callback: Callable[..., Any],
        parent: Optional[NodeId] = None,
    ) -> NodeId:
        parent = parent or OBJECTS_FOLDER
        with self._lock:
            if parent not in self._folders:
                raise KeyError(f"Unknown parent folder {parent}")
            if node_id in self._methods:
                raise ValueError(f"Method {node_id} already exists")
            self._methods[node_id] = callback
            self._method_nodes[node_id] = _Node(name, parent)
        return node_id

    def set_values(self, values: Mapping[NodeId, Any], timestamp: float) -> bool:
        server_time = time.time()
        with self._lock:
            missing = [node_id for node_id in values if node_id not in self._variables]
            for node_id, value in values.items():
                if node_id in self._variables:
                    self._variables[node_id] = DataValue(value, timestamp, server_time)

        if missing:
            logger.warning(f"Ignoring writes to unknown nodes: {', '.join(map(str, missing))}")
            return False
        return True

    # --- Client side ---

    def read_value(self, node_id: NodeId) -> DataValue:
        with self._lock:
            return self._variables[node_id]

    def read_values(self, node_ids: List[NodeId]) -> List[DataValue]:
        """Read several variables under one lock (a consistent snapshot)."""
        with self._lock:
            return [self._variables[node_id] for node_id in node_ids]

    def call_method(self, node_id: NodeId, *args: Any) -> Any:
        """Invoke a method node as a client would.

        Exceptions raised by the callback propagate to the caller.
        """
        with self._lock:
            callback = self._methods[node_id]
        return callback(*args)

    def browse(self, folder: NodeId = OBJECTS_FOLDER) -> List[NodeId]:
        """List direct children of a folder."""
        with self._lock:
            children = [
                node_id for node_id, node in self._folders.items()
                if node.parent == folder and node_id != OBJECTS_FOLDER
            ]
            children += [n for n, node in self._variable_nodes.items() if node.parent == folder]
            children += [n for n, node in self._method_nodes.items() if node.parent == folder]
        return children

    # --- Lifecycle ---

    def add_polling_action(self, interval_ms: int, callback: Callable[[], None]) -> None:
        task = RecurringTask(
            interval_ms / 1000.0,
            callback,
            name=f"PollingAction-{len(self._tasks)}",
        )
        self._tasks.append(task)
        if self._running:
            task.start()

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        for task in self._tasks:
            task.start()
        logger.info(f"{self._application_name} started with {len(self._tasks)} polling action(s)")

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        for task in self._tasks:
            task.stop(timeout=5.0)
        logger.info(f"{self._application_name} stopped")
