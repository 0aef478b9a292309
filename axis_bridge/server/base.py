"""Abstract base class for the node server the bridge publishes into.

The NodeServer interface is the narrow boundary to a network-facing server
(OPC UA or similar). Implementations own the address space, client sessions
and the timer that drives polling. The bridge only:
- registers a namespace, folders, variables and methods
- registers periodic polling callbacks
- writes variable values with a timestamp
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional


@dataclass(frozen=True)
class NodeId:
    """Address of a node: namespace index plus string identifier."""
    namespace: int
    identifier: str

    def __str__(self) -> str:
        return f"ns={self.namespace};s={self.identifier}"


@dataclass(frozen=True)
class DataValue:
    """Value of a variable node with its timestamps."""
    value: Any
    source_timestamp: Optional[float] = None
    server_timestamp: Optional[float] = None


class NodeServer(ABC):
    """Abstract node server interface.

    Servers are responsible for:
    1. Storing the address space
    2. Running polling actions on their own timers
    3. Routing client method calls to registered callbacks
    """

    @abstractmethod
    def register_namespace(self, uri: str) -> int:
        """Register a namespace URI and return its index.

        Registering the same URI twice returns the same index.
        """
        pass

    @abstractmethod
    def add_folder(self, node_id: NodeId, name: str, parent: Optional[NodeId] = None) -> NodeId:
        """Add a folder under ``parent`` (the objects folder when None)."""
        pass

    @abstractmethod
    def add_variables(self, folder: NodeId, variables: Mapping[NodeId, Any]) -> None:
        """Add variable nodes with their initial values under ``folder``."""
        pass

    @abstractmethod
    def add_method(
        self,
        node_id: NodeId,
        name: str,
        callback: Callable[..., Any],
        parent: Optional[NodeId] = None,
    ) -> NodeId:
        """Add a method node whose calls are routed to ``callback``.

        The callback receives the call's input arguments positionally and its
        return value is the call's output.
        """
        pass

    @abstractmethod
    def add_polling_action(self, interval_ms: int, callback: Callable[[], None]) -> None:
        """Run ``callback`` every ``interval_ms`` while the server runs."""
        pass

    @abstractmethod
    def set_values(self, values: Mapping[NodeId, Any], timestamp: float) -> bool:
        """Write several variables at once with one timestamp.

        Readers observe either all of the new values or none of them.

        Returns:
            True if every node existed and was written
        """
        pass

    def set_value(self, node_id: NodeId, value: Any, timestamp: float) -> bool:
        """Write a single variable."""
        return self.set_values({node_id: value}, timestamp)

    @abstractmethod
    def start(self) -> None:
        """Start serving and run polling actions."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop polling actions and serving. Safe to call multiple times."""
        pass

    def __enter__(self) -> NodeServer:
        """Context manager support - start on enter."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - stop on exit."""
        self.stop()
