"""
Far-side connection manager

Tracks which far-side connection is current. Each connection owns its own
correlation table, which is drained when the connection goes away.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

from mcp_bridge.adapters.adapter_interface import TransportAdapterInterface
from mcp_bridge.rpc.correlation import CorrelationTable, DEFAULT_TIMEOUT_MS

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FarConnection:
    """One attached far-side peer"""
    transport: TransportAdapterInterface
    calls: CorrelationTable

    @property
    def peer(self) -> str:
        return self.transport.peer


class ConnectionManager:
    """
    Owner of far-side connection state

    The newest connection becomes current. A replaced connection keeps its
    pending calls until it closes, so replies still reach them. All tables
    draw identifiers from one counter, so no identifier is reused across
    sessions of a reconnecting socket.
    """

    def __init__(self, call_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.call_timeout_ms = call_timeout_ms
        self._current: Optional[FarConnection] = None
        self._connections: List[FarConnection] = []
        self._ids = itertools.count(1)

    @property
    def current(self) -> Optional[FarConnection]:
        """The connection new calls go to, or None when nothing is attached"""
        if self._current is not None and self._current.transport.closed:
            return None
        return self._current

    @property
    def connections(self) -> List[FarConnection]:
        return list(self._connections)

    def pending_count(self) -> int:
        return sum(len(connection.calls) for connection in self._connections)

    def attach(self, transport: TransportAdapterInterface) -> FarConnection:
        connection = FarConnection(
            transport=transport,
            calls=CorrelationTable(timeout_ms=self.call_timeout_ms, name=transport.peer, ids=self._ids)
        )
        if self._current is not None:
            logger.info(f"Far connection {transport.peer} replaces {self._current.peer}")
        self._current = connection
        self._connections.append(connection)
        return connection

    def detach(self, connection: FarConnection, reason: Optional[str] = None) -> int:
        """Drop a connection and fail its pending calls

        Returns:
            int: number of pending calls failed
        """
        if connection in self._connections:
            self._connections.remove(connection)
        if self._current is connection:
            self._current = None
        return connection.calls.drain_on_disconnect(reason)

    def detach_all(self, reason: Optional[str] = None) -> int:
        return sum(self.detach(connection, reason) for connection in list(self._connections))
