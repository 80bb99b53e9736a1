"""
Shared test fixtures
"""
import asyncio
from typing import Any, List, Optional

import pytest

from mcp_bridge.adapters.adapter_interface import END_OF_STREAM, TransportAdapterInterface
from mcp_bridge.errors import TransportClosedError


class FakeTransport(TransportAdapterInterface):
    """In-memory transport: tests push inbound messages and inspect sent ones"""

    def __init__(self, peer: str = "fake"):
        self._peer = peer
        self._inbound: Optional[asyncio.Queue] = None
        self.sent: List[Any] = []
        self.fail_sends = False
        self._closed = False

    @property
    def inbound(self) -> asyncio.Queue:
        if self._inbound is None:
            self._inbound = asyncio.Queue()
        return self._inbound

    @property
    def peer(self) -> str:
        return self._peer

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, item: Any):
        """Queue a message (None is a JSON null) or an exception to raise"""
        self.inbound.put_nowait(item)

    def push_eof(self):
        self.inbound.put_nowait(END_OF_STREAM)

    async def send_message(self, message: Any) -> None:
        if self._closed or self.fail_sends:
            raise TransportClosedError(f"Transport to {self._peer} is closed")
        self.sent.append(message)

    async def receive_message(self) -> Any:
        if self._closed and self.inbound.empty():
            return END_OF_STREAM
        item = await self.inbound.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.inbound.put_nowait(END_OF_STREAM)

    async def wait_for_sent(self, count: int = 1, timeout: float = 2.0) -> List[Any]:
        async def _wait():
            while len(self.sent) < count:
                await asyncio.sleep(0.001)
        await asyncio.wait_for(_wait(), timeout)
        return self.sent


@pytest.fixture
def make_transport():
    """Factory for in-memory transports"""
    return FakeTransport
