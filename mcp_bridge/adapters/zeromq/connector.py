"""
ZeroMQ far-side connector

Connects a PAIR socket to the browser-side agent's fixed endpoint and uses
a socket monitor to learn when the peer attaches and detaches. ZeroMQ
reconnects by itself; each connected period is reported as a new
connection so pending calls drain on every disconnect.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import zmq
import zmq.asyncio
from zmq.utils.monitor import parse_monitor_message

from mcp_bridge.adapters.adapter_interface import FarEndpointInterface, TransportAdapterInterface
from mcp_bridge.adapters.zeromq.transport import ZeroMQTransport
from mcp_bridge.codecs.length_prefixed import MAX_FRAME_BYTES
from mcp_bridge.telemetry.metrics import increment_counter

logger = logging.getLogger(__name__)

_MONITOR_EVENTS = zmq.EVENT_CONNECTED | zmq.EVENT_DISCONNECTED


class ZeroMQConnector(FarEndpointInterface):
    """
    Connector for message-socket far-side connections
    """

    def __init__(self,
                 endpoint: str = "tcp://127.0.0.1:9876",
                 poll_interval_ms: int = 100,
                 max_message_bytes: int = MAX_FRAME_BYTES,
                 context: Optional[zmq.asyncio.Context] = None):
        """Create the connector

        Args:
            endpoint: ZeroMQ endpoint of the browser-side agent
            poll_interval_ms: receive poll interval
            max_message_bytes: outbound message size cap
            context: ZeroMQ context; a private one is created if omitted
        """
        self.endpoint = endpoint
        self.poll_interval_ms = poll_interval_ms
        self.max_message_bytes = max_message_bytes
        self._own_context = context is None
        self.context = context or zmq.asyncio.Context()
        self.socket: Optional[zmq.asyncio.Socket] = None
        self._monitor: Optional[zmq.asyncio.Socket] = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._session_task: Optional[asyncio.Task] = None
        self._transport: Optional[ZeroMQTransport] = None
        self._on_connection: Optional[Callable[[TransportAdapterInterface], Awaitable[None]]] = None

    @property
    def address(self) -> str:
        return self.endpoint

    async def start(self, on_connection: Callable[[TransportAdapterInterface], Awaitable[None]]) -> None:
        self._on_connection = on_connection

        self.socket = self.context.socket(zmq.PAIR)
        self.socket.setsockopt(zmq.LINGER, 0)
        self._monitor = self.socket.get_monitor_socket(_MONITOR_EVENTS)
        self.socket.connect(self.endpoint)

        self._monitor_task = asyncio.create_task(self._watch())
        logger.info(f"ZeroMQ connector connecting to {self.endpoint}")

    async def _watch(self):
        """Monitor loop turning socket events into connection sessions"""
        while True:
            frames = await self._monitor.recv_multipart()
            event = parse_monitor_message(frames)

            if event["event"] == zmq.EVENT_CONNECTED:
                await self._attach()
            elif event["event"] == zmq.EVENT_DISCONNECTED:
                await self._detach()

    async def _attach(self):
        if self._transport is not None and not self._transport.closed:
            return

        self._transport = ZeroMQTransport(
            self.socket,
            peer=self.endpoint,
            poll_interval_ms=self.poll_interval_ms,
            max_message_bytes=self.max_message_bytes,
            owns_socket=False
        )
        increment_counter("bridge.far.connections", 1, {"transport": "zeromq"})
        logger.info(f"Browser extension connected on {self.endpoint}")
        self._session_task = asyncio.create_task(self._on_connection(self._transport))

    async def _detach(self):
        if self._transport is None:
            return

        transport, self._transport = self._transport, None
        await transport.close()
        if self._session_task is not None:
            await self._session_task
            self._session_task = None
        logger.info(f"Browser extension disconnected from {self.endpoint}")

    async def stop(self) -> None:
        if self._monitor_task is not None:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None

        await self._detach()

        if self.socket is not None:
            self.socket.disable_monitor()
            if self._monitor is not None:
                self._monitor.close(linger=0)
                self._monitor = None
            self.socket.close(linger=0)
            self.socket = None

        if self._own_context:
            self.context.term()

        logger.info("ZeroMQ connector stopped")
