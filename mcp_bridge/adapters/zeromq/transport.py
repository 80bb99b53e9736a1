"""
ZeroMQ message transport

One JSON-RPC object per ZeroMQ message on a PAIR socket. ZeroMQ does the
framing, so no frame codec is involved.
"""

import asyncio
import logging
from typing import Any

import zmq
import zmq.asyncio

from mcp_bridge.adapters.adapter_interface import END_OF_STREAM, TransportAdapterInterface
from mcp_bridge.codecs.base import dumps, loads
from mcp_bridge.codecs.length_prefixed import MAX_FRAME_BYTES
from mcp_bridge.errors import FrameTooLargeError, TransportClosedError

logger = logging.getLogger(__name__)


class ZeroMQTransport(TransportAdapterInterface):
    """
    Transport adapter over a zmq.asyncio socket
    """

    def __init__(self,
                 socket: zmq.asyncio.Socket,
                 peer: str = "zeromq",
                 poll_interval_ms: int = 100,
                 max_message_bytes: int = MAX_FRAME_BYTES,
                 owns_socket: bool = True):
        """Wrap a connected socket

        Args:
            socket: PAIR socket (or any socket with send/recv semantics)
            peer: endpoint description for logs
            poll_interval_ms: how often receive_message re-checks for close
            max_message_bytes: outbound message size cap
            owns_socket: close the socket on close(); False when the socket
                outlives this connection (reconnecting connector)
        """
        self.socket = socket
        self.poll_interval_ms = poll_interval_ms
        self.max_message_bytes = max_message_bytes
        self.owns_socket = owns_socket
        self._peer = peer
        self._send_lock = asyncio.Lock()
        self._closed = False

    @property
    def peer(self) -> str:
        return self._peer

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_message(self, message: Any) -> None:
        if self._closed:
            raise TransportClosedError(f"Transport to {self._peer} is closed")

        raw = dumps(message)
        if len(raw) > self.max_message_bytes:
            raise FrameTooLargeError(
                f"Message too large: {len(raw)} bytes (max {self.max_message_bytes})"
            )

        async with self._send_lock:
            try:
                # NOBLOCK: a PAIR socket with no peer would otherwise wait forever
                await self.socket.send(raw, flags=zmq.NOBLOCK)
            except zmq.error.Again as e:
                raise TransportClosedError(f"No peer on {self._peer}") from e
            except zmq.error.ZMQError as e:
                logger.error(f"ZeroMQ send error on {self._peer}: {str(e)}")
                raise TransportClosedError(f"ZeroMQ send error: {str(e)}") from e

        logger.debug(f"Sent {len(raw)} bytes to {self._peer}")

    async def receive_message(self) -> Any:
        while not self._closed:
            try:
                events = await self.socket.poll(timeout=self.poll_interval_ms, flags=zmq.POLLIN)
                if not events:
                    continue
                data = await self.socket.recv()
            except zmq.error.ZMQError as e:
                if not self._closed:
                    logger.info(f"ZeroMQ receive stopped on {self._peer}: {str(e)}")
                self._closed = True
                return END_OF_STREAM

            return loads(data)

        return END_OF_STREAM

    async def close(self) -> None:
        if self._closed and not self.owns_socket:
            return
        self._closed = True
        if self.owns_socket and not self.socket.closed:
            self.socket.close(linger=0)
        logger.debug(f"Closed transport to {self._peer}")
