"""
Transport adapter interface

Defines the unified interface every transport adapter (stdio/TCP streams,
ZeroMQ message sockets) implements, so the dispatcher never needs to know
how a logical message is framed on the wire.
"""

import abc
from typing import Any, Awaitable, Callable

# Returned by receive_message once the channel has closed
END_OF_STREAM = object()


class TransportAdapterInterface(abc.ABC):
    """Duplex channel carrying one logical JSON-RPC message per frame"""

    @abc.abstractmethod
    async def send_message(self, message: Any) -> None:
        """Encode and write exactly one frame

        Concurrent callers are serialised so frames never interleave.

        Args:
            message: JSON-serialisable logical message

        Raises:
            TransportClosedError: the channel is closed or the write failed
            FrameTooLargeError: the encoded message exceeds the frame cap
        """
        pass

    @abc.abstractmethod
    async def receive_message(self) -> Any:
        """Wait for the next message in arrival order

        Returns:
            The decoded message (any JSON value, null included), or
            END_OF_STREAM once the channel has closed

        Raises:
            FrameDecodeError: one malformed frame was dropped; the channel is still usable
        """
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Close the channel and release resources"""
        pass

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        """Whether the channel has been closed"""
        pass

    @property
    def peer(self) -> str:
        """Human-readable description of the remote end, for logs"""
        return self.__class__.__name__


class FarEndpointInterface(abc.ABC):
    """Source of far-side connections (a listener or a connector)"""

    @abc.abstractmethod
    async def start(self, on_connection: Callable[[TransportAdapterInterface], Awaitable[None]]) -> None:
        """Start accepting or establishing far-side connections

        Args:
            on_connection: coroutine run for each connection; it returns once
                the connection has closed
        """
        pass

    @abc.abstractmethod
    async def stop(self) -> None:
        """Stop the endpoint and close any live connection"""
        pass

    @property
    @abc.abstractmethod
    def address(self) -> str:
        """Where the far side is expected to be reached"""
        pass
