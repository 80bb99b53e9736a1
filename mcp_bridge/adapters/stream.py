"""
Stream transport adapter

Carries framed messages over an asyncio StreamReader/StreamWriter pair:
the process's own stdin/stdout for the near side, or an accepted TCP
connection for the far side. Standard streams redirected to regular files
cannot use pipe transports; those are read and written in a worker thread.
"""

import asyncio
import logging
import os
import stat
import sys
from typing import Any, Optional, Tuple

from mcp_bridge.adapters.adapter_interface import END_OF_STREAM, TransportAdapterInterface
from mcp_bridge.codecs.base import INCOMPLETE, FrameCodec
from mcp_bridge.errors import FrameProtocolError, TransportClosedError

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 64 * 1024


class StreamTransport(TransportAdapterInterface):
    """
    Transport adapter over asyncio streams using a FrameCodec
    """

    def __init__(self,
                 reader: asyncio.StreamReader,
                 writer: Optional[asyncio.StreamWriter],
                 codec: FrameCodec,
                 read_size: int = DEFAULT_READ_SIZE,
                 peer: Optional[str] = None):
        """Create a stream transport

        Args:
            reader: stream the peer writes to us on
            writer: stream we write to; None for a receive-only channel
            codec: frame codec shared by both directions
            read_size: maximum bytes per read
            peer: description of the remote end for logs
        """
        self.reader = reader
        self.writer = writer
        self.codec = codec
        self.read_size = read_size
        self._peer = peer or self._describe_peer(writer)
        self._write_lock = asyncio.Lock()
        self._closed = False
        self._eof = False

    @staticmethod
    def _describe_peer(writer: Optional[asyncio.StreamWriter]) -> str:
        if writer is None:
            return "stream"
        peername = writer.get_extra_info("peername")
        if peername:
            return f"{peername[0]}:{peername[1]}" if isinstance(peername, tuple) else str(peername)
        return "stream"

    @property
    def peer(self) -> str:
        return self._peer

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_message(self, message: Any) -> None:
        if self._closed or self.writer is None:
            raise TransportClosedError(f"Transport to {self._peer} is closed")

        # Encode outside the lock so an oversized message never blocks other writers
        frame = self.codec.encode(message)

        async with self._write_lock:
            if self._closed:
                raise TransportClosedError(f"Transport to {self._peer} is closed")
            try:
                self.writer.write(frame)
                await self.writer.drain()
            except (ConnectionError, OSError, RuntimeError) as e:
                logger.warning(f"Write to {self._peer} failed: {e}")
                self._closed = True
                raise TransportClosedError(f"Write to {self._peer} failed: {e}") from e

        logger.debug(f"Sent {len(frame)} bytes to {self._peer}")

    async def receive_message(self) -> Any:
        while True:
            try:
                message = self.codec.next_message()
            except FrameProtocolError as e:
                logger.error(f"Protocol violation from {self._peer}, closing: {e}")
                await self.close()
                return END_OF_STREAM

            if message is not INCOMPLETE:
                return message

            if self._eof or self._closed:
                return END_OF_STREAM

            try:
                chunk = await self.reader.read(self.read_size)
            except (ConnectionError, OSError) as e:
                logger.info(f"Read from {self._peer} failed: {e}")
                chunk = b""

            if not chunk:
                self._eof = True
                if self.codec.pending_bytes:
                    logger.debug(
                        f"Discarding {self.codec.pending_bytes} bytes of incomplete frame from {self._peer}"
                    )
                    self.codec.reset()
                return END_OF_STREAM

            self.codec.feed(chunk)

    async def close(self) -> None:
        if self._closed and (self.writer is None or self.writer.is_closing()):
            return
        self._closed = True
        if self.writer is not None and not self.writer.is_closing():
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass
        logger.debug(f"Closed transport to {self._peer}")


class FileReader:
    """StreamReader stand-in for a regular file descriptor"""

    def __init__(self, fd: int):
        self.fd = fd

    async def read(self, n: int = DEFAULT_READ_SIZE) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, os.read, self.fd, n)


class FileWriter:
    """StreamWriter stand-in for a regular file descriptor

    write() buffers; drain() hands the buffer to a worker thread. The
    descriptor is never closed, since it belongs to the process.
    """

    def __init__(self, fd: int):
        self.fd = fd
        self._pending = bytearray()
        self._closing = False

    def write(self, data: bytes) -> None:
        if self._closing:
            raise ConnectionError("File writer is closed")
        self._pending.extend(data)

    async def drain(self) -> None:
        if not self._pending:
            return
        data, self._pending = bytes(self._pending), bytearray()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_all, data)

    def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = os.write(self.fd, view)
            view = view[written:]

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        return default

    def is_closing(self) -> bool:
        return self._closing

    def close(self) -> None:
        self._closing = True

    async def wait_closed(self) -> None:
        await self.drain()


def _is_regular_file(stream) -> bool:
    try:
        return stat.S_ISREG(os.fstat(stream.fileno()).st_mode)
    except (OSError, ValueError):
        return False


async def open_stdio_streams(stdin=None, stdout=None) -> Tuple[Any, Any]:
    """Wrap this process's stdin/stdout in asyncio streams

    Args:
        stdin: input file object, defaults to sys.stdin
        stdout: output file object, defaults to sys.stdout

    Returns:
        (reader, writer) with the StreamReader/StreamWriter methods the
        transport uses
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    loop = asyncio.get_running_loop()

    if _is_regular_file(stdin):
        logger.debug("stdin is a regular file, reading in a worker thread")
        reader = FileReader(stdin.fileno())
    else:
        reader = asyncio.StreamReader(limit=DEFAULT_READ_SIZE)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, stdin)

    if _is_regular_file(stdout):
        logger.debug("stdout is a regular file, writing in a worker thread")
        writer = FileWriter(stdout.fileno())
    else:
        write_transport, write_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, stdout
        )
        writer = asyncio.StreamWriter(write_transport, write_protocol, None, loop)

    return reader, writer


async def open_stdio_transport(codec: FrameCodec, stdin=None, stdout=None) -> StreamTransport:
    """Build a transport over this process's standard streams"""
    reader, writer = await open_stdio_streams(stdin, stdout)
    return StreamTransport(reader, writer, codec, peer="stdio")
