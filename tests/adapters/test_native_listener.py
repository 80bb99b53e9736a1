"""
Tests for the native-messaging TCP listener

Uses real loopback sockets on a free port.
"""
import asyncio

import pytest

from mcp_bridge.adapters import END_OF_STREAM
from mcp_bridge.adapters.native import NativeMessagingListener
from mcp_bridge.codecs import INCOMPLETE, LengthPrefixedCodec


async def read_frame(reader):
    codec = LengthPrefixedCodec()
    while True:
        message = codec.next_message()
        if message is not INCOMPLETE:
            return message
        chunk = await asyncio.wait_for(reader.read(4096), 2.0)
        assert chunk, "connection closed before a full frame arrived"
        codec.feed(chunk)


class TestNativeMessagingListener:
    """Test the listener end to end"""

    @pytest.mark.asyncio
    async def test_free_port_is_reported(self):
        listener = NativeMessagingListener(port=0)

        async def on_connection(transport):
            pass

        await listener.start(on_connection)
        try:
            assert listener.port != 0
            assert listener.address == f"127.0.0.1:{listener.port}"
        finally:
            await listener.stop()

    @pytest.mark.asyncio
    async def test_echo_over_length_prefixed_frames(self):
        """Test a connection's frames reach on_connection and replies go back"""
        listener = NativeMessagingListener(port=0)
        received = []

        async def on_connection(transport):
            while True:
                message = await transport.receive_message()
                if message is END_OF_STREAM:
                    return
                received.append(message)
                await transport.send_message({"id": message["id"], "result": "ok"})

        await listener.start(on_connection)
        try:
            reader, writer = await asyncio.open_connection("127.0.0.1", listener.port)
            codec = LengthPrefixedCodec()
            writer.write(codec.encode({"id": 1, "method": "ping"}))
            await writer.drain()

            assert await read_frame(reader) == {"id": 1, "result": "ok"}
            assert received == [{"id": 1, "method": "ping"}]

            writer.close()
            await writer.wait_closed()
        finally:
            await listener.stop()

    @pytest.mark.asyncio
    async def test_client_disconnect_ends_session(self):
        listener = NativeMessagingListener(port=0)
        finished = asyncio.Event()

        async def on_connection(transport):
            while await transport.receive_message() is not END_OF_STREAM:
                pass
            finished.set()

        await listener.start(on_connection)
        try:
            _, writer = await asyncio.open_connection("127.0.0.1", listener.port)
            writer.close()
            await writer.wait_closed()
            await asyncio.wait_for(finished.wait(), 2.0)
        finally:
            await listener.stop()

    @pytest.mark.asyncio
    async def test_stop_closes_live_connections(self):
        """Test stopping the listener ends sessions still open"""
        listener = NativeMessagingListener(port=0)
        connected = asyncio.Event()

        async def on_connection(transport):
            connected.set()
            await asyncio.sleep(0.05)

        await listener.start(on_connection)
        reader, writer = await asyncio.open_connection("127.0.0.1", listener.port)
        await asyncio.wait_for(connected.wait(), 2.0)

        await listener.stop()

        assert await asyncio.wait_for(reader.read(), 2.0) == b""
        writer.close()
