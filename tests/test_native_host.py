"""
Tests for native-messaging host mode
"""
import pytest

from mcp_bridge.errors import FrameDecodeError, FrameTooLargeError
from mcp_bridge.native_host import run_native_host


@pytest.mark.asyncio
async def test_echoes_until_eof(make_transport):
    transport = make_transport("browser")
    transport.push({"type": "hello"})
    transport.push([1, 2])
    transport.push_eof()

    assert await run_native_host(transport) == 2
    assert transport.sent == [
        {"received": True, "echo": {"type": "hello"}},
        {"received": True, "echo": [1, 2]},
    ]
    assert transport.closed


@pytest.mark.asyncio
async def test_malformed_message_is_skipped(make_transport):
    transport = make_transport("browser")
    transport.push(FrameDecodeError("bad"))
    transport.push({"ok": 1})
    transport.push_eof()

    assert await run_native_host(transport) == 1


@pytest.mark.asyncio
async def test_stops_when_pipe_closes(make_transport):
    transport = make_transport("browser")
    transport.fail_sends = True
    transport.push({"ok": 1})
    transport.push({"ok": 2})

    assert await run_native_host(transport) == 0
    assert transport.sent == []


@pytest.mark.asyncio
async def test_oversized_echo_is_skipped(make_transport):
    transport = make_transport("browser")
    sends = []

    async def send_message(message):
        sends.append(message)
        if len(sends) == 1:
            raise FrameTooLargeError("too big")
        transport.sent.append(message)

    transport.send_message = send_message
    transport.push({"big": "x"})
    transport.push({"small": 1})
    transport.push_eof()

    assert await run_native_host(transport) == 1
    assert transport.sent == [{"received": True, "echo": {"small": 1}}]
