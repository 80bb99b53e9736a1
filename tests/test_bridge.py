"""
Bridge lifecycle tests

The end-to-end cases run the real native listener on a free port with a
TCP client playing the browser extension.
"""
import asyncio

import pytest

from mcp_bridge.adapters.adapter_interface import FarEndpointInterface
from mcp_bridge.adapters.native import NativeMessagingListener
from mcp_bridge.bridge import Bridge
from mcp_bridge.codecs import INCOMPLETE, LengthPrefixedCodec
from mcp_bridge.config import BridgeConfig, FarTransport


class ManualEndpoint(FarEndpointInterface):
    """Far endpoint whose connections are opened by the test"""

    def __init__(self):
        self.on_connection = None
        self.started = False
        self.stopped = False

    @property
    def address(self) -> str:
        return "manual"

    async def start(self, on_connection):
        self.on_connection = on_connection
        self.started = True

    async def stop(self):
        self.stopped = True


class FakeExtension:
    """TCP client answering tools/call the way the browser extension does"""

    def __init__(self, port):
        self.port = port
        self.codec = LengthPrefixedCodec()
        self.calls = []
        self.reader = None
        self.writer = None

    async def connect(self):
        self.reader, self.writer = await asyncio.open_connection("127.0.0.1", self.port)

    async def serve(self):
        while True:
            message = self.codec.next_message()
            if message is INCOMPLETE:
                chunk = await self.reader.read(4096)
                if not chunk:
                    return
                self.codec.feed(chunk)
                continue
            self.calls.append(message)
            params = message["params"]
            if params["name"] == "fail":
                reply = {"id": message["id"], "error": {"message": "No active tab"}}
            else:
                reply = {"id": message["id"], "result": {"tool": params["name"], "args": params["arguments"]}}
            self.writer.write(self.codec.encode(reply))
            await self.writer.drain()

    async def close(self):
        self.writer.close()
        await self.writer.wait_closed()


def test_bridge_builds_endpoint_from_config(make_transport):
    bridge = Bridge(BridgeConfig(far_port=0), make_transport("near"))
    assert isinstance(bridge.far_endpoint, NativeMessagingListener)
    assert bridge.far_endpoint.port == 0


def test_bridge_uses_tools_file(tmp_path, make_transport):
    path = tmp_path / "tools.json"
    path.write_text('[{"name": "only_tool"}]')

    bridge = Bridge(BridgeConfig(tools_file=str(path)), make_transport("near"), ManualEndpoint())
    assert bridge.dispatcher.tools == [{"name": "only_tool"}]


def test_bridge_prefers_given_tools(make_transport):
    """Test a preloaded registry skips reading tools_file"""
    config = BridgeConfig(tools_file="/nonexistent/tools.json")
    bridge = Bridge(config, make_transport("near"), ManualEndpoint(), tools=[{"name": "given"}])
    assert bridge.dispatcher.tools == [{"name": "given"}]


@pytest.mark.asyncio
async def test_run_until_near_side_closes(make_transport):
    """Test run() starts the endpoint, serves stdin and shuts everything down"""
    near = make_transport("near")
    endpoint = ManualEndpoint()
    bridge = Bridge(BridgeConfig(), near, endpoint)

    near.push({"jsonrpc": "2.0", "id": 0, "method": "initialize", "params": {}})
    near.push({"jsonrpc": "2.0", "method": "notifications/initialized"})
    near.push({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "screenshot"}})
    near.push_eof()

    await bridge.run()

    assert endpoint.started and endpoint.stopped
    assert near.closed
    assert near.sent[0]["result"]["serverInfo"]["name"] == "claude-firefox-mcp"
    assert near.sent[1]["error"]["message"].startswith("Firefox extension not connected")


@pytest.mark.asyncio
async def test_shutdown_fails_pending_calls(make_transport):
    """Test calls still waiting on the far side fail when the bridge stops"""
    near, far = make_transport("near"), make_transport("far")
    endpoint = ManualEndpoint()
    bridge = Bridge(BridgeConfig(), near, endpoint)
    await bridge.start()

    session = asyncio.create_task(endpoint.on_connection(far))
    while bridge.connections.current is None:
        await asyncio.sleep(0)

    call = asyncio.create_task(bridge.dispatcher.call_far("screenshot", {}))
    await far.wait_for_sent(1)
    assert bridge.connections.pending_count() == 1

    await bridge.shutdown()

    with pytest.raises(Exception, match="Bridge shutting down"):
        await call
    await far.close()
    await session


@pytest.mark.asyncio
async def test_end_to_end_over_native_listener(make_transport):
    """Test near-side tool calls reach a TCP extension and come back"""
    near = make_transport("near")
    config = BridgeConfig(far_transport=FarTransport.NATIVE, far_port=0)
    bridge = Bridge(config, near)
    await bridge.start()

    extension = FakeExtension(bridge.far_endpoint.port)
    await extension.connect()
    extension_task = asyncio.create_task(extension.serve())
    while bridge.connections.current is None:
        await asyncio.sleep(0.01)

    near.push({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    near.push({"jsonrpc": "2.0", "id": 2, "method": "tools/call",
               "params": {"name": "navigate", "arguments": {"url": "https://example.com"}}})
    near.push({"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "fail"}})
    near.push_eof()

    await asyncio.wait_for(bridge.run(), 5.0)

    responses = {response["id"]: response for response in near.sent}
    assert len(responses[1]["result"]["tools"]) == 13
    assert responses[2]["result"] == {"tool": "navigate", "args": {"url": "https://example.com"}}
    assert responses[3]["error"] == {"code": -32000, "message": "No active tab"}
    assert [call["method"] for call in extension.calls] == ["tools/call", "tools/call"]

    await asyncio.wait_for(extension_task, 5.0)
    await extension.close()


@pytest.mark.asyncio
async def test_extension_disconnect_fails_in_flight_call(make_transport):
    """Test a dropped extension connection fails its pending call"""
    near = make_transport("near")
    bridge = Bridge(BridgeConfig(far_port=0), near)
    await bridge.start()

    reader, writer = await asyncio.open_connection("127.0.0.1", bridge.far_endpoint.port)
    while bridge.connections.current is None:
        await asyncio.sleep(0.01)

    call = asyncio.create_task(bridge.dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": {"name": "tabs_list"}}
    ))
    codec = LengthPrefixedCodec()
    while codec.next_message() is INCOMPLETE:
        codec.feed(await asyncio.wait_for(reader.read(4096), 2.0))

    writer.close()
    await writer.wait_closed()

    response = await asyncio.wait_for(call, 2.0)
    assert response["error"] == {"code": -32000, "message": "Extension connection lost"}

    await bridge.shutdown()
