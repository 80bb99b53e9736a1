"""
RPC dispatcher

Routes inbound JSON-RPC messages from both sides of the bridge:

- near side (MCP client on stdio): calls are handled, tools/call is
  forwarded to the far side and its outcome becomes the near-side reply
- far side (browser-side agent): replies and faults complete the pending
  calls of that connection's correlation table
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set

from mcp_bridge.adapters.adapter_interface import END_OF_STREAM, TransportAdapterInterface
from mcp_bridge.errors import (
    CALL_FAILED,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    BridgeError,
    FrameDecodeError,
    FrameTooLargeError,
    NotConnectedError,
    RemoteError,
    TransportClosedError,
)
from mcp_bridge.rpc.connection import ConnectionManager, FarConnection
from mcp_bridge.rpc.correlation import CorrelationTable
from mcp_bridge.rpc.messages import MessageKind, classify, make_call, make_fault, make_reply
from mcp_bridge.telemetry.metrics import increment_counter, record_latency
from mcp_bridge.telemetry.tracer import create_span

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_INFO = {"name": "claude-firefox-mcp", "version": "1.0.0"}

Handler = Callable[[Any], Any]


class Dispatcher:
    """
    Bridges near-side MCP calls onto the current far-side connection
    """

    def __init__(self,
                 near: TransportAdapterInterface,
                 connections: ConnectionManager,
                 tools: Optional[List[Dict[str, Any]]] = None,
                 server_info: Optional[Dict[str, Any]] = None,
                 protocol_version: str = PROTOCOL_VERSION):
        """Create a dispatcher

        Args:
            near: transport to the MCP client
            connections: far-side connection state
            tools: tool registry returned by tools/list
            server_info: name/version reported by initialize
            protocol_version: MCP protocol version reported by initialize
        """
        self.near = near
        self.connections = connections
        self.tools = tools if tools is not None else []
        self.server_info = server_info or dict(SERVER_INFO)
        self.protocol_version = protocol_version
        self.initialized = False
        self.client_initialized = False

        self.methods: Dict[str, Handler] = {}
        self.notifications: Dict[str, Handler] = {}
        self._tasks: Set[asyncio.Task] = set()

        self.register_method("initialize", self._handle_initialize)
        self.register_method("tools/list", self._handle_tools_list)
        self.register_method("tools/call", self._handle_tools_call)
        self.register_notification("notifications/initialized", self._handle_initialized)

    def register_method(self, name: str, handler: Handler):
        """Register a near-side call handler

        Args:
            name: method name
            handler: receives params, returns the result (may be a coroutine)
        """
        self.methods[name] = handler
        logger.debug(f"Registered method: {name}")

    def register_notification(self, name: str, handler: Handler):
        """Register a near-side notification handler"""
        self.notifications[name] = handler
        logger.debug(f"Registered notification: {name}")

    @property
    def in_flight(self) -> int:
        """Near-side calls still being handled"""
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Near side
    # ------------------------------------------------------------------

    async def serve_near(self):
        """Read near-side frames until end of stream"""
        logger.info("Reading MCP requests from stdin")

        while True:
            try:
                message = await self.near.receive_message()
            except FrameDecodeError as e:
                logger.warning(f"Parse error: {e}")
                increment_counter("bridge.near.errors", 1, {"type": "parse_error"})
                await self._send_near(make_fault(None, PARSE_ERROR, "Parse error"))
                continue

            if message is END_OF_STREAM:
                logger.info("Stdin closed")
                break

            await self.handle_near_message(message)

        await self.wait_idle()

    async def handle_near_message(self, message: Any):
        """Route one near-side message

        Calls run as independent tasks so many tool calls can be in flight;
        everything else is handled inline, in arrival order.
        """
        if classify(message) == MessageKind.CALL:
            task = asyncio.create_task(self._dispatch_and_send(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return

        await self._dispatch_and_send(message)

    async def _dispatch_and_send(self, message: Any):
        response = await self.dispatch(message)
        if response is not None:
            await self._send_near(response)

    async def dispatch(self, message: Any) -> Optional[Dict[str, Any]]:
        """Handle one near-side message

        Returns:
            The reply or fault to send back, or None when nothing is sent
        """
        kind = classify(message)

        if kind == MessageKind.NOTIFICATION:
            await self._handle_notification(message)
            return None

        if kind == MessageKind.CALL:
            return await self._handle_call(message)

        if kind in (MessageKind.REPLY, MessageKind.FAULT):
            # The bridge never calls the near side, so no reply there has a waiter
            logger.debug(f"Ignoring near-side {kind.value} for id {message['id']}")
            return None

        increment_counter("bridge.near.errors", 1, {"type": "invalid_request"})
        identifier = message.get("id") if isinstance(message, dict) else None
        logger.warning(f"Invalid request: {str(message)[:200]}")
        return make_fault(identifier, INVALID_REQUEST, "Invalid Request")

    async def _handle_notification(self, message: Dict[str, Any]):
        method = message["method"]
        handler = self.notifications.get(method)
        if handler is None:
            logger.debug(f"Ignoring notification: {method}")
            return

        try:
            result = handler(message.get("params"))
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Notification handler {method} failed: {str(e)}")

    async def _handle_call(self, message: Dict[str, Any]) -> Dict[str, Any]:
        identifier = message["id"]
        method = message["method"]
        logger.info(f"Received: {method}")
        increment_counter("bridge.near.requests", 1, {"method": method})

        handler = self.methods.get(method)
        if handler is None:
            increment_counter("bridge.near.errors", 1, {"type": "method_not_found"})
            return make_fault(identifier, METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = handler(message.get("params"))
            if inspect.isawaitable(result):
                result = await result
        except BridgeError as e:
            logger.warning(f"{method} failed: {e}")
            increment_counter("bridge.near.errors", 1, {"type": type(e).__name__, "method": method})
            return make_fault(identifier, e.code, str(e))
        except Exception as e:
            logger.exception(f"Error handling {method}")
            increment_counter("bridge.near.errors", 1, {"type": "internal", "method": method})
            return make_fault(identifier, CALL_FAILED, str(e) or type(e).__name__)

        return make_reply(identifier, result)

    async def _send_near(self, message: Dict[str, Any]):
        try:
            await self.near.send_message(message)
        except TransportClosedError as e:
            logger.warning(f"Dropping near-side response, stdout closed: {e}")

    async def wait_idle(self):
        """Wait until every in-flight near-side call has answered"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Built-in methods
    # ------------------------------------------------------------------

    def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        self.initialized = True
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {"tools": {}},
            "serverInfo": dict(self.server_info)
        }

    def _handle_initialized(self, params: Any):
        self.client_initialized = True
        logger.info("MCP initialized")

    def _handle_tools_list(self, params: Any) -> Dict[str, Any]:
        return {"tools": self.tools}

    async def _handle_tools_call(self, params: Any) -> Any:
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise BridgeError("tools/call requires a tool name")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        logger.info(f"Tool call: {params['name']}")
        return await self.call_far(params["name"], arguments)

    # ------------------------------------------------------------------
    # Far side
    # ------------------------------------------------------------------

    async def call_far(self, name: str, arguments: Any) -> Any:
        """Forward one tool call to the current far-side connection

        Returns:
            The far side's result

        Raises:
            NotConnectedError: no far side attached, or the send failed
            CallTimeoutError: no reply within the call timeout
            ConnectionLostError: the connection closed before replying
            RemoteError: the far side answered with a fault
        """
        connection = self.connections.current
        if connection is None:
            increment_counter("bridge.far.errors", 1, {"type": "not_connected"})
            raise NotConnectedError()

        with create_span("tools/call", {"tool.name": name, "far.peer": connection.peer}):
            identifier, future = connection.calls.register()
            start_time = time.monotonic()

            try:
                await connection.transport.send_message(
                    make_call(identifier, "tools/call", {"name": name, "arguments": arguments})
                )
                increment_counter("bridge.far.calls", 1, {"tool": name})
            except TransportClosedError as e:
                logger.warning(f"Could not send call {identifier} to {connection.peer}: {e}")
                connection.calls.fail(identifier, NotConnectedError())
            except FrameTooLargeError as e:
                connection.calls.fail(identifier, BridgeError(str(e)))

            try:
                return await future
            except BridgeError as e:
                increment_counter("bridge.far.errors", 1, {"type": type(e).__name__, "tool": name})
                raise
            finally:
                record_latency("bridge.far.call.latency", (time.monotonic() - start_time) * 1000, {"tool": name})

    async def serve_far_connection(self, transport: TransportAdapterInterface):
        """Attach a far-side connection and process its frames until it closes"""
        connection = self.connections.attach(transport)
        logger.info(f"Far side attached: {connection.peer}")

        try:
            while True:
                try:
                    message = await transport.receive_message()
                except FrameDecodeError as e:
                    logger.error(f"Failed to parse extension message: {e}")
                    increment_counter("bridge.far.errors", 1, {"type": "parse_error"})
                    continue

                if message is END_OF_STREAM:
                    break

                await self.handle_far_message(connection, message)
        finally:
            drained = self.connections.detach(connection)
            logger.info(f"Far side detached: {connection.peer} ({drained} pending calls failed)")

    async def handle_far_message(self, connection: FarConnection, message: Any):
        """Route one far-side message"""
        kind = classify(message)

        if kind in (MessageKind.REPLY, MessageKind.FAULT):
            self._correlate(connection.calls, kind, message)
        elif kind == MessageKind.CALL:
            # Far-initiated calls are not served by the bridge
            logger.warning(f"Rejecting far-side call: {message['method']}")
            try:
                await connection.transport.send_message(
                    make_fault(message["id"], METHOD_NOT_FOUND, f"Method not found: {message['method']}")
                )
            except TransportClosedError as e:
                logger.warning(f"Could not reject far-side call: {e}")
        elif kind == MessageKind.NOTIFICATION:
            logger.debug(f"Ignoring far-side notification: {message['method']}")
        else:
            logger.warning(f"Ignoring invalid far-side message: {str(message)[:200]}")

    @staticmethod
    def _correlate(table: CorrelationTable, kind: MessageKind, message: Dict[str, Any]):
        identifier = message["id"]
        if kind == MessageKind.FAULT:
            table.fail(identifier, RemoteError.from_error(message["error"]))
        else:
            table.resolve(identifier, message.get("result"))
