"""
Bridge lifecycle

Wires the near-side stdio transport, the configured far-side endpoint and
the dispatcher together, and tears them down in order.
"""

import logging
from typing import Any, Dict, List, Optional

from mcp_bridge.adapters.adapter_factory import AdapterFactory
from mcp_bridge.adapters.adapter_interface import FarEndpointInterface, TransportAdapterInterface
from mcp_bridge.config import BridgeConfig
from mcp_bridge.rpc.connection import ConnectionManager
from mcp_bridge.rpc.dispatcher import Dispatcher
from mcp_bridge.telemetry.metrics import add_gauge_callback
from mcp_bridge.tools import load_tools

logger = logging.getLogger(__name__)


class Bridge:
    """
    One near side, one far endpoint, one dispatcher
    """

    def __init__(self,
                 config: BridgeConfig,
                 near: TransportAdapterInterface,
                 far_endpoint: Optional[FarEndpointInterface] = None,
                 tools: Optional[List[Dict[str, Any]]] = None):
        """Create the bridge

        Args:
            config: bridge configuration
            near: transport to the MCP client
            far_endpoint: far-side listener/connector; built from config if omitted
            tools: tool registry; loaded from config.tools_file if omitted
        """
        self.config = config
        self.near = near
        self.far_endpoint = far_endpoint or AdapterFactory.create_far_endpoint(
            config.far_transport.value, config.far_adapter_config()
        )
        self.connections = ConnectionManager(call_timeout_ms=config.call_timeout_ms)
        self.dispatcher = Dispatcher(
            near=near,
            connections=self.connections,
            tools=tools if tools is not None else load_tools(config.tools_file),
            server_info=config.server_info,
            protocol_version=config.protocol_version
        )
        self._started = False

    async def start(self):
        """Start the far endpoint"""
        add_gauge_callback("bridge.far.pending", self.connections.pending_count,
                           "Calls awaiting a far-side reply")
        await self.far_endpoint.start(self.dispatcher.serve_far_connection)
        self._started = True
        logger.info(f"Bridge started, far side ({self.config.far_transport.value}) at {self.far_endpoint.address}")

    async def run(self):
        """Serve until the near side closes, then shut down"""
        if not self._started:
            await self.start()
        try:
            await self.dispatcher.serve_near()
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop the far endpoint and fail anything still pending"""
        await self.dispatcher.wait_idle()
        if self._started:
            await self.far_endpoint.stop()
            self._started = False
        drained = self.connections.detach_all("Bridge shutting down")
        if drained:
            logger.info(f"Failed {drained} pending calls on shutdown")
        await self.near.close()
        logger.info("Bridge stopped")
