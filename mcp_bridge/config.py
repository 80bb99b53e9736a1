"""
Configuration settings for the MCP bridge
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from mcp_bridge.codecs.length_prefixed import MAX_FRAME_BYTES
from mcp_bridge.rpc.correlation import DEFAULT_TIMEOUT_MS
from mcp_bridge.rpc.dispatcher import PROTOCOL_VERSION, SERVER_INFO


class FarTransport(Enum):
    """Supported far-side transports"""
    NATIVE = "native"    # length-prefixed frames over TCP
    ZEROMQ = "zeromq"    # one message per frame on a ZeroMQ PAIR socket


_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class BridgeConfig:
    """Main configuration for the bridge"""
    far_transport: FarTransport = FarTransport.NATIVE
    far_host: str = "127.0.0.1"
    far_port: int = 9876
    zmq_endpoint: str = "tcp://127.0.0.1:9876"
    call_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_frame_bytes: int = MAX_FRAME_BYTES
    tools_file: Optional[str] = None
    log_level: str = "INFO"

    # Telemetry configuration
    enable_telemetry: bool = False
    otlp_endpoint: str = "localhost:4317"
    service_name: str = "mcp-bridge"

    # Reported by initialize
    server_name: str = SERVER_INFO["name"]
    server_version: str = SERVER_INFO["version"]
    protocol_version: str = PROTOCOL_VERSION

    @classmethod
    def default(cls) -> "BridgeConfig":
        """Create default configuration"""
        return cls()

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        """Create config from environment variables"""
        defaults = cls()
        return cls(
            far_transport=FarTransport(
                os.getenv("MCP_BRIDGE_FAR_TRANSPORT", defaults.far_transport.value).lower()
            ),
            far_host=os.getenv("MCP_BRIDGE_FAR_HOST", defaults.far_host),
            far_port=int(os.getenv("MCP_BRIDGE_FAR_PORT", defaults.far_port)),
            zmq_endpoint=os.getenv("MCP_BRIDGE_ZMQ_ENDPOINT", defaults.zmq_endpoint),
            call_timeout_ms=int(os.getenv("MCP_BRIDGE_CALL_TIMEOUT_MS", defaults.call_timeout_ms)),
            max_frame_bytes=int(os.getenv("MCP_BRIDGE_MAX_FRAME_BYTES", defaults.max_frame_bytes)),
            tools_file=os.getenv("MCP_BRIDGE_TOOLS_FILE") or None,
            log_level=os.getenv("MCP_BRIDGE_LOG_LEVEL", defaults.log_level).upper(),
            enable_telemetry=os.getenv("MCP_BRIDGE_TELEMETRY", "").lower() in _TRUE_VALUES,
            otlp_endpoint=os.getenv("MCP_BRIDGE_OTLP_ENDPOINT", defaults.otlp_endpoint),
            service_name=os.getenv("MCP_BRIDGE_SERVICE_NAME", defaults.service_name),
        )

    def validate(self) -> "BridgeConfig":
        """Check value ranges

        Raises:
            ValueError: a setting is out of range
        """
        if not isinstance(self.far_transport, FarTransport):
            self.far_transport = FarTransport(str(self.far_transport).lower())
        if self.call_timeout_ms <= 0:
            raise ValueError(f"call_timeout_ms must be positive, got {self.call_timeout_ms}")
        if not 0 < self.max_frame_bytes <= MAX_FRAME_BYTES:
            raise ValueError(f"max_frame_bytes must be in (0, {MAX_FRAME_BYTES}], got {self.max_frame_bytes}")
        if not 0 <= self.far_port <= 65535:
            raise ValueError(f"far_port out of range: {self.far_port}")
        return self

    @property
    def server_info(self) -> Dict[str, str]:
        return {"name": self.server_name, "version": self.server_version}

    def far_adapter_config(self) -> Dict[str, Any]:
        """Settings handed to AdapterFactory for the selected far transport"""
        if self.far_transport == FarTransport.ZEROMQ:
            return {"endpoint": self.zmq_endpoint, "max_frame_bytes": self.max_frame_bytes}
        return {"host": self.far_host, "port": self.far_port, "max_frame_bytes": self.max_frame_bytes}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "far_transport": self.far_transport.value,
            "far_host": self.far_host,
            "far_port": self.far_port,
            "zmq_endpoint": self.zmq_endpoint,
            "call_timeout_ms": self.call_timeout_ms,
            "max_frame_bytes": self.max_frame_bytes,
            "tools_file": self.tools_file,
            "log_level": self.log_level,
            "enable_telemetry": self.enable_telemetry,
            "otlp_endpoint": self.otlp_endpoint,
            "service_name": self.service_name,
        }
