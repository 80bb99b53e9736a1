"""
Adapter factory

Creates the far-side endpoint selected by configuration, so one dispatcher
serves every far transport.
"""

from typing import Any, Dict

from mcp_bridge.adapters.adapter_interface import FarEndpointInterface
from mcp_bridge.codecs.length_prefixed import MAX_FRAME_BYTES


class AdapterType:
    """Far-side adapter type constants"""
    NATIVE = "native"
    ZEROMQ = "zeromq"


class AdapterFactory:
    """Factory for far-side endpoints"""

    @staticmethod
    def create_far_endpoint(adapter_type: str, config: Dict[str, Any] = None) -> FarEndpointInterface:
        """Create a far-side endpoint

        Args:
            adapter_type: "native" or "zeromq"
            config: adapter settings

        Returns:
            FarEndpointInterface: endpoint instance (not yet started)

        Raises:
            ValueError: unknown adapter type
        """
        if config is None:
            config = {}

        if adapter_type.lower() == AdapterType.NATIVE:
            from mcp_bridge.adapters.native import NativeMessagingListener
            return NativeMessagingListener(
                host=config.get("host", "127.0.0.1"),
                port=config.get("port", 9876),
                max_frame_bytes=config.get("max_frame_bytes", MAX_FRAME_BYTES)
            )
        elif adapter_type.lower() == AdapterType.ZEROMQ:
            from mcp_bridge.adapters.zeromq import ZeroMQConnector
            return ZeroMQConnector(
                endpoint=config.get("endpoint", "tcp://127.0.0.1:9876"),
                poll_interval_ms=config.get("poll_interval_ms", 100),
                max_message_bytes=config.get("max_frame_bytes", MAX_FRAME_BYTES)
            )
        else:
            raise ValueError(f"Invalid adapter type: {adapter_type}")
