"""
Tests for the far-side adapter factory
"""
import pytest

from mcp_bridge.adapters.adapter_factory import AdapterFactory, AdapterType
from mcp_bridge.adapters.native import NativeMessagingListener
from mcp_bridge.adapters.zeromq import ZeroMQConnector


class TestAdapterFactory:
    """Test endpoint selection"""

    def test_native_defaults(self):
        endpoint = AdapterFactory.create_far_endpoint(AdapterType.NATIVE)
        assert isinstance(endpoint, NativeMessagingListener)
        assert endpoint.address == "127.0.0.1:9876"
        assert endpoint.max_frame_bytes == 1048576

    def test_native_with_config(self):
        endpoint = AdapterFactory.create_far_endpoint(
            "NATIVE", {"host": "0.0.0.0", "port": 0, "max_frame_bytes": 1024}
        )
        assert endpoint.host == "0.0.0.0"
        assert endpoint.port == 0
        assert endpoint.max_frame_bytes == 1024

    def test_zeromq(self):
        endpoint = AdapterFactory.create_far_endpoint(
            AdapterType.ZEROMQ, {"endpoint": "tcp://127.0.0.1:5555"}
        )
        try:
            assert isinstance(endpoint, ZeroMQConnector)
            assert endpoint.address == "tcp://127.0.0.1:5555"
        finally:
            endpoint.context.term()

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Invalid adapter type"):
            AdapterFactory.create_far_endpoint("websocket")
