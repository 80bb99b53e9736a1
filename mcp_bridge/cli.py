"""
Command-line entry point

    mcp-bridge [serve]   stdio MCP server bridged to the browser extension
    mcp-bridge native    native-messaging host (launched by the browser)

stdout belongs to the wire protocol in both modes; logs go to stderr.
"""
import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp_bridge.adapters.stream import open_stdio_transport
from mcp_bridge.bridge import Bridge
from mcp_bridge.codecs import LengthPrefixedCodec, LineCodec
from mcp_bridge.config import BridgeConfig, FarTransport
from mcp_bridge.native_host import run_native_host
from mcp_bridge.telemetry import setup_metrics, setup_tracer, shutdown_tracer
from mcp_bridge.tools import load_tools

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-bridge",
        description="Bridge stdio MCP tool calls to a browser extension"
    )
    parser.add_argument("mode", nargs="?", choices=["serve", "native"], default="serve",
                        help="serve: MCP server on stdio (default); native: native-messaging host")
    parser.add_argument("--far-transport", choices=[t.value for t in FarTransport],
                        help="Far-side transport")
    parser.add_argument("--host", help="Listen address for the native transport")
    parser.add_argument("--port", type=int, help="Listen port for the native transport")
    parser.add_argument("--zmq-endpoint", help="Endpoint for the zeromq transport")
    parser.add_argument("--timeout-ms", type=int, help="Per-call timeout in milliseconds")
    parser.add_argument("--tools-file", help="JSON file replacing the built-in tool list")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level (logs go to stderr)")
    parser.add_argument("--telemetry", action="store_true", default=None,
                        help="Export OpenTelemetry traces and metrics")
    return parser


def config_from_args(args: argparse.Namespace) -> BridgeConfig:
    """Environment configuration with command-line overrides applied"""
    config = BridgeConfig.from_env()

    if args.far_transport:
        config.far_transport = FarTransport(args.far_transport)
    if args.host:
        config.far_host = args.host
    if args.port is not None:
        config.far_port = args.port
    if args.zmq_endpoint:
        config.zmq_endpoint = args.zmq_endpoint
    if args.timeout_ms is not None:
        config.call_timeout_ms = args.timeout_ms
    if args.tools_file:
        config.tools_file = args.tools_file
    if args.log_level:
        config.log_level = args.log_level
    if args.telemetry:
        config.enable_telemetry = True

    return config.validate()


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


async def serve(config: BridgeConfig, tools: Optional[List[Dict[str, Any]]] = None):
    near = await open_stdio_transport(LineCodec())
    bridge = Bridge(config, near, tools=tools)
    await bridge.run()


async def native(config: BridgeConfig):
    transport = await open_stdio_transport(LengthPrefixedCodec(config.max_frame_bytes))
    await run_native_host(transport)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        tools = load_tools(config.tools_file)
    except (OSError, ValueError) as e:
        print(f"mcp-bridge: invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(config.log_level)
    logger.info("MCP bridge starting...")

    if config.enable_telemetry:
        setup_tracer(config.service_name, config.otlp_endpoint)
        setup_metrics(config.service_name, config.otlp_endpoint)

    try:
        asyncio.run(native(config) if args.mode == "native" else serve(config, tools))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception:
        logger.exception("Fatal error")
        return 1
    finally:
        if config.enable_telemetry:
            shutdown_tracer()

    return 0


if __name__ == "__main__":
    sys.exit(main())
