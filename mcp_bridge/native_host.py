"""
Native-messaging host mode

When the browser launches this program as a native-messaging host, stdin
and stdout carry length-prefixed frames. Each message is acknowledged by
echoing it back until the browser closes the pipe.
"""

import logging

from mcp_bridge.adapters.adapter_interface import END_OF_STREAM, TransportAdapterInterface
from mcp_bridge.errors import FrameDecodeError, FrameTooLargeError, TransportClosedError

logger = logging.getLogger(__name__)


async def run_native_host(transport: TransportAdapterInterface) -> int:
    """Echo native messages until end of stream

    Returns:
        int: number of messages acknowledged
    """
    logger.info("Running in native messaging mode")
    acknowledged = 0

    while True:
        try:
            message = await transport.receive_message()
        except FrameDecodeError as e:
            logger.error(f"Dropping malformed native message: {e}")
            continue

        if message is END_OF_STREAM:
            break

        logger.debug(f"Native message: {message}")
        try:
            await transport.send_message({"received": True, "echo": message})
        except FrameTooLargeError as e:
            logger.error(f"Echo too large to send back: {e}")
            continue
        except TransportClosedError as e:
            logger.info(f"Browser closed the pipe: {e}")
            break
        acknowledged += 1

    await transport.close()
    logger.info(f"Native messaging host finished after {acknowledged} messages")
    return acknowledged
