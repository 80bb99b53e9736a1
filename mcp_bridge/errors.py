"""
Bridge error taxonomy

Every failure a near-side call can see maps onto one JSON-RPC error code.
Faults stay local to the call that triggered them; only channel closure
touches more than one call.
"""

from typing import Any, Dict, Optional

# JSON-RPC 2.0 error codes surfaced to the near side
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
CALL_FAILED = -32000

NOT_CONNECTED_MESSAGE = "Firefox extension not connected. Start Firefox with the extension loaded."
TIMEOUT_MESSAGE = "Extension request timed out"
CONNECTION_LOST_MESSAGE = "Extension connection lost"
REMOTE_ERROR_MESSAGE = "Extension error"


class BridgeError(Exception):
    """Base class for failures reported to the near side as a call fault."""

    code = CALL_FAILED

    def to_error(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class NotConnectedError(BridgeError):
    """No far-side peer is attached, or it went away before the call was sent."""

    def __init__(self, message: str = NOT_CONNECTED_MESSAGE):
        super().__init__(message)


class CallTimeoutError(BridgeError):
    """The far side did not answer within the call timeout."""

    def __init__(self, message: str = TIMEOUT_MESSAGE):
        super().__init__(message)


class ConnectionLostError(BridgeError):
    """The far-side channel closed while the call was pending."""

    def __init__(self, message: str = CONNECTION_LOST_MESSAGE):
        super().__init__(message)


class RemoteError(BridgeError):
    """A fault reported by the far side.

    The far side's message text is preserved; its own code is kept for logs
    but the near side always sees ``CALL_FAILED``.
    """

    def __init__(self, message: str = REMOTE_ERROR_MESSAGE,
                 remote_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.remote_code = remote_code
        self.data = data

    @classmethod
    def from_error(cls, error: Any) -> "RemoteError":
        """Build from the ``error`` member of a far-side fault."""
        if isinstance(error, dict):
            return cls(
                message=error.get("message") or REMOTE_ERROR_MESSAGE,
                remote_code=error.get("code"),
                data=error.get("data"),
            )
        if isinstance(error, str) and error:
            return cls(message=error)
        return cls()


class FrameError(Exception):
    """Base class for wire framing failures."""


class FrameDecodeError(FrameError):
    """One frame could not be parsed. The stream itself is still usable."""


class FrameProtocolError(FrameError):
    """The byte stream violates the framing protocol and cannot be resynchronised."""


class FrameTooLargeError(FrameProtocolError):
    """A frame exceeds the configured size cap."""


class TransportClosedError(ConnectionError):
    """A message could not be written because the channel is closed."""
