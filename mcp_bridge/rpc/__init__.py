"""
Request/response correlation layer

- correlation: pending calls keyed by identifier, with timeouts
- connection: far-side connection state
- messages: JSON-RPC 2.0 shapes and inbound classification
- dispatcher: routing between the near and far sides
"""

from .correlation import CorrelationTable, PendingCall
from .connection import ConnectionManager, FarConnection
from .dispatcher import Dispatcher
from .messages import MessageKind, classify

__all__ = [
    "CorrelationTable",
    "PendingCall",
    "ConnectionManager",
    "FarConnection",
    "Dispatcher",
    "MessageKind",
    "classify"
]
