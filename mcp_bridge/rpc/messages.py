"""
JSON-RPC 2.0 message shapes

Builders for outbound messages and classification of inbound ones.
"""

from enum import Enum
from typing import Any, Dict

JSONRPC_VERSION = "2.0"


class MessageKind(Enum):
    """How an inbound message is routed"""
    NOTIFICATION = "notification"
    CALL = "call"
    REPLY = "reply"
    FAULT = "fault"
    INVALID = "invalid"


def classify(message: Any) -> MessageKind:
    """Route an inbound message by the presence of ``id`` and ``method``

    A null id counts as absent, as JSON-RPC notifications have no id.
    """
    if not isinstance(message, dict):
        return MessageKind.INVALID

    has_id = message.get("id") is not None
    method = message.get("method")
    has_method = isinstance(method, str) and bool(method)

    if has_method:
        return MessageKind.CALL if has_id else MessageKind.NOTIFICATION
    if "method" in message:
        # Present but not a usable method name
        return MessageKind.INVALID
    if has_id:
        return MessageKind.FAULT if message.get("error") is not None else MessageKind.REPLY
    return MessageKind.INVALID


def make_call(identifier: Any, method: str, params: Any = None) -> Dict[str, Any]:
    call = {"jsonrpc": JSONRPC_VERSION, "id": identifier, "method": method}
    if params is not None:
        call["params"] = params
    return call


def make_reply(identifier: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": identifier, "result": result}


def make_fault(identifier: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": identifier, "error": error}
