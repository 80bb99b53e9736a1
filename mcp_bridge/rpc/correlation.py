"""
Correlation table

Maps outstanding call identifiers to the futures their callers await.
Each pending call has exactly one completion: a reply, a fault, its
timeout, or the connection draining. All four go through a single
dict.pop, so whichever happens first wins and the rest are no-ops. The
event loop is single-threaded, so no lock is needed.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from mcp_bridge.errors import CallTimeoutError, ConnectionLostError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000


@dataclass
class PendingCall:
    """Bookkeeping for one outstanding call"""
    identifier: int
    future: asyncio.Future
    created_at: float = field(default_factory=time.monotonic)
    timer: Optional[asyncio.TimerHandle] = None

    @property
    def age_ms(self) -> float:
        return (time.monotonic() - self.created_at) * 1000


class CorrelationTable:
    """
    Pending calls of one far-side connection
    """

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS, name: str = "far",
                 ids: Optional[Iterator[int]] = None):
        """Create an empty table

        Args:
            timeout_ms: per-call timeout armed by register()
            name: label for logs
            ids: identifier source; pass a shared counter so tables on one
                channel never reuse an identifier
        """
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self.timeout_ms = timeout_ms
        self.name = name
        self._ids = ids if ids is not None else itertools.count(1)
        self._pending: Dict[int, PendingCall] = {}
        self._drained = False

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, identifier: Any) -> bool:
        return identifier in self._pending

    def pending_ids(self) -> List[int]:
        return list(self._pending)

    @property
    def drained(self) -> bool:
        return self._drained

    def register(self) -> Tuple[int, asyncio.Future]:
        """Allocate the next identifier and arm its timeout

        Returns:
            (identifier, future) - the future completes with the reply result
            or a BridgeError

        Raises:
            ConnectionLostError: the table was already drained
        """
        if self._drained:
            raise ConnectionLostError()

        loop = asyncio.get_running_loop()
        identifier = next(self._ids)
        pending = PendingCall(identifier=identifier, future=loop.create_future())
        pending.timer = loop.call_later(self.timeout_ms / 1000.0, self.timeout, identifier)
        self._pending[identifier] = pending

        logger.debug(f"[{self.name}] registered call {identifier} ({len(self._pending)} pending)")
        return identifier, pending.future

    def resolve(self, identifier: Any, result: Any) -> bool:
        """Complete a pending call successfully

        Unknown or already completed identifiers (late replies) are ignored.

        Returns:
            bool: whether a pending call was completed
        """
        pending = self._take(identifier)
        if pending is None:
            logger.debug(f"[{self.name}] ignoring reply for unknown call {identifier}")
            return False

        if not pending.future.done():
            pending.future.set_result(result)
        return True

    def fail(self, identifier: Any, error: BaseException) -> bool:
        """Complete a pending call with an exception

        Returns:
            bool: whether a pending call was completed
        """
        pending = self._take(identifier)
        if pending is None:
            logger.debug(f"[{self.name}] ignoring fault for unknown call {identifier}")
            return False

        if not pending.future.done():
            pending.future.set_exception(error)
        return True

    def timeout(self, identifier: int) -> bool:
        """Timer callback; fails the call if it is still pending"""
        pending = self._take(identifier)
        if pending is None:
            return False

        logger.warning(f"[{self.name}] call {identifier} timed out after {self.timeout_ms}ms")
        if not pending.future.done():
            pending.future.set_exception(CallTimeoutError())
        return True

    def drain_on_disconnect(self, reason: Optional[str] = None) -> int:
        """Fail every pending call with a connection-lost error

        Later registrations are refused. Calling this again drains nothing.

        Returns:
            int: number of calls failed
        """
        self._drained = True
        drained = 0
        for identifier in list(self._pending):
            pending = self._take(identifier)
            if pending is None:
                continue
            if not pending.future.done():
                pending.future.set_exception(
                    ConnectionLostError(reason) if reason else ConnectionLostError()
                )
            drained += 1

        if drained:
            logger.info(f"[{self.name}] drained {drained} pending calls on disconnect")
        return drained

    def _take(self, identifier: Any) -> Optional[PendingCall]:
        try:
            pending = self._pending.pop(identifier)
        except (KeyError, TypeError):
            # TypeError: unhashable identifier from a malformed reply
            return None

        if pending.timer is not None:
            pending.timer.cancel()
        return pending
