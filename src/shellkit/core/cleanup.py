"""Cleanup manager: LIFO teardown callbacks run within a time budget.

Callbacks are kept in registration order behind a lock and copied into
a reversed snapshot before a sweep, so registering or unregistering
during the sweep never disturbs iteration.

Sweep policy
------------
* A callback that raises is logged and the sweep **continues**.
* When the budget elapses, or the caller's token is cancelled, the
  sweep **stops**; callbacks not yet started are skipped.
* Both outcomes report ``False``.
* The table is cleared after every sweep; a manager serves one
  shutdown cycle.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Final

from shellkit.core.cancellation import CancellationToken
from shellkit.exceptions import CleanupManagerClosedError, OperationCancelledError

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_TIMEOUT: Final[float] = 5.0
"""Seconds allowed for one sweep when no timeout is given."""

AsyncCleanup = Callable[[CancellationToken], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class _CleanupEntry:
    id: str
    callback: AsyncCleanup
    name: str | None


class CleanupHandle:
    """Handle returned by :meth:`CleanupManager.register_cleanup`.

    Usable as a context manager: leaving the block unregisters the
    callback.
    """

    def __init__(self, manager: CleanupManager, entry_id: str, name: str | None) -> None:
        self._manager = manager
        self._id = entry_id
        self._name = name

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def is_registered(self) -> bool:
        return self._manager._has(self._id)

    def unregister(self) -> bool:
        """Remove the callback.  Returns ``False`` if it was already gone."""
        return self._manager._remove(self._id)

    def __enter__(self) -> CleanupHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unregister()

    def __repr__(self) -> str:
        return f"<CleanupHandle {self._name or self._id}>"


def _as_async(callback: Callable[..., Any]) -> AsyncCleanup:
    if inspect.iscoroutinefunction(callback):
        return callback

    async def run_sync(token: CancellationToken) -> None:
        result = callback()
        if inspect.isawaitable(result):
            await result

    return run_sync


class CleanupManager:
    """Registry of shutdown callbacks executed last-registered-first."""

    def __init__(self) -> None:
        self._entries: dict[str, _CleanupEntry] = {}
        self._lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_cleanup(
        self,
        callback: Callable[..., Any],
        name: str | None = None,
    ) -> CleanupHandle:
        """Register *callback* for the next sweep.

        Coroutine functions receive the sweep's cancellation token;
        plain callables are called with no arguments.
        """
        if self._closed:
            raise CleanupManagerClosedError("Cleanup manager is closed.")

        entry = _CleanupEntry(id=uuid.uuid4().hex, callback=_as_async(callback), name=name)
        with self._lock:
            self._entries[entry.id] = entry
        logger.debug("Registered cleanup %s", name or entry.id)
        return CleanupHandle(self, entry.id, name)

    @property
    def registered_count(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def _has(self, entry_id: str) -> bool:
        with self._lock:
            return entry_id in self._entries

    def _remove(self, entry_id: str) -> bool:
        with self._lock:
            return self._entries.pop(entry_id, None) is not None

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    async def execute_cleanup(
        self,
        timeout: float = DEFAULT_CLEANUP_TIMEOUT,
        token: CancellationToken | None = None,
    ) -> bool:
        """Run every registered callback in reverse registration order.

        Returns ``True`` only if every callback completed within
        *timeout* seconds without raising.
        """
        with self._lock:
            snapshot = list(reversed(self._entries.values()))

        loop = asyncio.get_running_loop()
        budget = CancellationToken.linked(token)
        timer = loop.call_later(timeout, budget.cancel)
        ok = True
        try:
            for position, entry in enumerate(snapshot):
                label = entry.name or entry.id
                if budget.cancelled:
                    ok = False
                    self._log_abort(token, len(snapshot) - position)
                    break
                try:
                    await budget.guard(entry.callback(budget))
                except OperationCancelledError:
                    ok = False
                    if budget.cancelled:
                        self._log_abort(token, len(snapshot) - position - 1, label)
                        break
                    logger.debug("Cleanup %s cancelled itself", label)
                except Exception:
                    ok = False
                    logger.debug("Cleanup %s failed", label, exc_info=True)
        finally:
            timer.cancel()
            budget.dispose()
            with self._lock:
                self._entries.clear()
        return ok

    @staticmethod
    def _log_abort(token: CancellationToken | None, skipped: int, label: str | None = None) -> None:
        reason = "cancelled" if token is not None and token.cancelled else "timed out"
        if label is None:
            logger.debug("Cleanup sweep %s; skipping %d callback(s)", reason, skipped)
        else:
            logger.debug("Cleanup sweep %s during %s; skipping %d callback(s)", reason, label, skipped)

    def close(self) -> None:
        """Refuse further registrations.  Pending entries are dropped."""
        self._closed = True
        with self._lock:
            self._entries.clear()
