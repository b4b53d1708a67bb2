"""Cancellation token shared by every in-flight operation.

A token moves from *not cancelled* to *cancelled* exactly once and
never resets.  It is the one authoritative cancellation primitive of a
shell; signal notifications are informational only.

Tokens may be cancelled from a signal handler that interrupts the
thread already holding the token's lock, or from another thread, so
the lock is reentrant and event-loop waiters are woken with
``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import TypeVar

from shellkit.exceptions import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """One-shot, thread-safe cancellation flag with callbacks."""

    def __init__(self) -> None:
        self._cancelled = False
        self._lock = threading.RLock()
        self._callbacks: dict[int, Callable[[], object]] = {}
        self._next_id = 0
        self._detach: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Cancel the token.

        Returns ``True`` only for the call that performed the
        transition; later calls are observed but change nothing.
        Callback failures are logged and never propagate.
        """
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.debug("Cancellation callback %r failed", callback, exc_info=True)
        return True

    def add_callback(self, callback: Callable[[], object]) -> Callable[[], None]:
        """Run *callback* on cancellation and return a function that removes it.

        If the token is already cancelled the callback runs immediately.
        """
        with self._lock:
            if not self._cancelled:
                key = self._next_id
                self._next_id += 1
                self._callbacks[key] = callback

                def remove() -> None:
                    with self._lock:
                        self._callbacks.pop(key, None)

                return remove

        callback()
        return _noop

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelledError()

    # ------------------------------------------------------------------
    # asyncio integration
    # ------------------------------------------------------------------

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        if self._cancelled:
            return

        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()

        def resolve() -> None:
            if not future.done():
                future.set_result(None)

        def wake() -> None:
            try:
                loop.call_soon_threadsafe(resolve)
            except RuntimeError:
                # Loop already closed; nobody is left waiting.
                pass

        remove = self.add_callback(wake)
        try:
            await future
        finally:
            remove()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token is cancelled first.

        On cancellation the underlying task is cancelled (not awaited)
        and :class:`OperationCancelledError` is raised.
        """
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()
        task.cancel()
        raise OperationCancelledError()

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    @classmethod
    def linked(cls, *parents: CancellationToken | None) -> CancellationToken:
        """Return a token that is cancelled when any of *parents* is.

        ``None`` parents are ignored.  Cancelling the child never
        affects the parents.
        """
        child = cls()
        for parent in parents:
            if parent is None:
                continue
            child._detach.append(parent.add_callback(child.cancel))
        return child

    def dispose(self) -> None:
        """Detach a linked token from its parents."""
        detach, self._detach = self._detach, []
        for remove in detach:
            remove()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationToken {state}>"


def _noop() -> None:
    return None
