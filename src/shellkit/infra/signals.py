"""Infrastructure: OS signals → one shutdown token plus notifications.

The handler moves ``stopped → started`` with idempotent
:meth:`SignalHandler.start` / :meth:`SignalHandler.stop`.  On every
signal it classifies the signal, notifies subscribers, then cancels the
shared shutdown token.  The token transitions once; repeated signals
are still announced to subscribers.

Rules
-----
* Installing Python handlers replaces the OS default of terminating
  the process.
* Subscriber exceptions are logged and swallowed.
* Handlers can only be installed from the main thread; elsewhere
  :meth:`start` logs a warning and installs nothing.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import sys
import threading
from collections.abc import Callable, Iterable, Iterator
from types import FrameType
from typing import Any

from shellkit.core.cancellation import CancellationToken
from shellkit.core.models import SignalReceived, SignalType

logger = logging.getLogger(__name__)

SignalSubscriber = Callable[[SignalReceived], object]


def default_signals() -> tuple[int, ...]:
    """Return the signals watched when none are given."""
    if sys.platform == "win32":
        sigbreak = getattr(signal, "SIGBREAK", None)
        return (signal.SIGINT,) if sigbreak is None else (signal.SIGINT, sigbreak)
    return (signal.SIGINT, signal.SIGTERM)


def classify_signal(signum: int) -> SignalType:
    """Map a signal number to its :class:`SignalType`."""
    if signum == signal.SIGINT:
        return SignalType.INTERRUPT
    if signum in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGBREAK", None)):
        return SignalType.TERMINATE
    if signum == getattr(signal, "SIGHUP", None):
        return SignalType.HANGUP
    return SignalType.OTHER


class SignalHandler:
    """Converts process signals into a cancelled shutdown token.

    Parameters
    ----------
    signals:
        Signal numbers to watch.  Defaults to :func:`default_signals`.
    token:
        Shutdown token to cancel; a fresh one is created when omitted.
    """

    def __init__(
        self,
        signals: Iterable[int] | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> None:
        self._signals: tuple[int, ...] = tuple(signals) if signals is not None else default_signals()
        self._token: CancellationToken = token if token is not None else CancellationToken()
        self._subscribers: dict[int, SignalSubscriber] = {}
        self._next_id = 0
        self._previous: dict[int, Any] = {}
        self._lock = threading.RLock()
        self._started = False
        self._closed = False
        self._interruptible_depth = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def shutdown_token(self) -> CancellationToken:
        return self._token

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def signals(self) -> tuple[int, ...]:
        return self._signals

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Install the handlers.  Returns ``True`` if they are active."""
        with self._lock:
            if self._closed:
                return False
            if self._started:
                return True
            if threading.current_thread() is not threading.main_thread():
                logger.warning("Signal handlers can only be installed from the main thread; skipping")
                return False

            for signum in self._signals:
                try:
                    self._previous[signum] = signal.signal(signum, self._on_signal)
                except (ValueError, OSError) as exc:
                    logger.warning("Could not install handler for signal %s: %s", signum, exc)
            self._started = True
            logger.debug("Signal handlers installed for %s", self._signals)
            return True

    def stop(self) -> None:
        """Restore the handlers that were active before :meth:`start`."""
        with self._lock:
            if not self._started:
                return
            for signum, previous in self._previous.items():
                try:
                    signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
                except (ValueError, OSError) as exc:
                    logger.debug("Could not restore handler for signal %s: %s", signum, exc)
            self._previous.clear()
            self._started = False

    def close(self) -> None:
        self.stop()
        self._closed = True

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: SignalSubscriber) -> Callable[[], None]:
        """Call *callback* with a :class:`SignalReceived` on every signal.

        Returns a function that removes the subscription.
        """
        with self._lock:
            key = self._next_id
            self._next_id += 1
            self._subscribers[key] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(key, None)

        return unsubscribe

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def interruptible(self) -> Iterator[None]:
        """Scope in which a signal also raises :class:`KeyboardInterrupt`.

        Used around blocking reads that the shutdown token cannot wake.
        """
        self._interruptible_depth += 1
        try:
            yield
        finally:
            self._interruptible_depth -= 1

    def handle_signal(self, signum: int) -> None:
        """Deliver *signum*: notify subscribers, then cancel the token."""
        event = SignalReceived(signal_type=classify_signal(signum), signum=signum)
        logger.debug("Received signal %s (%s)", signum, event.signal_type.value)

        with self._lock:
            subscribers = list(self._subscribers.values())
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.debug("Signal subscriber %r failed", subscriber, exc_info=True)

        self._token.cancel()

        if self._interruptible_depth > 0:
            raise KeyboardInterrupt

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self.handle_signal(signum)

    def __enter__(self) -> SignalHandler:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
