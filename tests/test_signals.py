"""Tests for :class:`shellkit.infra.signals.SignalHandler`.

Most tests call :meth:`SignalHandler.handle_signal` directly; only the
install/restore tests touch the process signal table.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

import pytest

from shellkit.core.cancellation import CancellationToken
from shellkit.core.models import SignalReceived, SignalType
from shellkit.infra.signals import SignalHandler, classify_signal, default_signals


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassifySignal:
    def test_interrupt(self) -> None:
        assert classify_signal(signal.SIGINT) is SignalType.INTERRUPT

    def test_terminate(self) -> None:
        assert classify_signal(signal.SIGTERM) is SignalType.TERMINATE

    @pytest.mark.skipif(not hasattr(signal, "SIGHUP"), reason="no SIGHUP on this platform")
    def test_hangup(self) -> None:
        assert classify_signal(signal.SIGHUP) is SignalType.HANGUP

    @pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="no SIGUSR1 on this platform")
    def test_other(self) -> None:
        assert classify_signal(signal.SIGUSR1) is SignalType.OTHER

    def test_default_signals_include_interrupt(self) -> None:
        signals = default_signals()
        assert signal.SIGINT in signals
        if sys.platform != "win32":
            assert signal.SIGTERM in signals


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

class TestHandleSignal:
    def test_cancels_shutdown_token(self) -> None:
        handler = SignalHandler(signals=())
        handler.handle_signal(signal.SIGINT)
        assert handler.shutdown_token.cancelled

    def test_uses_given_token(self) -> None:
        token = CancellationToken()
        handler = SignalHandler(signals=(), token=token)
        assert handler.shutdown_token is token
        handler.handle_signal(signal.SIGTERM)
        assert token.cancelled

    def test_repeated_signals_notify_every_time(self) -> None:
        handler = SignalHandler(signals=())
        events: list[SignalReceived] = []
        transitions: list[int] = []
        handler.subscribe(events.append)
        handler.shutdown_token.add_callback(lambda: transitions.append(1))

        handler.handle_signal(signal.SIGINT)
        handler.handle_signal(signal.SIGINT)

        assert [e.signal_type for e in events] == [SignalType.INTERRUPT, SignalType.INTERRUPT]
        assert events[0].signum == signal.SIGINT
        assert transitions == [1]

    def test_subscribers_run_before_cancellation(self) -> None:
        handler = SignalHandler(signals=())
        observed: list[bool] = []
        handler.subscribe(lambda _event: observed.append(handler.shutdown_token.cancelled))
        handler.handle_signal(signal.SIGINT)
        assert observed == [False]

    def test_failing_subscriber_is_swallowed(self) -> None:
        handler = SignalHandler(signals=())
        events: list[SignalReceived] = []

        def boom(_event: SignalReceived) -> None:
            raise RuntimeError("boom")

        handler.subscribe(boom)
        handler.subscribe(events.append)
        handler.handle_signal(signal.SIGINT)
        assert len(events) == 1
        assert handler.shutdown_token.cancelled

    def test_unsubscribe(self) -> None:
        handler = SignalHandler(signals=())
        events: list[SignalReceived] = []
        unsubscribe = handler.subscribe(events.append)
        unsubscribe()
        handler.handle_signal(signal.SIGINT)
        assert events == []

    def test_interruptible_scope_raises_keyboard_interrupt(self) -> None:
        handler = SignalHandler(signals=())
        with pytest.raises(KeyboardInterrupt):
            with handler.interruptible():
                handler.handle_signal(signal.SIGINT)
        assert handler.shutdown_token.cancelled

    def test_outside_interruptible_scope_does_not_raise(self) -> None:
        handler = SignalHandler(signals=())
        with handler.interruptible():
            pass
        handler.handle_signal(signal.SIGINT)


# ---------------------------------------------------------------------------
# Installation
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_start_off_main_thread_is_refused(self, caplog: pytest.LogCaptureFixture) -> None:
        handler = SignalHandler()
        results: list[bool] = []
        with caplog.at_level(logging.WARNING, logger="shellkit.infra.signals"):
            thread = threading.Thread(target=lambda: results.append(handler.start()))
            thread.start()
            thread.join()
        assert results == [False]
        assert not handler.is_started
        assert "main thread" in caplog.text

    @pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="no SIGUSR1 on this platform")
    def test_start_and_stop_restore_previous_handler(self) -> None:
        def previous(signum: int, frame: object) -> None:
            return None

        original = signal.signal(signal.SIGUSR1, previous)
        try:
            handler = SignalHandler(signals=(signal.SIGUSR1,))
            assert handler.start() is True
            assert handler.start() is True
            assert handler.is_started
            assert signal.getsignal(signal.SIGUSR1) is not previous
            handler.stop()
            assert not handler.is_started
            assert signal.getsignal(signal.SIGUSR1) is previous
            handler.stop()
        finally:
            signal.signal(signal.SIGUSR1, original)

    def test_closed_handler_does_not_start(self) -> None:
        handler = SignalHandler(signals=())
        handler.close()
        assert handler.start() is False

    def test_context_manager(self) -> None:
        with SignalHandler(signals=()) as handler:
            assert handler.is_started
        assert not handler.is_started

    @pytest.mark.skipif(sys.platform == "win32", reason="raise_signal semantics differ on Windows")
    def test_real_interrupt_cancels_token(self) -> None:
        original = signal.getsignal(signal.SIGINT)
        handler = SignalHandler(signals=(signal.SIGINT,))
        handler.start()
        try:
            signal.raise_signal(signal.SIGINT)
        finally:
            handler.stop()
        assert handler.shutdown_token.cancelled
        assert signal.getsignal(signal.SIGINT) is original
