"""Infrastructure: best-effort capture and restore of terminal state.

Interrupted renders can leave the cursor hidden or the line discipline
in raw mode.  :class:`TerminalStateManager` remembers what it changed
and puts it back.

Rules
-----
* Capture always succeeds; failures yield the default snapshot.
* Restore guards visibility and position independently, then flushes
  stdout and stderr.
* Escape sequences are only written to TTYs; termios is only touched
  on POSIX TTYs.
* Temporary modifications are scoped handles, not a stack: overlapping
  handles on the same property restore whatever each one saw.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Callable
from types import TracebackType
from typing import Any, TextIO

from shellkit.core.models import TerminalModification, TerminalSnapshot

logger = logging.getLogger(__name__)

_SHOW_CURSOR = "\x1b[?25h"
_HIDE_CURSOR = "\x1b[?25l"
_QUERY_POSITION = "\x1b[6n"
_POSITION_REPLY = re.compile(r"\x1b\[(\d+);(\d+)R")
_QUERY_TIMEOUT = 0.1


def _isatty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError, OSError):
        return False


# ---------------------------------------------------------------------------
# Scoped modification handle
# ---------------------------------------------------------------------------

class TemporaryModification:
    """A terminal change that is reversed by :meth:`release`.

    Releasing twice is a no-op.  Usable as a context manager.
    """

    def __init__(self, kind: TerminalModification, restore: Callable[[], None]) -> None:
        self._kind = kind
        self._restore: Callable[[], None] | None = restore

    @property
    def kind(self) -> TerminalModification:
        return self._kind

    @property
    def released(self) -> bool:
        return self._restore is None

    def release(self) -> None:
        restore, self._restore = self._restore, None
        if restore is None:
            return
        try:
            restore()
        except Exception:
            logger.debug("Could not reverse %s", self._kind.value, exc_info=True)

    def __enter__(self) -> TemporaryModification:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class TerminalStateManager:
    """Tracks cursor visibility and restores captured terminal state.

    Parameters
    ----------
    stream:
        Output stream receiving escape sequences (default ``sys.stdout``).
    input_stream:
        Stream used for position queries and tty modes (default ``sys.stdin``).
    """

    def __init__(self, stream: TextIO | None = None, input_stream: TextIO | None = None) -> None:
        self._stream: TextIO = stream if stream is not None else sys.stdout
        self._input: TextIO = input_stream if input_stream is not None else sys.stdin
        self._cursor_visible = True
        self._snapshot: TerminalSnapshot | None = None

    @property
    def is_tty(self) -> bool:
        return _isatty(self._stream)

    @property
    def cursor_visible(self) -> bool:
        return self._cursor_visible

    @property
    def snapshot(self) -> TerminalSnapshot | None:
        """The captured snapshot awaiting restore, if any."""
        return self._snapshot

    # ------------------------------------------------------------------
    # Capture / restore
    # ------------------------------------------------------------------

    def capture_state(self) -> TerminalSnapshot:
        """Record cursor visibility and position.  Never raises."""
        try:
            left, top = self._query_position()
            snapshot = TerminalSnapshot(
                cursor_visible=self._cursor_visible,
                cursor_left=left,
                cursor_top=top,
            )
        except Exception:
            logger.debug("Terminal capture failed; using defaults", exc_info=True)
            snapshot = TerminalSnapshot()
        self._snapshot = snapshot
        return snapshot

    def restore_state(self, *, restore_position: bool = True) -> bool:
        """Write the captured state back and consume the snapshot.

        With ``restore_position=False`` only cursor visibility is put
        back and the cursor stays where it is.  Returns ``False`` if
        nothing was captured or any step failed.
        """
        snapshot, self._snapshot = self._snapshot, None
        if snapshot is None:
            return False

        ok = True
        try:
            self.set_cursor_visible(snapshot.cursor_visible)
        except Exception:
            ok = False
            logger.debug("Cursor visibility restore failed", exc_info=True)

        if restore_position:
            try:
                self._move_cursor(snapshot.cursor_left, snapshot.cursor_top)
            except Exception:
                ok = False
                logger.debug("Cursor position restore failed", exc_info=True)

        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (AttributeError, ValueError, OSError):
                ok = False
        return ok

    # ------------------------------------------------------------------
    # Modifications
    # ------------------------------------------------------------------

    def set_cursor_visible(self, visible: bool) -> None:
        if self.is_tty:
            self._stream.write(_SHOW_CURSOR if visible else _HIDE_CURSOR)
            self._stream.flush()
        self._cursor_visible = visible

    def temporary_modification(self, kind: TerminalModification) -> TemporaryModification:
        """Apply *kind* now and return a handle that reverses it."""
        if kind in (TerminalModification.HIDE_CURSOR, TerminalModification.SHOW_CURSOR):
            prior = self._cursor_visible
            self.set_cursor_visible(kind is TerminalModification.SHOW_CURSOR)
            return TemporaryModification(kind, lambda: self.set_cursor_visible(prior))

        if kind is TerminalModification.RAW_MODE:
            return TemporaryModification(kind, self._apply_tty_mode(raw=True))
        return TemporaryModification(kind, self._apply_tty_mode(raw=False))

    def close(self) -> None:
        """Restore any snapshot still pending."""
        if self._snapshot is not None:
            self.restore_state()

    # ------------------------------------------------------------------
    # POSIX tty helpers
    # ------------------------------------------------------------------

    def _posix_tty_fd(self) -> int | None:
        if os.name != "posix" or not _isatty(self._input):
            return None
        try:
            return self._input.fileno()
        except (AttributeError, ValueError, OSError):
            return None

    def _apply_tty_mode(self, *, raw: bool) -> Callable[[], None]:
        fd = self._posix_tty_fd()
        if fd is None:
            return _noop

        import termios
        import tty

        saved = termios.tcgetattr(fd)
        if raw:
            tty.setraw(fd)
        else:
            attrs = termios.tcgetattr(fd)
            attrs[3] |= termios.ICANON | termios.ECHO
            termios.tcsetattr(fd, termios.TCSADRAIN, attrs)
        return lambda: termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    def _query_position(self) -> tuple[int, int]:
        fd = self._posix_tty_fd()
        if fd is None or not self.is_tty:
            return 0, 0

        import select
        import termios
        import tty

        saved = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            self._stream.write(_QUERY_POSITION)
            self._stream.flush()
            reply = ""
            while not reply.endswith("R"):
                ready, _, _ = select.select([fd], [], [], _QUERY_TIMEOUT)
                if not ready:
                    break
                reply += os.read(fd, 32).decode("ascii", errors="ignore")
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)

        match = _POSITION_REPLY.search(reply)
        if match is None:
            return 0, 0
        row, col = int(match.group(1)), int(match.group(2))
        return col - 1, row - 1

    def _move_cursor(self, left: int, top: int) -> None:
        if not self.is_tty:
            return
        self._stream.write(f"\x1b[{top + 1};{left + 1}H")
        self._stream.flush()


def _noop() -> None:
    return None
