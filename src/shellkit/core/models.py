"""Domain models for shellkit.

Value objects are **frozen** dataclasses with no behaviour beyond data
access; the enums name the closed sets of signals and terminal
modifications the lifecycle components understand.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Command registration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandRegistration:
    """Immutable record of a registered command."""

    name: str
    """Primary command name as registered (original casing)."""

    description: str
    """One-line description shown by ``help``."""

    category: str
    """Help grouping (e.g. ``"Core"``, ``"General"``)."""


# ---------------------------------------------------------------------------
# Process execution
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Result of a native-shell or external-process invocation."""

    exit_code: int
    """Real process exit code, or 127 when the process never started."""

    stdout: str = ""
    """Captured standard output, decoded with replacement."""

    stderr: str = ""
    """Captured standard error, decoded with replacement."""

    error: str | None = None
    """Spawn-failure message; ``None`` when the process ran."""

    @property
    def spawned(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------

class SignalType(enum.Enum):
    """Classification of a received OS signal."""

    INTERRUPT = "interrupt"
    TERMINATE = "terminate"
    HANGUP = "hangup"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class SignalReceived:
    """Notification broadcast to signal subscribers."""

    signal_type: SignalType
    signum: int


# ---------------------------------------------------------------------------
# Terminal state
# ---------------------------------------------------------------------------

class TerminalModification(enum.Enum):
    """Temporary terminal modifications that can be applied and reversed."""

    HIDE_CURSOR = "hide-cursor"
    SHOW_CURSOR = "show-cursor"
    RAW_MODE = "raw-mode"
    NORMAL_MODE = "normal-mode"


@dataclass(frozen=True, slots=True)
class TerminalSnapshot:
    """Cursor state captured before risky output."""

    cursor_visible: bool = True
    cursor_left: int = 0
    cursor_top: int = 0
