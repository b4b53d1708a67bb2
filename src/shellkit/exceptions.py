"""Custom exception hierarchy for shellkit.

Every error raised by the library inherits from :class:`ShellKitError`.
Errors never cross the dispatch boundary of a running shell: the run
loop renders them as text and keeps reading input.  Only the
console-script boundary in :mod:`shellkit.cli.app` turns them into
process exit codes.

Hierarchy
---------
ShellKitError
├── CommandNamingError
├── OperationCancelledError
├── CleanupManagerClosedError
├── ConfigurationError
└── EnvironmentError
"""

from __future__ import annotations


class ShellKitError(Exception):
    """Base exception for all shellkit errors.

    Every user-visible error condition maps to a subclass of this
    exception so that boundaries can render a clean message without
    leaking stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Registration ----------------------------------------------------------

class CommandNamingError(ShellKitError):
    """Raised when a command name is empty, reserved, or already registered."""


# --- Cancellation ----------------------------------------------------------

class OperationCancelledError(ShellKitError):
    """Raised when an operation observes a cancelled token."""

    def __init__(self, message: str = "Operation was cancelled", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


# --- Lifecycle -------------------------------------------------------------

class CleanupManagerClosedError(ShellKitError):
    """Raised when a closed cleanup manager is used."""


# --- Configuration / environment ------------------------------------------

class ConfigurationError(ShellKitError):
    """Raised when an environment override cannot be parsed."""


class EnvironmentError(ShellKitError):
    """Raised when a required runtime dependency is not available."""
