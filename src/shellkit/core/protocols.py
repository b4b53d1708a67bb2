"""Protocols (interfaces) consumed by the shell.

The shell depends ONLY on these contracts: the terminal is reached
through a line writer and a line reader, and commands are any object
with the right attributes.  Implementations satisfy them structurally
(no explicit inheritance required).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from shellkit.cli.context import ShellExecutionContext
    from shellkit.core.cancellation import CancellationToken
    from shellkit.core.cleanup import CleanupManager


class LineWriter(Protocol):
    """Contract for text output.

    *style* is an optional Rich style string (``"red"``, ``"bold yellow"``).
    Writers that cannot render styles ignore it.  Text is always written
    verbatim; markup in the text is never interpreted.
    """

    def write(self, text: str, style: str | None = None) -> None:
        ...  # pragma: no cover

    def write_line(self, text: str = "", style: str | None = None) -> None:
        ...  # pragma: no cover

    def clear(self) -> None:
        ...  # pragma: no cover


class LineReader(Protocol):
    """Contract for line input."""

    def read_line(self) -> str | None:
        """Return the next line without its newline, or ``None`` at EOF."""
        ...  # pragma: no cover


@runtime_checkable
class CliCommand(Protocol):
    """Contract for a command hosted by the shell."""

    name: str
    description: str
    category: str

    async def execute(
        self,
        context: ShellExecutionContext,
        args: Sequence[str],
        token: CancellationToken,
    ) -> int:
        """Run the command and return its exit code (0 for success)."""
        ...  # pragma: no cover

    def get_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        """Return completion candidates for *prefix* (may be empty)."""
        ...  # pragma: no cover


@runtime_checkable
class CleanupAwareCommand(Protocol):
    """Optional extension: commands that register shutdown cleanup actions.

    The shell calls :meth:`register_cleanup_actions` right before
    ``execute`` whenever a cleanup manager is available.
    """

    def register_cleanup_actions(
        self,
        cleanup_manager: CleanupManager,
        context: ShellExecutionContext,
    ) -> None:
        ...  # pragma: no cover


def supports_cleanup(command: object) -> bool:
    """Return ``True`` if *command* implements :class:`CleanupAwareCommand`."""
    return isinstance(command, CleanupAwareCommand)


def try_register_cleanup(
    command: object,
    cleanup_manager: CleanupManager,
    context: ShellExecutionContext,
) -> bool:
    """Register cleanup actions if *command* supports them."""
    if isinstance(command, CleanupAwareCommand):
        command.register_cleanup_actions(cleanup_manager, context)
        return True
    return False
