"""Per-invocation context handed to every command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shellkit.core.cleanup import CleanupManager
from shellkit.core.protocols import LineReader, LineWriter

if TYPE_CHECKING:
    from shellkit.cli.shell import CliShell


class ShellExecutionContext:
    """Bundles the shell, its I/O, and its cleanup manager for a command.

    ``current_directory`` reads and writes through to the shell, so a
    command that changes it affects every later command and process.
    """

    def __init__(
        self,
        shell: CliShell,
        writer: LineWriter,
        reader: LineReader,
        cleanup_manager: CleanupManager | None = None,
    ) -> None:
        self.shell: CliShell = shell
        self.writer: LineWriter = writer
        self.reader: LineReader = reader
        self.cleanup_manager: CleanupManager | None = cleanup_manager

    def info(self, message: str) -> None:
        self.writer.write_line(message)

    @property
    def current_directory(self) -> str:
        return self.shell.current_directory

    @current_directory.setter
    def current_directory(self, value: str) -> None:
        self.shell.current_directory = value
