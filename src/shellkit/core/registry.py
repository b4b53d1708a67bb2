"""Command registry: case-insensitive name → command map.

Registration fails loudly; it never overwrites.  Three distinct
conditions raise :class:`~shellkit.exceptions.CommandNamingError`:

* the name is empty or whitespace,
* the name is in the reserved set (unless registering a built-in),
* the name is already registered.

The reserved set is injected at construction so tests can use their
own; it defaults to :data:`RESERVED_COMMAND_NAMES`.  There is no
unregister API.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from typing import Final

from shellkit.core.models import CommandRegistration
from shellkit.core.protocols import CliCommand
from shellkit.exceptions import CommandNamingError

RESERVED_COMMAND_NAMES: Final[frozenset[str]] = frozenset(
    {"help", "history", "pwd", "cd", "clear", "complete", "exit", "quit", "echo", "config"}
)
"""Names owned by the shell's built-in commands."""


class CommandRegistry:
    """Thread-safe store of the commands a shell can dispatch to."""

    def __init__(self, reserved_names: Iterable[str] = RESERVED_COMMAND_NAMES) -> None:
        self._reserved: frozenset[str] = frozenset(n.lower() for n in reserved_names)
        self._commands: dict[str, CliCommand] = {}
        self._registrations: dict[str, CommandRegistration] = {}
        self._lock = threading.Lock()

    @property
    def reserved_names(self) -> frozenset[str]:
        return self._reserved

    def register(self, command: CliCommand, *, builtin: bool = False) -> CommandRegistration:
        """Add *command* under its ``name``.

        *builtin* lets the shell claim reserved names for its own
        commands; library consumers never pass it.
        """
        name = (command.name or "").strip()
        if not name:
            raise CommandNamingError(
                "Command name cannot be empty.",
                hint="Give the command a non-blank 'name' attribute.",
            )

        key = name.lower()
        if key in self._reserved and not builtin:
            reserved = ", ".join(sorted(self._reserved))
            raise CommandNamingError(
                f"Command name '{name}' is reserved. Reserved names: {reserved}",
                hint="Pick a different name for your command.",
            )

        registration = CommandRegistration(
            name=name,
            description=command.description or "",
            category=command.category or "General",
        )
        with self._lock:
            if key in self._commands:
                raise CommandNamingError(
                    f"Command '{name}' is already registered. Each command name must be unique.",
                )
            self._commands[key] = command
            self._registrations[key] = registration
        return registration

    def get(self, name: str) -> CliCommand | None:
        with self._lock:
            return self._commands.get(name.lower())

    def registration(self, name: str) -> CommandRegistration | None:
        with self._lock:
            return self._registrations.get(name.lower())

    def names(self) -> list[str]:
        """Return registered names in registration order."""
        with self._lock:
            return [r.name for r in self._registrations.values()]

    def commands(self) -> list[CliCommand]:
        with self._lock:
            return list(self._commands.values())

    def registrations(self) -> list[CommandRegistration]:
        with self._lock:
            return list(self._registrations.values())

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self._lock:
            return name.lower() in self._commands

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)

    def __iter__(self) -> Iterator[CliCommand]:
        return iter(self.commands())
