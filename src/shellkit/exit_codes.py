"""Exit-code constants shared by the shell, commands, and the CLI boundary.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
These values are a stable contract for scripts driving a shell.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed without error."""

GENERAL_ERROR: int = 1
"""A general or unexpected error occurred."""

FILE_NOT_FOUND: int = 2
"""File or directory not found."""

PERMISSION_DENIED: int = 3
"""The operation was not permitted."""

INVALID_ARGUMENTS: int = 4
"""Invalid command-line arguments."""

SERVICE_UNAVAILABLE: int = 5
"""A service or resource was unavailable."""

USER_CANCELLED: int = 6
"""The user cancelled the operation."""

CONFIGURATION_ERROR: int = 7
"""Configuration could not be loaded or parsed."""

NETWORK_ERROR: int = 8
"""A network operation failed."""

COMMAND_NOT_FOUND: int = 127
"""Unknown command, or an external process could not be spawned."""

KEYBOARD_INTERRUPT: int = 130
"""Ctrl+C escaped to the console-script boundary (128 + SIGINT=2)."""
