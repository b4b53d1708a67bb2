"""Core layer: tokenizing, classification, registry, and lifecycle primitives.

Rules
-----
* No ``print()`` calls and no terminal or process I/O.
* No imports from ``cli`` or ``infra`` (type-checking imports excepted).
* Shared mutable state is guarded by plain locks that are never held
  across an ``await``.
"""

from shellkit.core.arguments import CommandLineArgs, classify
from shellkit.core.cancellation import CancellationToken
from shellkit.core.cleanup import CleanupHandle, CleanupManager
from shellkit.core.fuzzy import find_best_match, find_multiple_matches, levenshtein_distance
from shellkit.core.models import (
    CommandRegistration,
    ProcessOutcome,
    SignalReceived,
    SignalType,
    TerminalModification,
    TerminalSnapshot,
)
from shellkit.core.protocols import CleanupAwareCommand, CliCommand, LineReader, LineWriter
from shellkit.core.registry import RESERVED_COMMAND_NAMES, CommandRegistry
from shellkit.core.tokenizer import SHELL_OPERATORS, contains_shell_operators, tokenize

__all__: list[str] = [
    "RESERVED_COMMAND_NAMES",
    "SHELL_OPERATORS",
    "CancellationToken",
    "CleanupAwareCommand",
    "CleanupHandle",
    "CleanupManager",
    "CliCommand",
    "CommandLineArgs",
    "CommandRegistration",
    "CommandRegistry",
    "LineReader",
    "LineWriter",
    "ProcessOutcome",
    "SignalReceived",
    "SignalType",
    "TerminalModification",
    "TerminalSnapshot",
    "classify",
    "contains_shell_operators",
    "find_best_match",
    "find_multiple_matches",
    "levenshtein_distance",
    "tokenize",
]
