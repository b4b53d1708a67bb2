"""shellkit: building blocks for interactive command-line shells.

A line-reading loop that tokenizes input, resolves it against
registered in-process commands or external processes, and shuts down
gracefully on interrupt with LIFO cleanup.
"""

from shellkit.cli.commands import BaseCommand, CommandHelp
from shellkit.cli.context import ShellExecutionContext
from shellkit.cli.options import ShellOptions
from shellkit.cli.shell import CliShell
from shellkit.core.arguments import CommandLineArgs
from shellkit.core.cancellation import CancellationToken
from shellkit.core.cleanup import CleanupManager
from shellkit.exceptions import ShellKitError
from shellkit.infra.signals import SignalHandler
from shellkit.version import __version__

__all__: list[str] = [
    "BaseCommand",
    "CancellationToken",
    "CleanupManager",
    "CliShell",
    "CommandHelp",
    "CommandLineArgs",
    "ShellExecutionContext",
    "ShellKitError",
    "ShellOptions",
    "SignalHandler",
    "__version__",
]
