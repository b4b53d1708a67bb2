"""Infrastructure layer: processes, signals, and the terminal.

Every raw OS failure is caught here and normalized: spawn errors become
exit codes, terminal errors become default snapshots, subscriber errors
are logged.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from shellkit.infra.process_runner import ProcessRunner, native_shell_argv
from shellkit.infra.signals import SignalHandler, classify_signal, default_signals
from shellkit.infra.terminal import TemporaryModification, TerminalStateManager

__all__: list[str] = [
    "ProcessRunner",
    "SignalHandler",
    "TemporaryModification",
    "TerminalStateManager",
    "classify_signal",
    "default_signals",
    "native_shell_argv",
]
