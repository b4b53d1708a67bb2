"""Interactive shell: run loop, dispatcher, and built-in commands.

Dispatch order for every line
-----------------------------
1. Lines containing a shell operator go, untokenized, to the OS shell
   (when native delegation is enabled).
2. Otherwise the line is tokenized; an empty result is a no-op.
3. A registered command with the first token's name is executed.
4. An unknown name that is not an executable on ``PATH`` but is close
   to a registered name gets a "did you mean" reply and exit code 127;
   nothing runs.  The ``PATH`` lookup comes first, so a real program
   wins over a near miss: ``cp`` runs ``cp`` rather than suggesting
   ``cd``, and ``stat`` runs ``/usr/bin/stat`` even when ``status`` is
   registered.
5. Anything else is started as an external process.

One command is in flight at a time.  Errors never escape the loop:
cancellation prints ``^C`` and other exceptions print their message.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Sequence
from types import TracebackType

from shellkit import exit_codes
from shellkit.cli.commands import BaseCommand, ConfigCommand, EchoCommand
from shellkit.cli.console import STYLE_ERROR, STYLE_HEADING, STYLE_HINT, STYLE_INFO, STYLE_WARNING
from shellkit.cli.context import ShellExecutionContext
from shellkit.cli.options import ShellOptions
from shellkit.core.cancellation import CancellationToken
from shellkit.core.cleanup import CleanupManager
from shellkit.core.fuzzy import find_best_match, suggestion_threshold
from shellkit.core.models import CommandRegistration, ProcessOutcome
from shellkit.core.protocols import CliCommand, LineReader, LineWriter, try_register_cleanup
from shellkit.core.registry import CommandRegistry
from shellkit.core.tokenizer import contains_shell_operators, tokenize
from shellkit.exceptions import OperationCancelledError
from shellkit.infra.process_runner import ProcessRunner
from shellkit.infra.signals import SignalHandler
from shellkit.infra.terminal import TerminalStateManager

logger = logging.getLogger(__name__)

HELP_COMMANDS_PER_CATEGORY = 5
BUILTIN_CATEGORY = "Core"

BuiltinHandler = Callable[[ShellExecutionContext, Sequence[str]], int]


class _BuiltinCommand:
    """Adapter turning a plain function into a :class:`CliCommand`."""

    def __init__(self, name: str, description: str, handler: BuiltinHandler) -> None:
        self.name = name
        self.description = description
        self.category = BUILTIN_CATEGORY
        self._handler = handler

    async def execute(
        self,
        context: ShellExecutionContext,
        args: Sequence[str],
        token: CancellationToken,
    ) -> int:
        return self._handler(context, args)

    def get_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        return []


class CliShell:
    """Line-oriented interactive shell.

    Parameters
    ----------
    reader, writer:
        Line input and styled output.
    options:
        Behavioural settings; defaults to :class:`ShellOptions()`.
    registry, process_runner, signal_handler, cleanup_manager, terminal:
        Injected collaborators.  With ``options.enable_signal_handling``
        the missing signal handler, cleanup manager and terminal state
        manager are created.
    """

    def __init__(
        self,
        reader: LineReader,
        writer: LineWriter,
        options: ShellOptions | None = None,
        *,
        registry: CommandRegistry | None = None,
        process_runner: ProcessRunner | None = None,
        signal_handler: SignalHandler | None = None,
        cleanup_manager: CleanupManager | None = None,
        terminal: TerminalStateManager | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._options: ShellOptions = options if options is not None else ShellOptions()
        self._registry = registry if registry is not None else CommandRegistry(self._options.reserved_names)
        self._runner = process_runner if process_runner is not None else ProcessRunner(
            kill_on_cancel=self._options.kill_on_cancel,
            termination_grace=self._options.termination_grace,
        )

        if self._options.enable_signal_handling:
            signal_handler = signal_handler if signal_handler is not None else SignalHandler()
            cleanup_manager = cleanup_manager if cleanup_manager is not None else CleanupManager()
            terminal = terminal if terminal is not None else TerminalStateManager()
        self._signals: SignalHandler | None = signal_handler
        self._cleanup: CleanupManager | None = cleanup_manager
        self._terminal: TerminalStateManager | None = terminal

        self._history: list[str] = []
        self._history_lock = threading.Lock()
        self._exit_requested = False
        self._cleanup_registered: set[str] = set()
        self.current_directory: str = os.getcwd()
        self._context = ShellExecutionContext(self, writer, reader, cleanup_manager)

        self._register_builtins()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def options(self) -> ShellOptions:
        return self._options

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def context(self) -> ShellExecutionContext:
        return self._context

    @property
    def signal_handler(self) -> SignalHandler | None:
        return self._signals

    @property
    def cleanup_manager(self) -> CleanupManager | None:
        return self._cleanup

    @property
    def terminal(self) -> TerminalStateManager | None:
        return self._terminal

    @property
    def command_names(self) -> list[str]:
        return self._registry.names()

    @property
    def history(self) -> list[str]:
        with self._history_lock:
            return list(self._history)

    def register(self, command: CliCommand) -> CliShell:
        """Register *command*; raises ``CommandNamingError`` on conflicts."""
        self._registry.register(command)
        return self

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self, token: CancellationToken | None = None) -> int:
        """Read and dispatch lines until exit, EOF, or cancellation."""
        self._exit_requested = False
        shutdown = self._signals.shutdown_token if self._signals is not None else None
        effective = CancellationToken.linked(token, shutdown)

        installed_here = False
        if self._signals is not None and not self._signals.is_started:
            installed_here = self._signals.start()
        if self._terminal is not None:
            self._terminal.capture_state()

        try:
            while not effective.cancelled and not self._exit_requested:
                self._write_prompt()
                try:
                    line = self._read_line()
                except KeyboardInterrupt:
                    self._writer.write_line("^C", STYLE_WARNING)
                    break
                if line is None:
                    break

                line = line.strip()
                if not line:
                    continue
                if self._options.enable_history:
                    self._add_history(line)

                try:
                    code = await self.dispatch(line, effective)
                    if code != exit_codes.SUCCESS:
                        self._writer.write_line(f"(exit code {code})", STYLE_ERROR)
                except OperationCancelledError:
                    self._writer.write_line("^C", STYLE_WARNING)
                except Exception as exc:
                    logger.debug("Command failed: %s", line, exc_info=True)
                    self._writer.write_line(str(exc), STYLE_ERROR)
        finally:
            effective.dispose()
            await self.shutdown()
            if installed_here and self._signals is not None:
                self._signals.stop()
        return exit_codes.SUCCESS

    async def shutdown(self) -> bool:
        """Run the cleanup sweep, then restore the terminal.

        The sweep gets its own ``cleanup_timeout`` budget; it does not
        inherit the (already cancelled) shutdown token.  The session
        snapshot restores cursor visibility only; the cursor stays
        below the session output.
        """
        ok = True
        if self._cleanup is not None and self._cleanup.registered_count:
            ok = await self._cleanup.execute_cleanup(self._options.cleanup_timeout)
            if not ok:
                logger.warning("Cleanup did not complete within %.1fs", self._options.cleanup_timeout)
        self._cleanup_registered.clear()
        if self._terminal is not None and self._terminal.snapshot is not None:
            self._terminal.restore_state(restore_position=False)
        return ok

    def close(self) -> None:
        if self._signals is not None:
            self._signals.close()
        if self._cleanup is not None:
            self._cleanup.close()
        if self._terminal is not None:
            self._terminal.close()

    def __enter__(self) -> CliShell:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, line: str, token: CancellationToken | None = None) -> int:
        """Resolve and execute one input line, returning its exit code."""
        token = token if token is not None else CancellationToken()
        line = line.strip()

        if self._options.enable_native_shell_delegation and contains_shell_operators(line):
            logger.debug("Route: native shell: %s", line)
            outcome = await self._runner.run_native(line, self.current_directory, token)
            return self._report(outcome)

        parts = tokenize(line)
        if not parts:
            return exit_codes.SUCCESS
        name, args = parts[0], parts[1:]

        command = self._registry.get(name)
        if command is not None:
            logger.debug("Route: command %s", command.name)
            self._register_cleanup_once(command)
            return await command.execute(self._context, args, token)

        suggestion = self._suggest(name)
        if suggestion is not None:
            logger.debug("Route: suggestion %s for %s", suggestion, name)
            self._writer.write_line(f"Unknown command '{name}'", STYLE_ERROR)
            self._writer.write_line(f"Did you mean '{suggestion}'?", STYLE_WARNING)
            return exit_codes.COMMAND_NOT_FOUND

        logger.debug("Route: external process %s", name)
        outcome = await self._runner.run_external(name, args, self.current_directory, token)
        return self._report(outcome)

    def _register_cleanup_once(self, command: CliCommand) -> None:
        """Hand *command* the cleanup manager on its first dispatch only."""
        if self._cleanup is None:
            return
        key = command.name.lower()
        if key in self._cleanup_registered:
            return
        if try_register_cleanup(command, self._cleanup, self._context):
            self._cleanup_registered.add(key)

    def _suggest(self, name: str) -> str | None:
        if self._runner.resolve_executable(name) is not None:
            return None
        return find_best_match(name, self._registry.names(), suggestion_threshold(name))

    def _report(self, outcome: ProcessOutcome) -> int:
        if outcome.stdout:
            self._writer.write(outcome.stdout)
        if outcome.stderr:
            self._writer.write(outcome.stderr, STYLE_ERROR)
        if outcome.error:
            self._writer.write_line(outcome.error, STYLE_ERROR)
        return outcome.exit_code

    # ------------------------------------------------------------------
    # I/O helpers
    # ------------------------------------------------------------------

    def _write_prompt(self) -> None:
        self._writer.write(self._options.prompt, self._options.prompt_style)
        self._writer.write(" ")

    def _read_line(self) -> str | None:
        if self._signals is not None and self._signals.is_started:
            with self._signals.interruptible():
                return self._reader.read_line()
        return self._reader.read_line()

    def _add_history(self, line: str) -> None:
        with self._history_lock:
            self._history.append(line)
            limit = self._options.history_limit
            if limit > 0 and len(self._history) > limit:
                del self._history[: len(self._history) - limit]

    # ------------------------------------------------------------------
    # Built-ins
    # ------------------------------------------------------------------

    def _register_builtins(self) -> None:
        builtins: list[CliCommand] = [
            _BuiltinCommand("help", "Show help or detailed help for a command", self._help),
            _BuiltinCommand("history", "Show recent command history", self._show_history),
            _BuiltinCommand("pwd", "Print working directory", self._pwd),
            _BuiltinCommand("cd", "Change working directory", self._cd),
            _BuiltinCommand("clear", "Clear the screen", self._clear),
            _BuiltinCommand("complete", "List completions for a prefix", self._complete),
            _BuiltinCommand("exit", "Exit the shell", self._exit),
            _BuiltinCommand("quit", "Exit the shell", self._exit),
            EchoCommand(),
            ConfigCommand(),
        ]
        for command in builtins:
            self._registry.register(command, builtin=True)

    def _help(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        writer = ctx.writer
        if args and args[0].lower() == "all":
            writer.write_line("Command Index - All Categories", STYLE_HEADING)
            writer.write_line()
            self._write_categories(ctx, limit=None)
            return exit_codes.SUCCESS

        if args:
            name = args[0]
            command = self._registry.get(name)
            if command is None:
                writer.write_line(f"Unknown command '{name}'", STYLE_ERROR)
                suggestion = find_best_match(name, self._registry.names(), suggestion_threshold(name))
                if suggestion:
                    writer.write_line(f"Did you mean '{suggestion}'?", STYLE_WARNING)
                return exit_codes.GENERAL_ERROR
            if isinstance(command, BaseCommand):
                command.show_help(ctx)
            else:
                writer.write_line(f"{command.name}: {command.description}")
            return exit_codes.SUCCESS

        writer.write_line("Available Commands", STYLE_HEADING)
        writer.write_line()
        self._write_categories(ctx, limit=HELP_COMMANDS_PER_CATEGORY)
        writer.write_line("Use 'help <command>' for details on a command", STYLE_HINT)
        writer.write_line("Use 'help all' to see all commands", STYLE_HINT)
        return exit_codes.SUCCESS

    def _write_categories(self, ctx: ShellExecutionContext, limit: int | None) -> None:
        groups: dict[str, list[CommandRegistration]] = {}
        for registration in self._registry.registrations():
            groups.setdefault(registration.category, []).append(registration)

        ordered = sorted(groups, key=lambda c: (c != BUILTIN_CATEGORY, c.lower()))
        for category in ordered:
            entries = sorted(groups[category], key=lambda r: r.name.lower())
            shown = entries if limit is None else entries[:limit]
            ctx.writer.write_line(f"{category}:", STYLE_INFO)
            for entry in shown:
                ctx.writer.write_line(f"  {entry.name:<14} {entry.description}")
            if len(entries) > len(shown):
                ctx.writer.write_line(f"  ... and {len(entries) - len(shown)} more", STYLE_HINT)
            ctx.writer.write_line()

    def _show_history(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        for index, line in enumerate(self.history, start=1):
            ctx.writer.write_line(f"{index:>4}  {line}")
        return exit_codes.SUCCESS

    def _pwd(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        ctx.writer.write_line(self.current_directory)
        return exit_codes.SUCCESS

    def _cd(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        if not args:
            ctx.writer.write_line(self.current_directory)
            return exit_codes.SUCCESS

        path = os.path.expanduser(args[0])
        target = path if os.path.isabs(path) else os.path.join(self.current_directory, path)
        if not os.path.isdir(target):
            ctx.writer.write_line(f"Directory not found: {args[0]}", STYLE_ERROR)
            return exit_codes.FILE_NOT_FOUND
        self.current_directory = os.path.abspath(target)
        return exit_codes.SUCCESS

    def _clear(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        ctx.writer.clear()
        return exit_codes.SUCCESS

    def _complete(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        if len(args) >= 2:
            command = self._registry.get(args[0])
            if command is None:
                ctx.writer.write_line(f"Unknown command '{args[0]}'", STYLE_ERROR)
                return exit_codes.GENERAL_ERROR
            for candidate in command.get_completions(ctx, args[1]):
                ctx.writer.write_line(candidate)
            return exit_codes.SUCCESS

        prefix = args[0].lower() if args else ""
        matches = sorted(
            (n for n in self._registry.names() if n.lower().startswith(prefix)),
            key=str.lower,
        )
        for name in matches:
            ctx.writer.write_line(name)
        return exit_codes.SUCCESS

    def _exit(self, ctx: ShellExecutionContext, args: Sequence[str]) -> int:
        self._exit_requested = True
        return exit_codes.SUCCESS
