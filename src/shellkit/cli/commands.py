"""Command base class, structured help model, and the echo/config built-ins.

:class:`BaseCommand` is optional sugar over the
:class:`~shellkit.core.protocols.CliCommand` protocol.  It parses the
raw tokens, answers ``--help``, runs a validation hook, and converts
exceptions into exit codes so that nothing escapes ``execute``:

* :class:`~shellkit.exceptions.OperationCancelledError` → ``USER_CANCELLED``
* :class:`FileNotFoundError` → ``FILE_NOT_FOUND``
* :class:`PermissionError` → ``PERMISSION_DENIED``
* :class:`ValueError` → ``INVALID_ARGUMENTS``
* anything else → ``GENERAL_ERROR``
"""

from __future__ import annotations

import abc
import json
import os
import platform
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from shellkit import exit_codes
from shellkit.cli.console import (
    STYLE_ERROR,
    STYLE_HEADING,
    STYLE_HINT,
    STYLE_INFO,
    STYLE_SUCCESS,
    STYLE_WARNING,
)
from shellkit.cli.context import ShellExecutionContext
from shellkit.core.arguments import CommandLineArgs
from shellkit.core.cancellation import CancellationToken
from shellkit.core.fuzzy import find_best_match
from shellkit.exceptions import OperationCancelledError, ShellKitError

if TYPE_CHECKING:
    from shellkit.cli.shell import CliShell


# ---------------------------------------------------------------------------
# Help model
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class CommandOption:
    """One ``--long`` / ``-s`` option shown in help."""

    long_name: str
    short_name: str | None = None
    description: str = ""
    takes_value: bool = False
    """``False`` marks a switch that never consumes the next token."""
    default: str | None = None


@dataclass(slots=True)
class CommandArgument:
    """One positional argument shown in help."""

    name: str
    description: str = ""
    required: bool = False


@dataclass(slots=True)
class CommandExample:
    command: str
    description: str = ""


@dataclass(slots=True)
class CommandHelp:
    """Structured help rendered as USAGE / DESCRIPTION / ARGUMENTS / OPTIONS / EXAMPLES."""

    usage: str = ""
    description: str = ""
    arguments: list[CommandArgument] = field(default_factory=list)
    options: list[CommandOption] = field(default_factory=list)
    examples: list[CommandExample] = field(default_factory=list)


STANDARD_OPTIONS: Final[tuple[CommandOption, ...]] = (
    CommandOption("help", "h", "Show help information"),
    CommandOption("verbose", "v", "Enable verbose output"),
    CommandOption("quiet", "q", "Suppress non-essential output"),
    CommandOption("yes", "y", "Confirm dangerous operations without prompting"),
    CommandOption("force", "f", "Force execution, bypassing safety checks"),
    CommandOption("dry-run", "n", "Show what would be done without executing"),
)

COMMON_COMPLETIONS: Final[tuple[str, ...]] = (
    "--help",
    "--verbose",
    "--quiet",
    "--dry-run",
    "--force",
    "--yes",
)


# ---------------------------------------------------------------------------
# Base command
# ---------------------------------------------------------------------------

class BaseCommand(abc.ABC):
    """Template for commands with parsed arguments and structured help.

    Subclasses set ``name`` and ``description`` and implement
    :meth:`execute_command`.  Options declared in :meth:`configure_help`
    with ``takes_value=False`` are parsed as switches.
    """

    name: str = ""
    description: str = ""
    category: str = "General"

    show_concise_help_on_no_arguments: bool = True
    """Print a short usage block instead of running when no positionals are given."""

    # ------------------------------------------------------------------
    # Help
    # ------------------------------------------------------------------

    def get_help(self) -> CommandHelp:
        help = CommandHelp(usage=f"{self.name} [options]", description=self.description)
        help.options.extend(STANDARD_OPTIONS)
        self.configure_help(help)
        return help

    def configure_help(self, help: CommandHelp) -> None:
        """Hook: add usage, arguments, options and examples."""

    def boolean_flags(self) -> frozenset[str]:
        names: set[str] = set()
        for option in self.get_help().options:
            if option.takes_value:
                continue
            names.add(option.long_name)
            if option.short_name:
                names.add(option.short_name)
        return frozenset(names)

    def show_help(self, context: ShellExecutionContext) -> None:
        help = self.get_help()
        writer = context.writer

        writer.write_line(f"{self.name} - {self.description}", STYLE_HEADING)
        writer.write_line()
        writer.write_line("USAGE:", STYLE_INFO)
        writer.write_line(f"  {help.usage}")
        writer.write_line()

        if help.description and help.description != self.description:
            writer.write_line("DESCRIPTION:", STYLE_INFO)
            writer.write_line(f"  {help.description}")
            writer.write_line()

        if help.arguments:
            writer.write_line("ARGUMENTS:", STYLE_INFO)
            for arg in help.arguments:
                required = " (required)" if arg.required else " (optional)"
                writer.write_line(f"  {arg.name:<20} {arg.description}{required}")
            writer.write_line()

        if help.options:
            writer.write_line("OPTIONS:", STYLE_INFO)
            for opt in help.options:
                short = f"-{opt.short_name}, " if opt.short_name else "    "
                default = f" (default: {opt.default})" if opt.default else ""
                writer.write_line(f"  {short}{'--' + opt.long_name:<18} {opt.description}{default}")
            writer.write_line()

        if help.examples:
            writer.write_line("EXAMPLES:", STYLE_INFO)
            for example in help.examples:
                writer.write_line(f"  {example.command}")
                writer.write_line(f"    {example.description}", STYLE_HINT)
                writer.write_line()

    def show_concise_help(self, context: ShellExecutionContext) -> None:
        help = self.get_help()
        writer = context.writer

        writer.write_line(f"{self.name} - {self.description}")
        writer.write_line()
        writer.write_line("USAGE:", STYLE_INFO)
        writer.write_line(f"  {help.usage}")
        writer.write_line()

        if help.examples:
            writer.write_line("EXAMPLES:", STYLE_INFO)
            for example in help.examples[:2]:
                writer.write_line(f"  {example.command}")
                writer.write_line(f"    {example.description}", STYLE_HINT)
            writer.write_line()

        writer.write_line(f"For more information, run: {self.name} --help", STYLE_HINT)

    def show_suggestion(self, context: ShellExecutionContext, suggestion: str) -> None:
        context.writer.write_line(f"Hint: {suggestion}", STYLE_HINT)

    def suggest_similar_option(
        self,
        unknown_option: str,
        context: ShellExecutionContext,
        available_options: Iterable[str] | None = None,
    ) -> None:
        """Point the user at the closest known option, or list a few."""
        if not unknown_option:
            return
        options = list(available_options) if available_options is not None else [
            *COMMON_COMPLETIONS,
            "--config",
            "--output",
        ]
        suggestion = find_best_match(unknown_option, options)
        if suggestion:
            self.show_suggestion(context, f"Did you mean '{suggestion}'?")
        else:
            self.show_suggestion(context, f"Available options: {', '.join(sorted(options)[:5])}")

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def get_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        if not prefix:
            return list(COMMON_COMPLETIONS)
        matches = [opt for opt in COMMON_COMPLETIONS if opt.lower().startswith(prefix.lower())]
        return matches + self.get_custom_completions(context, prefix)

    def get_custom_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        return []

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def validate_arguments(self, args: CommandLineArgs, context: ShellExecutionContext) -> int:
        """Hook: return a non-zero exit code to stop before execution."""
        return exit_codes.SUCCESS

    @abc.abstractmethod
    async def execute_command(
        self,
        args: CommandLineArgs,
        context: ShellExecutionContext,
        token: CancellationToken,
    ) -> int:
        ...

    async def execute(
        self,
        context: ShellExecutionContext,
        args: Sequence[str],
        token: CancellationToken,
    ) -> int:
        parsed = CommandLineArgs(args, self.boolean_flags())
        writer = context.writer
        try:
            if parsed.is_help_requested:
                self.show_help(context)
                return exit_codes.SUCCESS

            if self.show_concise_help_on_no_arguments and not parsed.positional:
                self.show_concise_help(context)
                return exit_codes.SUCCESS

            code = self.validate_arguments(parsed, context)
            if code != exit_codes.SUCCESS:
                return code

            return await self.execute_command(parsed, context, token)
        except OperationCancelledError:
            writer.write_line("Operation was cancelled", STYLE_WARNING)
            return exit_codes.USER_CANCELLED
        except FileNotFoundError as exc:
            writer.write_line(f"File not found: {exc.filename or exc}", STYLE_ERROR)
            self.show_suggestion(context, "Make sure the file exists and you have read permissions")
            return exit_codes.FILE_NOT_FOUND
        except PermissionError:
            writer.write_line("Permission denied", STYLE_ERROR)
            self.show_suggestion(context, "Try running with elevated permissions or check file ownership")
            return exit_codes.PERMISSION_DENIED
        except ValueError as exc:
            writer.write_line(f"Invalid argument: {exc}", STYLE_ERROR)
            self.show_suggestion(context, f"Use '{self.name} --help' for usage information")
            return exit_codes.INVALID_ARGUMENTS
        except ShellKitError as exc:
            writer.write_line(str(exc), STYLE_ERROR)
            if exc.hint:
                self.show_suggestion(context, exc.hint)
            return exit_codes.GENERAL_ERROR
        except Exception as exc:
            if parsed.is_verbose:
                writer.write_line(f"Unexpected error: {type(exc).__name__}: {exc!r}", STYLE_ERROR)
            else:
                writer.write_line(f"Unexpected error: {exc}", STYLE_ERROR)
                self.show_suggestion(context, "Run with --verbose for detailed error information")
            return exit_codes.GENERAL_ERROR


# ---------------------------------------------------------------------------
# echo
# ---------------------------------------------------------------------------

_ECHO_STYLES: Final[tuple[tuple[str, str, str], ...]] = (
    ("success", "Success", STYLE_SUCCESS),
    ("warning", "Warning", STYLE_WARNING),
    ("error", "Error", STYLE_ERROR),
    ("info", "Info", STYLE_INFO),
    ("hint", "Hint", STYLE_HINT),
)


class EchoCommand(BaseCommand):
    """Print text with optional styling, repetition, and case change."""

    name = "echo"
    description = "Print text to the console with optional styling"
    category = "Core"

    MAX_REPEAT: Final[int] = 100

    def configure_help(self, help: CommandHelp) -> None:
        help.usage = "echo [options] <text...>"
        help.description = (
            "Prints the specified text to the console. "
            "Supports various styling options and output modes."
        )
        help.arguments.append(CommandArgument("text", "The text to print (multiple words supported)", True))
        help.options.extend(
            [
                CommandOption("success", "s", "Style output as success message"),
                CommandOption("warning", "w", "Style output as warning message"),
                CommandOption("error", "e", "Style output as error message"),
                CommandOption("info", "i", "Style output as info message"),
                CommandOption("hint", None, "Style output as hint message"),
                CommandOption("uppercase", "u", "Convert text to uppercase"),
                CommandOption("repeat", "r", "Number of times to repeat the text", True, "1"),
            ]
        )
        help.examples.extend(
            [
                CommandExample("echo Hello World", "Print 'Hello World' to the console"),
                CommandExample('echo --success "Operation complete"', "Print success message"),
                CommandExample('echo --warning --uppercase "Warning message"', "Print uppercase warning"),
                CommandExample('echo --repeat 3 "Repeated text"', "Print text 3 times"),
                CommandExample('echo --dry-run "Test message"', "Show what would be printed"),
            ]
        )

    def validate_arguments(self, args: CommandLineArgs, context: ShellExecutionContext) -> int:
        if not args.positional:
            context.writer.write_line("Error: No text specified to echo", STYLE_ERROR)
            self.show_suggestion(context, f"Use '{self.name} --help' for usage information")
            return exit_codes.INVALID_ARGUMENTS

        if self._repeat_count(args) is None:
            context.writer.write_line(
                f"Error: Repeat count must be a number between 1 and {self.MAX_REPEAT}",
                STYLE_ERROR,
            )
            return exit_codes.INVALID_ARGUMENTS
        return exit_codes.SUCCESS

    def get_custom_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        options = ("--success", "--warning", "--error", "--info", "--hint", "--uppercase", "--repeat")
        return [opt for opt in options if opt.lower().startswith(prefix.lower())]

    async def execute_command(
        self,
        args: CommandLineArgs,
        context: ShellExecutionContext,
        token: CancellationToken,
    ) -> int:
        writer = context.writer
        text = " ".join(args.positional)
        if args.has_flag("uppercase") or args.has_flag("u"):
            text = text.upper()
        repeat = self._repeat_count(args) or 1
        label, style = self._style(args)

        if args.is_dry_run:
            writer.write_line("[DRY RUN] Would print the following:", STYLE_WARNING)
            writer.write_line(f'Text: "{text}"', STYLE_HINT)
            writer.write_line(f"Repeat count: {repeat}", STYLE_HINT)
            writer.write_line(f"Style: {label}", STYLE_HINT)
            return exit_codes.SUCCESS

        for i in range(repeat):
            token.raise_if_cancelled()
            writer.write_line(text, style)
            if args.is_verbose and i == 0:
                writer.write_line(f"[VERBOSE] Echoing text {repeat} time(s)", STYLE_HINT)
        return exit_codes.SUCCESS

    def _repeat_count(self, args: CommandLineArgs) -> int | None:
        raw = args.get_option("repeat") or args.get_option("r")
        if not raw:
            return 1
        try:
            count = int(raw)
        except ValueError:
            return None
        if 1 <= count <= self.MAX_REPEAT:
            return count
        return None

    @staticmethod
    def _style(args: CommandLineArgs) -> tuple[str, str | None]:
        for flag, label, style in _ECHO_STYLES:
            if args.has_flag(flag) or (flag != "hint" and args.has_flag(flag[0])):
                return label, style
        return "Normal", None


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

CONFIG_SUBCOMMANDS: Final[tuple[str, ...]] = ("show", "get", "env")


class ConfigCommand(BaseCommand):
    """Show the effective shell options and environment information."""

    name = "config"
    description = "Show shell configuration and environment information"
    category = "Core"
    show_concise_help_on_no_arguments = False

    def configure_help(self, help: CommandHelp) -> None:
        help.usage = "config [show|get KEY|env] [--json]"
        help.description = (
            "Displays the effective shell options, including environment overrides, "
            "and information about the current environment."
        )
        help.arguments.append(CommandArgument("subcommand", "One of: show, get, env", False))
        help.arguments.append(CommandArgument("key", "Option name for 'get'", False))
        help.options.append(CommandOption("json", "j", "Output in JSON format"))
        help.examples.extend(
            [
                CommandExample("config show", "Show current configuration"),
                CommandExample("config get history_limit", "Get a single configuration value"),
                CommandExample("config env", "Show environment information"),
                CommandExample("config show --json", "Show configuration in JSON format"),
            ]
        )

    def get_custom_completions(self, context: ShellExecutionContext, prefix: str) -> list[str]:
        return [sub for sub in CONFIG_SUBCOMMANDS if sub.startswith(prefix.lower())]

    async def execute_command(
        self,
        args: CommandLineArgs,
        context: ShellExecutionContext,
        token: CancellationToken,
    ) -> int:
        subcommand = (args.get_argument(0) or "show").lower()
        as_json = args.has_flag("json") or args.has_flag("j")

        if subcommand == "show":
            return self._show(context, context.shell.options.as_dict(), "Current Configuration", as_json)
        if subcommand == "env":
            return self._show(context, _environment_info(context.shell), "Environment Information", as_json)
        if subcommand == "get":
            return self._get(args, context)
        return self._unknown_subcommand(subcommand, context)

    def _show(
        self,
        context: ShellExecutionContext,
        values: dict[str, Any],
        title: str,
        as_json: bool,
    ) -> int:
        writer = context.writer
        if as_json:
            writer.write_line(json.dumps(values, indent=2))
            return exit_codes.SUCCESS

        writer.write_line(title, STYLE_HEADING)
        writer.write_line()
        width = max((len(key) for key in values), default=0)
        for key, value in values.items():
            writer.write_line(f"  {key:<{width}}  {_format_value(value)}")
        return exit_codes.SUCCESS

    def _get(self, args: CommandLineArgs, context: ShellExecutionContext) -> int:
        key = args.get_argument(1)
        if not key:
            context.writer.write_line("Configuration key not specified", STYLE_ERROR)
            self.show_suggestion(context, "Use 'config get <key>' to get a configuration value")
            return exit_codes.INVALID_ARGUMENTS

        values = context.shell.options.as_dict()
        normalized = key.lower().replace("-", "_")
        if normalized not in values:
            context.writer.write_line(f"Unknown configuration key: {key}", STYLE_ERROR)
            suggestion = find_best_match(normalized, values)
            if suggestion:
                self.show_suggestion(context, f"Did you mean '{suggestion}'?")
            else:
                self.show_suggestion(context, "Use 'config show' to see all available configuration keys")
            return exit_codes.INVALID_ARGUMENTS

        context.writer.write_line(_format_value(values[normalized]))
        return exit_codes.SUCCESS

    def _unknown_subcommand(self, subcommand: str, context: ShellExecutionContext) -> int:
        context.writer.write_line(f"Unknown subcommand: {subcommand}", STYLE_ERROR)
        closest = find_best_match(subcommand, CONFIG_SUBCOMMANDS, max_distance=2)
        if closest:
            self.show_suggestion(context, f"Did you mean '{closest}'?")
        else:
            self.show_suggestion(context, "Available subcommands: " + ", ".join(CONFIG_SUBCOMMANDS))
        return exit_codes.INVALID_ARGUMENTS


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _environment_info(shell: CliShell) -> dict[str, Any]:
    from shellkit.cli.confirmation import is_continuous_integration
    from shellkit.infra.process_runner import native_shell_argv

    try:
        interactive = sys.stdin.isatty()
    except (AttributeError, ValueError, OSError):
        interactive = False

    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "interactive": interactive,
        "ci_environment": is_continuous_integration(),
        "native_shell": native_shell_argv("")[0],
        "working_directory": shell.current_directory,
        "pid": os.getpid(),
    }
