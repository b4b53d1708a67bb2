"""Command-line entry point for the ``shellkit`` console script.

This module is the **sole error boundary** between the library and
the operating system.  It catches :class:`~shellkit.exceptions.ShellKitError`,
``KeyboardInterrupt`` and any unexpected ``Exception``, renders a short
message on stderr, and exits with a well-defined code.

Usage
-----
* ``shellkit`` runs an interactive shell until ``exit``, EOF, or a signal.
* ``shellkit -c LINE`` dispatches one line and exits with its code.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from shellkit import exit_codes
from shellkit.cli.console import ConsoleReader, ConsoleWriter, print_error
from shellkit.cli.options import ShellOptions
from shellkit.cli.shell import CliShell
from shellkit.exceptions import ConfigurationError, ShellKitError
from shellkit.log import parse_log_level, setup_logging
from shellkit.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellkit",
        description="Interactive command shell with native-shell delegation.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--prompt",
        default=None,
        help="Prompt text (default: SHELLKIT_PROMPT or 'shellkit>').",
    )
    parser.add_argument(
        "--no-native-shell",
        action="store_true",
        help="Never hand lines with shell operators to the OS shell.",
    )
    parser.add_argument(
        "--signals",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Install Ctrl-C / termination handlers (default: on when interactive).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Logging level name or number (default: SHELLKIT_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "-c",
        "--command",
        default=None,
        metavar="LINE",
        help="Dispatch a single line and exit with its exit code.",
    )
    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _build_options(args: argparse.Namespace) -> ShellOptions:
    overrides: dict[str, object] = {}
    if args.prompt is not None:
        overrides["prompt"] = args.prompt
    if args.no_native_shell:
        overrides["enable_native_shell_delegation"] = False
    if args.signals is not None:
        overrides["enable_signal_handling"] = args.signals
    elif args.command is None and "SHELLKIT_SIGNAL_HANDLING" not in os.environ:
        overrides["enable_signal_handling"] = True
    return ShellOptions.from_env(**overrides)


def main(argv: list[str] | None = None) -> int:
    """Run the shellkit CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    level: int | None = None
    if args.log_level is not None:
        level = parse_log_level(args.log_level)
        if level is None:
            raise ConfigurationError(
                f"Unknown log level: {args.log_level!r}",
                hint="Use DEBUG, INFO, WARNING, ERROR, CRITICAL or a number.",
            )
    setup_logging(level)

    options = _build_options(args)
    with CliShell(ConsoleReader(), ConsoleWriter(), options) as shell:
        if args.command is not None:
            return asyncio.run(shell.dispatch(args.command))
        return asyncio.run(shell.run())


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point."""
    try:
        code = main()
        sys.exit(code)
    except ConfigurationError as exc:
        print_error(str(exc), exc.hint)
        sys.exit(exit_codes.CONFIGURATION_ERROR)
    except ShellKitError as exc:
        print_error(str(exc), exc.hint)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        print_error("Aborted by user.")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        print_error(
            "Unexpected error. Please report this issue.",
            f"{type(exc).__name__}: {exc}",
        )
        sys.exit(exit_codes.GENERAL_ERROR)
