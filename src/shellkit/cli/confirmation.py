"""Confirmation gate for destructive commands.

Order of checks:

1. ``--yes`` / ``--force`` (or ``-y`` / ``-f``) confirm immediately.
2. In an automation context (stdin is not a TTY, or a CI variable is
   set) the operation is refused with guidance; nobody is there to
   answer a prompt.
3. Otherwise a warning block is written and ``questionary`` asks a
   yes/no question defaulting to *no*.  A cancelled prompt counts as
   *no*.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from typing import Any, Final, TextIO

from shellkit.cli.console import STYLE_ERROR, STYLE_HINT, STYLE_INFO, STYLE_WARNING
from shellkit.cli.context import ShellExecutionContext
from shellkit.core.arguments import CommandLineArgs
from shellkit.exceptions import EnvironmentError

CI_VARIABLES: Final[tuple[str, ...]] = (
    "CI",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "JENKINS_URL",
    "TRAVIS",
    "CIRCLECI",
    "BUILDKITE",
    "TF_BUILD",
)

DEFAULT_PROMPT: Final[str] = "Do you want to proceed with this dangerous operation?"


def _import_questionary() -> Any:
    """Import questionary lazily for interactive confirmation."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def is_continuous_integration(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return any(env.get(name, "").strip().lower() not in ("", "0", "false") for name in CI_VARIABLES)


def is_automation_context(
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
) -> bool:
    """Return ``True`` when nobody can answer an interactive prompt."""
    stream = sys.stdin if stdin is None else stdin
    try:
        interactive = bool(stream.isatty())
    except (AttributeError, ValueError, OSError):
        interactive = False
    return not interactive or is_continuous_integration(environ)


async def confirm_dangerous(
    operation: str,
    context: ShellExecutionContext,
    args: CommandLineArgs,
    *,
    warnings: Sequence[str] = (),
    prompt: str | None = None,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
) -> bool:
    """Return ``True`` if *operation* may proceed.

    The prompt runs on the caller's event loop through ``ask_async``.
    """
    if args.is_yes or args.is_force:
        return True

    writer = context.writer
    if is_automation_context(environ, stdin):
        writer.write_line(
            "Dangerous operation attempted in automation context without explicit confirmation.",
            STYLE_ERROR,
        )
        writer.write_line(f"Operation: {operation}", STYLE_ERROR)
        writer.write_line("Use --yes or --force to confirm dangerous operations in automation.", STYLE_HINT)
        return False

    writer.write_line("DANGEROUS OPERATION", STYLE_WARNING)
    writer.write_line(f"Operation: {operation}", STYLE_INFO)
    if warnings:
        writer.write_line()
        for warning in warnings:
            writer.write_line(f"! {warning}", STYLE_WARNING)
    writer.write_line()

    questionary = _import_questionary()
    answer: bool | None = await questionary.confirm(prompt or DEFAULT_PROMPT, default=False).ask_async()
    if answer is None:
        writer.write_line("Operation cancelled by user.", STYLE_INFO)
        return False
    return bool(answer)
