"""Shell configuration.

:class:`ShellOptions` is a frozen dataclass; build variants with
:func:`dataclasses.replace` or :meth:`ShellOptions.from_env`.  There
is no configuration file support: code and environment variables are
the only sources.

Environment overrides
---------------------
* ``SHELLKIT_PROMPT`` → ``prompt``
* ``SHELLKIT_HISTORY_LIMIT`` → ``history_limit`` (integer >= 0)
* ``SHELLKIT_NATIVE_SHELL`` → ``enable_native_shell_delegation`` (bool)
* ``SHELLKIT_SIGNAL_HANDLING`` → ``enable_signal_handling`` (bool)
* ``SHELLKIT_CLEANUP_TIMEOUT`` → ``cleanup_timeout`` (seconds > 0)
* ``SHELLKIT_KILL_ON_CANCEL`` → ``kill_on_cancel`` (bool)

Booleans accept ``1/0``, ``true/false``, ``yes/no`` and ``on/off``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any, Final

from shellkit.core.registry import RESERVED_COMMAND_NAMES
from shellkit.exceptions import ConfigurationError

_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class ShellOptions:
    """Behavioural settings for a :class:`~shellkit.cli.shell.CliShell`."""

    prompt: str = "shellkit>"
    """Prompt text; a space is written after it."""

    prompt_style: str | None = "green"
    """Rich style applied to the prompt."""

    enable_history: bool = True
    history_limit: int = 500
    """Maximum remembered lines; ``0`` keeps everything."""

    enable_native_shell_delegation: bool = True
    """Route lines containing shell operators to the OS shell."""

    enable_signal_handling: bool = False
    """Create a signal handler and cleanup manager when none are injected."""

    cleanup_timeout: float = 5.0
    """Seconds allowed for the shutdown cleanup sweep."""

    kill_on_cancel: bool = True
    """Stop child processes when their command is cancelled."""

    termination_grace: float = 2.0
    """Seconds between terminating and killing a cancelled child."""

    reserved_names: frozenset[str] = RESERVED_COMMAND_NAMES

    def __post_init__(self) -> None:
        if self.history_limit < 0:
            raise ConfigurationError("history_limit must be >= 0.")
        if self.cleanup_timeout <= 0:
            raise ConfigurationError("cleanup_timeout must be positive.")
        if self.termination_grace < 0:
            raise ConfigurationError("termination_grace must be >= 0.")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ShellOptions:
        """Build options from ``SHELLKIT_*`` variables, then *overrides*.

        Raises
        ------
        ConfigurationError
            If a variable is set to a value that cannot be parsed.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for variable, (field_name, parse) in _ENV_FIELDS.items():
            raw = env.get(variable)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = parse(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(
                    f"Invalid value for {variable}: {raw!r}",
                    hint=str(exc),
                ) from exc

        values.update(overrides)
        try:
            return replace(cls(), **values)
        except ConfigurationError as exc:
            raise ConfigurationError(str(exc), hint="Check the SHELLKIT_* environment variables.") from exc

    def as_dict(self) -> dict[str, Any]:
        """Return the effective settings, reserved names as a sorted list."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, frozenset):
                value = sorted(value)
            result[f.name] = value
        return result


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_bool(value: str) -> bool:
    v = value.lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError("expected one of: 1/0, true/false, yes/no, on/off")


def _parse_non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise ValueError("expected a non-negative integer")
    return number


def _parse_positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError("expected a positive number of seconds")
    return number


_ENV_FIELDS: Final[dict[str, tuple[str, Callable[[str], Any]]]] = {
    "SHELLKIT_PROMPT": ("prompt", str),
    "SHELLKIT_HISTORY_LIMIT": ("history_limit", _parse_non_negative_int),
    "SHELLKIT_NATIVE_SHELL": ("enable_native_shell_delegation", parse_bool),
    "SHELLKIT_SIGNAL_HANDLING": ("enable_signal_handling", parse_bool),
    "SHELLKIT_CLEANUP_TIMEOUT": ("cleanup_timeout", _parse_positive_float),
    "SHELLKIT_KILL_ON_CANCEL": ("kill_on_cancel", parse_bool),
}
