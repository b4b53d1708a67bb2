"""Logging setup for applications built on shellkit.

Library modules only ever call :func:`logging.getLogger`; handlers are
installed exclusively by :func:`setup_logging`, which the console
script calls once at startup.  Records are rendered by Rich on stderr
so they never interleave with command output on stdout.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Final

from shellkit.exceptions import EnvironmentError

LOG_LEVEL_ENV: Final[str] = "SHELLKIT_LOG_LEVEL"

DEFAULT_LEVEL: Final[int] = logging.WARNING

_NAME_TO_LEVEL: Final[dict[str, int]] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "NOTSET": logging.NOTSET,
}


def parse_log_level(value: str) -> int | None:
    """Translate a level name or numeric string into a logging level."""
    v = value.strip().upper()
    if not v:
        return None
    if v.isdigit():
        return int(v)
    return _NAME_TO_LEVEL.get(v)


def resolve_env_log_level(environ: Mapping[str, str] | None = None) -> int | None:
    """Return a logging level from the environment, or ``None`` if unset.

    Honors ``SHELLKIT_LOG_LEVEL`` (e.g. ``"DEBUG"``, ``"info"``, ``"10"``).
    Unknown names are ignored rather than rejected.
    """
    env = os.environ if environ is None else environ
    val = env.get(LOG_LEVEL_ENV)
    if not val:
        return None
    return parse_log_level(val)


def setup_logging(level: int | None = None) -> None:
    """Configure the root logger with a Rich handler on stderr.

    If *level* is ``None`` the environment is consulted via
    :func:`resolve_env_log_level`; the default is ``WARNING``.
    Existing root handlers are replaced to prevent duplicate output.
    """
    from shellkit.cli.console import get_rich_console

    console = get_rich_console(stderr=True)
    try:
        from rich.logging import RichHandler
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc

    if level is None:
        level = resolve_env_log_level()
        if level is None:
            level = DEFAULT_LEVEL

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        show_time=level <= logging.DEBUG,
        show_path=level <= logging.DEBUG,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
