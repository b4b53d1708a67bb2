"""Console I/O: a Rich-backed line writer and a plain line reader.

Rich is imported lazily so bootstrap paths (``--help``, ``--version``)
keep working when it is not installed; a missing Rich surfaces as
:class:`~shellkit.exceptions.EnvironmentError` at first use.
"""

from __future__ import annotations

import sys
from typing import Any, TextIO

from shellkit.exceptions import EnvironmentError

STYLE_ERROR = "red"
STYLE_WARNING = "yellow"
STYLE_SUCCESS = "green"
STYLE_INFO = "cyan"
STYLE_HINT = "dim"
STYLE_HEADING = "bold"


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console(*, stderr: bool = False, file: TextIO | None = None, **kwargs: Any) -> Any:
    """Create a Rich console on stdout, stderr, or an explicit *file*."""
    console_class = _load_rich_console_class()
    if file is not None:
        return console_class(file=file, **kwargs)
    return console_class(stderr=stderr, **kwargs)


class ConsoleWriter:
    """:class:`~shellkit.core.protocols.LineWriter` over a Rich console.

    Text is printed verbatim: Rich markup and highlighting are disabled
    so command output containing ``[brackets]`` is never reinterpreted.
    """

    def __init__(self, console: Any | None = None) -> None:
        self._console = console if console is not None else get_rich_console()

    @property
    def console(self) -> Any:
        return self._console

    def write(self, text: str, style: str | None = None) -> None:
        self._print(text, style, end="")

    def write_line(self, text: str = "", style: str | None = None) -> None:
        self._print(text, style, end="\n")

    def clear(self) -> None:
        self._console.clear()

    def _print(self, text: str, style: str | None, *, end: str) -> None:
        self._console.print(
            text,
            style=style,
            end=end,
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


class ConsoleReader:
    """:class:`~shellkit.core.protocols.LineReader` over ``input()`` or a stream.

    Without a *stream* the builtin :func:`input` is used so line editing
    and history of the host terminal keep working.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def read_line(self) -> str | None:
        if self._stream is None:
            try:
                return input()
            except EOFError:
                return None

        line = self._stream.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")


def print_error(message: str, hint: str | None = None) -> None:
    """Render an error (and optional hint) on stderr, with a plain fallback."""
    try:
        console = get_rich_console(stderr=True)
    except EnvironmentError:
        print(f"Error: {message}", file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        return
    console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)
    if hint:
        console.print(f"[yellow]Hint:[/yellow] {hint}", highlight=False)
