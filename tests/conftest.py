"""Shared pytest fixtures and fakes for the shellkit test suite.

Guidelines
----------
* Console I/O goes through :class:`FakeWriter` / :class:`FakeReader`.
* Dispatcher tests use :class:`FakeRunner`; only the process-runner
  tests spawn real children, always via ``sys.executable``.
* Async code runs under ``asyncio.run`` inside plain tests.
* Signal tests call ``handle_signal`` directly unless they need the OS.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pytest

from shellkit.cli.options import ShellOptions
from shellkit.cli.shell import CliShell
from shellkit.core.cancellation import CancellationToken
from shellkit.core.models import ProcessOutcome


# ---------------------------------------------------------------------------
# Console fakes
# ---------------------------------------------------------------------------

class FakeWriter:
    """Records every write as ``(text, style)``."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str | None]] = []
        self.cleared = 0

    def write(self, text: str, style: str | None = None) -> None:
        self.records.append((text, style))

    def write_line(self, text: str = "", style: str | None = None) -> None:
        self.records.append((text + "\n", style))

    def clear(self) -> None:
        self.cleared += 1

    @property
    def output(self) -> str:
        return "".join(text for text, _ in self.records)

    @property
    def lines(self) -> list[str]:
        return self.output.splitlines()

    def styled(self, style: str) -> list[str]:
        return [text for text, s in self.records if s == style]


class FakeReader:
    """Serves queued lines, then EOF.  Entries may be callables."""

    def __init__(self, lines: Iterable[str | Callable[[], str | None]] = ()) -> None:
        self._lines = list(lines)
        self.reads = 0

    def read_line(self) -> str | None:
        self.reads += 1
        if not self._lines:
            return None
        item = self._lines.pop(0)
        return item() if callable(item) else item


# ---------------------------------------------------------------------------
# Process runner fake
# ---------------------------------------------------------------------------

class FakeRunner:
    """Records process requests instead of spawning anything."""

    def __init__(
        self,
        outcome: ProcessOutcome | None = None,
        on_path: Iterable[str] = (),
    ) -> None:
        self.outcome = outcome if outcome is not None else ProcessOutcome(exit_code=0)
        self.on_path = set(on_path)
        self.native_calls: list[tuple[str, Any]] = []
        self.external_calls: list[tuple[str, list[str], Any]] = []

    def resolve_executable(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.on_path else None

    async def run_native(self, line: str, cwd: Any = None, token: Any = None) -> ProcessOutcome:
        self.native_calls.append((line, cwd))
        return self.outcome

    async def run_external(
        self,
        program: str,
        args: Sequence[str] = (),
        cwd: Any = None,
        token: Any = None,
    ) -> ProcessOutcome:
        self.external_calls.append((program, list(args), cwd))
        return self.outcome


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class StubCommand:
    """Minimal :class:`~shellkit.core.protocols.CliCommand` implementation."""

    def __init__(
        self,
        name: str,
        description: str = "",
        category: str = "General",
        exit_code: int = 0,
        action: Callable[..., Any] | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.category = category
        self.exit_code = exit_code
        self.action = action
        self.calls: list[list[str]] = []
        self.tokens: list[CancellationToken] = []

    async def execute(self, context: Any, args: Sequence[str], token: CancellationToken) -> int:
        self.calls.append(list(args))
        self.tokens.append(token)
        if self.action is not None:
            result = self.action(context, args, token)
            if hasattr(result, "__await__"):
                await result
        return self.exit_code

    def get_completions(self, context: Any, prefix: str) -> list[str]:
        return [c for c in ("alpha", "beta") if c.startswith(prefix)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_shell(writer: FakeWriter, runner: FakeRunner) -> Callable[..., CliShell]:
    """Factory: ``make_shell(lines=(), **option_overrides)``."""

    def factory(lines: Iterable[Any] = (), reader: Any = None, **kwargs: Any) -> CliShell:
        collaborators = {
            key: kwargs.pop(key)
            for key in ("registry", "process_runner", "signal_handler", "cleanup_manager", "terminal")
            if key in kwargs
        }
        collaborators.setdefault("process_runner", runner)
        options = ShellOptions(**kwargs)
        return CliShell(reader or FakeReader(lines), writer, options, **collaborators)

    return factory
