"""Infrastructure: asynchronous native-shell and external-process execution.

Both call shapes share one pattern: spawn with stdout/stderr piped and
stdin inherited, drain both pipes concurrently with the exit wait, and
return a :class:`~shellkit.core.models.ProcessOutcome`.

Rules
-----
* Spawn failures never raise; they become exit code ``127`` with the
  OS message in ``outcome.error``.
* Cancellation raises :class:`~shellkit.exceptions.OperationCancelledError`
  after the child is either stopped (``kill_on_cancel``) or detached.
* No user-facing output; the shell renders the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from collections.abc import Mapping, Sequence

from shellkit.core.cancellation import CancellationToken
from shellkit.core.models import ProcessOutcome
from shellkit.exceptions import OperationCancelledError
from shellkit.exit_codes import COMMAND_NOT_FOUND

logger = logging.getLogger(__name__)

DEFAULT_TERMINATION_GRACE: float = 2.0
"""Seconds a terminated child gets before it is killed."""


# ---------------------------------------------------------------------------
# Native shell selection
# ---------------------------------------------------------------------------

def native_shell_argv(
    line: str,
    *,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> list[str]:
    """Return the argv that runs *line* through the OS shell.

    ``cmd.exe /c`` on Windows; elsewhere ``$SHELL -c``, defaulting to
    ``/bin/bash`` and falling back to ``/bin/sh`` when that is missing.
    """
    env = os.environ if environ is None else environ
    plat = sys.platform if platform is None else platform
    if plat == "win32":
        return ["cmd.exe", "/c", line]

    shell = env.get("SHELL") or "/bin/bash"
    if not os.path.exists(shell):
        shell = "/bin/sh"
    return [shell, "-c", line]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class ProcessRunner:
    """Spawn child processes on behalf of a shell.

    Parameters
    ----------
    kill_on_cancel:
        When ``True`` a cancelled child is terminated, given
        *termination_grace* seconds, then killed.  When ``False`` it is
        left running and the wait is abandoned.
    termination_grace:
        Seconds between terminate and kill.
    """

    def __init__(
        self,
        *,
        kill_on_cancel: bool = True,
        termination_grace: float = DEFAULT_TERMINATION_GRACE,
    ) -> None:
        self.kill_on_cancel: bool = kill_on_cancel
        self.termination_grace: float = termination_grace

    @staticmethod
    def resolve_executable(name: str) -> str | None:
        """Return the full path of *name* on ``PATH``, or ``None``."""
        return shutil.which(name)

    async def run_native(
        self,
        line: str,
        cwd: str | os.PathLike[str] | None = None,
        token: CancellationToken | None = None,
    ) -> ProcessOutcome:
        """Run the raw *line* through the OS shell."""
        argv = native_shell_argv(line)
        logger.debug("Native shell: %r", argv)
        return await self._run(argv, cwd, token, f"Native shell execution failed for '{line}'")

    async def run_external(
        self,
        program: str,
        args: Sequence[str] = (),
        cwd: str | os.PathLike[str] | None = None,
        token: CancellationToken | None = None,
    ) -> ProcessOutcome:
        """Run *program* directly with *args* (no shell)."""
        logger.debug("External process: %r %r", program, list(args))
        return await self._run([program, *args], cwd, token, f"Command '{program}' failed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        argv: Sequence[str],
        cwd: str | os.PathLike[str] | None,
        token: CancellationToken | None,
        failure_prefix: str,
    ) -> ProcessOutcome:
        if token is not None:
            token.raise_if_cancelled()

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as exc:
            logger.debug("Spawn failed for %r", argv, exc_info=True)
            return ProcessOutcome(exit_code=COMMAND_NOT_FOUND, error=f"{failure_prefix}: {exc}")

        try:
            if token is None:
                stdout, stderr = await process.communicate()
            else:
                stdout, stderr = await token.guard(process.communicate())
        except OperationCancelledError:
            await self._abandon(process)
            raise

        return ProcessOutcome(
            exit_code=process.returncode if process.returncode is not None else 0,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
        )

    async def _abandon(self, process: asyncio.subprocess.Process) -> None:
        if not self.kill_on_cancel:
            logger.info("Cancelled; leaving process %s running", process.pid)
            return

        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.termination_grace)
        except asyncio.TimeoutError:
            logger.debug("Process %s ignored terminate; killing", process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
