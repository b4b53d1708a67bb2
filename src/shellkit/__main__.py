"""Allow ``python -m shellkit`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m shellkit`` behaves identically to the ``shellkit`` console
script.
"""

from __future__ import annotations

from shellkit.cli.app import cli

if __name__ == "__main__":
    cli()
