"""Argument classifier: argv tokens → positional / flags / options.

Rules (command name already stripped):

* ``--name=value`` → option ``name=value``.
* ``--name value`` → option when the next token does not start with
  ``-``; otherwise ``--name`` is a flag.
* ``-abc`` → each letter is a flag, except that the *last* letter
  takes the following non-dash token as its value.
* Names in the boolean set never consume a value.  The standard
  switches (``help/h``, ``verbose/v``, ``quiet/q``, ``dry-run/n``,
  ``force/f``, ``yes/y``) are always boolean, so ``--verbose x``
  and ``-f file`` give a flag plus a positional, never an option.
* A bare ``--`` ends option parsing; everything after is positional.
* Anything else is positional, in order.

Option and flag lookups are case-insensitive.  The parsed result is
read-only after construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Final

STANDARD_FLAGS: Final[frozenset[str]] = frozenset(
    {"help", "h", "verbose", "v", "quiet", "q", "dry-run", "n", "force", "f", "yes", "y"}
)
"""Switches every command understands; they never take a value."""


class CommandLineArgs:
    """Structured view over a command's argument tokens.

    Parameters
    ----------
    tokens:
        Raw argument tokens, excluding the command name.
    boolean_flags:
        Extra option names (long or short, without dashes) that are
        switches and must never consume the following token.  They add
        to :data:`STANDARD_FLAGS`, which are always switches.
    """

    __slots__ = ("_positional", "_flags", "_options")

    def __init__(self, tokens: Sequence[str], boolean_flags: Iterable[str] = ()) -> None:
        booleans = STANDARD_FLAGS | {name.lower() for name in boolean_flags}
        positional: list[str] = []
        flags: set[str] = set()
        options: dict[str, str] = {}

        def takes_value(name: str, index: int) -> bool:
            return (
                name.lower() not in booleans
                and index + 1 < len(tokens)
                and not tokens[index + 1].startswith("-")
            )

        i = 0
        while i < len(tokens):
            arg = tokens[i]

            if arg == "--":
                positional.extend(tokens[i + 1:])
                break

            if arg.startswith("--"):
                name = arg[2:]
                if "=" in name:
                    key, value = name.split("=", 1)
                    options[key.lower()] = value
                elif takes_value(name, i):
                    i += 1
                    options[name.lower()] = tokens[i]
                else:
                    flags.add(name.lower())
            elif arg.startswith("-") and len(arg) > 1:
                cluster = arg[1:]
                for j, letter in enumerate(cluster):
                    if j == len(cluster) - 1 and takes_value(letter, i):
                        i += 1
                        options[letter.lower()] = tokens[i]
                    else:
                        flags.add(letter.lower())
            else:
                positional.append(arg)
            i += 1

        self._positional: tuple[str, ...] = tuple(positional)
        self._flags: frozenset[str] = frozenset(flags)
        self._options: Mapping[str, str] = MappingProxyType(options)

    # ------------------------------------------------------------------
    # Parsed views
    # ------------------------------------------------------------------

    @property
    def positional(self) -> tuple[str, ...]:
        return self._positional

    @property
    def flags(self) -> frozenset[str]:
        return self._flags

    @property
    def options(self) -> Mapping[str, str]:
        return self._options

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def has_flag(self, name: str) -> bool:
        return name.lower() in self._flags

    def get_option(self, name: str, default: str | None = None) -> str | None:
        """Return the option value for *name*, or *default*.  Never raises."""
        return self._options.get(name.lower(), default)

    def get_argument(self, index: int) -> str | None:
        """Return the positional argument at *index*, or ``None``."""
        if 0 <= index < len(self._positional):
            return self._positional[index]
        return None

    def validate_argument_count(self, min_count: int, max_count: int | None = None) -> bool:
        count = len(self._positional)
        if count < min_count:
            return False
        return max_count is None or count <= max_count

    # ------------------------------------------------------------------
    # Standard switches
    # ------------------------------------------------------------------

    @property
    def is_help_requested(self) -> bool:
        return self.has_flag("help") or self.has_flag("h")

    @property
    def is_verbose(self) -> bool:
        return self.has_flag("verbose") or self.has_flag("v")

    @property
    def is_quiet(self) -> bool:
        return self.has_flag("quiet") or self.has_flag("q")

    @property
    def is_dry_run(self) -> bool:
        return self.has_flag("dry-run") or self.has_flag("n")

    @property
    def is_force(self) -> bool:
        return self.has_flag("force") or self.has_flag("f")

    @property
    def is_yes(self) -> bool:
        return self.has_flag("yes") or self.has_flag("y")

    def __repr__(self) -> str:
        return (
            f"CommandLineArgs(positional={list(self._positional)!r}, "
            f"flags={sorted(self._flags)!r}, options={dict(self._options)!r})"
        )


def classify(tokens: Sequence[str], boolean_flags: Iterable[str] = ()) -> CommandLineArgs:
    """Classify *tokens* into positional arguments, flags, and options."""
    return CommandLineArgs(tokens, boolean_flags)
