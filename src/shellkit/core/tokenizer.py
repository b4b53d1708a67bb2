"""Input-line tokenizer and shell-operator scan.

Tokenizing is deliberately lenient, not POSIX shell quoting:

* Whitespace separates tokens except inside double quotes.
* Quote characters are stripped, never preserved.
* An unterminated quote consumes to end-of-line; it is not an error.

The operator scan is a heuristic.  Any listed character or substring
anywhere in the line routes the *raw* line to the native shell, even
inside an otherwise harmless argument.
"""

from __future__ import annotations

from typing import Final

SHELL_OPERATORS: Final[tuple[str, ...]] = (
    "|",
    ">",
    "<",
    "&&",
    "||",
    ";",
    "&",
    "$",
    "`",
    "$(",
    "*",
    "?",
    "[",
    "~",
    ">>",
    "2>",
    "2>&1",
)
"""Characters and substrings that force native-shell delegation."""


def tokenize(line: str) -> list[str]:
    """Split *line* into argv-style tokens, honoring double quotes.

    >>> tokenize('a "b c" d')
    ['a', 'b c', 'd']
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
            continue
        if ch.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current.clear()
            continue
        current.append(ch)

    if current:
        tokens.append("".join(current))
    return tokens


def contains_shell_operators(line: str) -> bool:
    """Return ``True`` if *line* contains any native-shell operator."""
    return any(op in line for op in SHELL_OPERATORS)
