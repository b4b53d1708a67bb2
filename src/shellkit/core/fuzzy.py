"""Edit-distance helpers used for "did you mean" suggestions.

All comparisons are case-insensitive; candidates are returned with
their original casing.
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_MAX_DISTANCE: int = 3


def levenshtein_distance(source: str, target: str) -> int:
    """Return the minimum number of single-character edits between two strings."""
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for i, s_ch in enumerate(source, start=1):
        current = [i]
        for j, t_ch in enumerate(target, start=1):
            cost = 0 if s_ch == t_ch else 1
            current.append(
                min(
                    previous[j] + 1,        # deletion
                    current[j - 1] + 1,     # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def find_best_match(
    value: str,
    candidates: Iterable[str],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> str | None:
    """Return the closest candidate within *max_distance*, or ``None``.

    Ties keep the first candidate encountered.
    """
    if not value:
        return None

    needle = value.lower()
    best: str | None = None
    best_distance = max_distance + 1
    for candidate in candidates:
        if not candidate:
            continue
        distance = levenshtein_distance(needle, candidate.lower())
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


def find_multiple_matches(
    value: str,
    candidates: Iterable[str],
    max_distance: int = DEFAULT_MAX_DISTANCE,
    max_results: int = 3,
) -> list[str]:
    """Return up to *max_results* candidates ordered by distance, then name."""
    if not value:
        return []

    needle = value.lower()
    scored = [
        (levenshtein_distance(needle, candidate.lower()), candidate.lower(), candidate)
        for candidate in candidates
        if candidate
    ]
    scored = [item for item in scored if item[0] <= max_distance]
    scored.sort()
    return [candidate for _, _, candidate in scored[:max_results]]


def suggestion_threshold(name: str) -> int:
    """Return the edit budget for suggesting a command in place of *name*.

    Short names get a tight budget so that two-letter executables such
    as ``ls`` or ``cp`` are not mistaken for typos of ``cd``.
    """
    return max(1, min(DEFAULT_MAX_DISTANCE, len(name) // 2))
