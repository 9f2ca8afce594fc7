"""Time segment patterns.

A pattern groups consecutive time intervals that share one coalescence
rate.  ``(4, 2, 2)`` ties intervals 0-3 together, then 4-5, then 6-7.

The textual form is a ``+``-separated list of ``count*size`` terms, each
contributing ``count`` segments of ``size`` intervals; a bare ``size``
means one segment.  ``"1*4+2*2"`` is therefore ``(4, 2, 2)``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from psmckit.exceptions import PatternError


def parse_time_segment_pattern(text: str) -> tuple[int, ...]:
    """Parse ``"1*4+25*2+1*4"`` style pattern strings."""
    if not text or not text.strip():
        raise PatternError("Time segment pattern cannot be empty")

    segments: list[int] = []
    for term in text.split("+"):
        term = term.strip()
        parts = [p.strip() for p in term.split("*")]
        try:
            if len(parts) == 1:
                count, size = 1, int(parts[0])
            elif len(parts) == 2:
                count, size = int(parts[0]), int(parts[1])
            else:
                raise ValueError(term)
        except ValueError as exc:
            raise PatternError(f"Invalid time segment term '{term}' in '{text}'") from exc
        if count < 1 or size < 1:
            raise PatternError(
                f"Time segment term '{term}' must use positive integers"
            )
        segments.extend([size] * count)
    return tuple(segments)


def format_time_segment_pattern(pattern: Sequence[int]) -> str:
    """Inverse of :func:`parse_time_segment_pattern`, run-length encoded."""
    pattern = normalize_time_segment_pattern(pattern)
    terms: list[str] = []
    i = 0
    while i < len(pattern):
        j = i
        while j < len(pattern) and pattern[j] == pattern[i]:
            j += 1
        terms.append(f"{j - i}*{pattern[i]}")
        i = j
    return "+".join(terms)


def normalize_time_segment_pattern(pattern: str | Sequence[int]) -> tuple[int, ...]:
    """Return *pattern* as a tuple of positive ints.

    Strings are parsed; sequences are checked entry by entry.
    """
    if isinstance(pattern, str):
        return parse_time_segment_pattern(pattern)

    out: list[int] = []
    for entry in pattern:
        try:
            is_int = not isinstance(entry, (bool, np.bool_)) and int(entry) == entry
        except (TypeError, ValueError, OverflowError):
            is_int = False
        if not is_int:
            raise PatternError(f"Time segment sizes must be integers, got {entry!r}")
        if int(entry) < 1:
            raise PatternError(f"Time segment sizes must be >= 1, got {entry}")
        out.append(int(entry))
    if not out:
        raise PatternError("Time segment pattern cannot be empty")
    return tuple(out)


def validate_time_segment_pattern(pattern: Sequence[int], nr_states: int) -> None:
    """Raise :class:`PatternError` unless ``sum(pattern) == nr_states``."""
    total = sum(pattern)
    if total != nr_states:
        raise PatternError(
            f"Time segment pattern covers {total} intervals, "
            f"model has {nr_states}"
        )


def segment_offsets(pattern: Sequence[int]) -> NDArray[np.int64]:
    """Index of the first interval of each segment."""
    sizes = np.asarray(pattern, dtype=np.int64)
    offsets = np.zeros(len(sizes), dtype=np.int64)
    np.cumsum(sizes[:-1], out=offsets[1:])
    return offsets
