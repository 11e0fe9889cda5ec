"""Human-readable formatting helpers."""

from __future__ import annotations

_UNITS: list[tuple[int, str, str]] = [
    (31536000, "1 year", "{} years"),
    (2592000, "1 month", "{} months"),
    (604800, "1 week", "{} weeks"),
    (86400, "1 day", "{} days"),
    (3600, "1 hour", "{} hours"),
    (60, "1 min", "{} min"),
    (1, "1 sec", "{} sec"),
]


def format_interval(seconds: float, granularity: int = 2) -> str:
    """Format a duration like ``"1 hour 5 min"``.

    Args:
        seconds: Duration in seconds. Fractions are dropped.
        granularity: Maximum number of units in the output.

    Returns:
        The formatted interval, ``"0 sec"`` for durations under a second.
    """
    remaining = int(seconds)
    parts: list[str] = []
    for size, singular, plural in _UNITS:
        if granularity <= 0:
            break
        if remaining >= size:
            count = remaining // size
            parts.append(singular if count == 1 else plural.format(count))
            remaining %= size
            granularity -= 1
        elif parts:
            # Only adjacent units are shown.
            granularity -= 1
    return " ".join(parts) if parts else "0 sec"
