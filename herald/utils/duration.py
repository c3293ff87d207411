"""Relative duration parsing.

Durations are written the way operators think about them: "30m", "12h",
"5d", "1h30m", "250ms". Used for the watcher's lookback window and poll
interval.
"""

import re
import time
from typing import Optional

_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
}

# "ms" must come before "m" in the alternation
_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d|w)")
_FULL_RE = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|s|m|h|d|w))+$")


def parse_duration(value: str) -> int:
    """Parse a duration string into milliseconds.

    Args:
        value: Duration such as "30m", "12h", "1h30m"

    Returns:
        Duration in milliseconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    if not isinstance(value, str):
        raise ValueError(f"Duration must be a string, got {type(value).__name__}")

    compact = value.strip().lower().replace(" ", "")
    if not compact or not _FULL_RE.match(compact):
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '30m', '12h')")

    total = 0.0
    for amount, unit in _PART_RE.findall(compact):
        total += float(amount) * _UNIT_MS[unit]
    return int(total)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def since(duration: str, now: Optional[int] = None) -> int:
    """Epoch milliseconds for `duration` ago."""
    current = now_ms() if now is None else now
    return current - parse_duration(duration)
