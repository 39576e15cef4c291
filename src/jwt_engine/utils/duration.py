"""Duration parsing for token lifetimes.

Accepts the forms users commonly write in configuration files:

    parse_duration(90)              -> 90.0
    parse_duration("90")            -> 90.0
    parse_duration("1 day")         -> 86400.0
    parse_duration("2h")            -> 7200.0
    parse_duration("1.5 hours")     -> 5400.0
    parse_duration("500ms")         -> 0.5
    parse_duration(timedelta(minutes=5)) -> 300.0
"""

from __future__ import annotations

__all__ = ["Duration", "parse_duration"]

import re
from datetime import timedelta
from typing import Union

Duration = Union[int, float, str, timedelta]

# Unit aliases mapped to their length in seconds
_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
    "d": 86400.0,
    "day": 86400.0,
    "days": 86400.0,
    "w": 604800.0,
    "week": 604800.0,
    "weeks": 604800.0,
    "y": 31557600.0,
    "year": 31557600.0,
    "years": 31557600.0,
}

_DURATION_RE = re.compile(r"^\s*(?P<amount>-?\d+(?:\.\d+)?)\s*(?P<unit>[a-z]*)\s*$", re.IGNORECASE)


def parse_duration(value: Duration) -> float:
    """Convert a duration value to seconds.

    Args:
        value: Seconds as int/float, a timedelta, or a string such as
            "1 day", "30m" or "1.5 hours". A bare numeric string is seconds.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the value cannot be parsed or is negative.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value)
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        unit = match.group("unit").lower() or "s"
        if unit not in _UNIT_SECONDS:
            raise ValueError(f"Unknown duration unit {unit!r} in {value!r}")
        seconds = float(match.group("amount")) * _UNIT_SECONDS[unit]
    else:
        raise ValueError(f"Invalid duration type: {type(value).__name__}")

    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value!r}")
    return seconds
