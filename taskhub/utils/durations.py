import re
from datetime import timedelta

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = _MS_PER_SECOND * 60
_MS_PER_HOUR = _MS_PER_MINUTE * 60
_MS_PER_DAY = _MS_PER_HOUR * 24

_UNIT_MILLISECONDS = {
    "": 1,
    "ms": 1,
    "msec": 1,
    "msecs": 1,
    "millisecond": 1,
    "milliseconds": 1,
    "s": _MS_PER_SECOND,
    "sec": _MS_PER_SECOND,
    "secs": _MS_PER_SECOND,
    "second": _MS_PER_SECOND,
    "seconds": _MS_PER_SECOND,
    "m": _MS_PER_MINUTE,
    "mn": _MS_PER_MINUTE,
    "mns": _MS_PER_MINUTE,
    "min": _MS_PER_MINUTE,
    "mins": _MS_PER_MINUTE,
    "minute": _MS_PER_MINUTE,
    "minutes": _MS_PER_MINUTE,
    "h": _MS_PER_HOUR,
    "hr": _MS_PER_HOUR,
    "hrs": _MS_PER_HOUR,
    "hour": _MS_PER_HOUR,
    "hours": _MS_PER_HOUR,
    "d": _MS_PER_DAY,
    "day": _MS_PER_DAY,
    "days": _MS_PER_DAY,
    "w": _MS_PER_DAY * 7,
    "week": _MS_PER_DAY * 7,
    "weeks": _MS_PER_DAY * 7,
    "mo": _MS_PER_DAY * 30.4375,
    "mth": _MS_PER_DAY * 30.4375,
    "month": _MS_PER_DAY * 30.4375,
    "months": _MS_PER_DAY * 30.4375,
    "y": _MS_PER_DAY * 365.25,
    "yr": _MS_PER_DAY * 365.25,
    "yrs": _MS_PER_DAY * 365.25,
    "year": _MS_PER_DAY * 365.25,
    "years": _MS_PER_DAY * 365.25,
}

_DURATION_PATTERN = re.compile(r"^(?P<value>-?(?:\d+)?\.?\d+)\s*(?P<unit>[a-z]+)?$", re.IGNORECASE)


def parse_duration(raw_value: str) -> timedelta:
    """Parse strings such as ``"15m"``, ``"7 days"`` or ``"3600000"`` (ms)."""
    if not isinstance(raw_value, str) or not raw_value.strip() or len(raw_value) >= 100:
        raise ValueError("Duration must be a string with a length between 1 and 99")
    match = _DURATION_PATTERN.match(raw_value.strip())
    if match is None:
        raise ValueError(f"Invalid duration: {raw_value!r}")
    unit = (match.group("unit") or "").lower()
    try:
        factor = _UNIT_MILLISECONDS[unit]
    except KeyError:
        raise ValueError(f"Invalid duration unit: {unit}") from None
    try:
        return timedelta(milliseconds=float(match.group("value")) * factor)
    except OverflowError:
        raise ValueError(f"Duration out of range: {raw_value!r}") from None
