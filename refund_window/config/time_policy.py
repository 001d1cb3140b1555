# refund_window/config/time_policy.py
# Canonical clock and business-hours rules.
# - Business-hours rules read the canonical zone's wall clock (UK civil time).
# - Phone requests outside business hours are registered at the next opening.

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# -------------------------------------------------------
# 🔹 Canonical zone / formats
# -------------------------------------------------------
CANONICAL_TIMEZONE = "Europe/London"

CANONICAL_DATE_FORMAT = "%d/%m/%Y"
CANONICAL_DATETIME_FORMAT = "%d/%m/%Y %H:%M"

# Source time fields are always 24h "HH:mm", whatever the location.
SOURCE_TIME_PATTERN = "HH:mm"

# -------------------------------------------------------
# 🔹 Business hours (canonical-zone clock)
# -------------------------------------------------------
BUSINESS_HOURS = {
    "opening": time(9, 0),
    "closing": time(17, 0),
    "weekend_days": (5, 6),  # Sat, Sun (datetime.weekday())
}

WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

# -------------------------------------------------------
# 🔹 Zones
# -------------------------------------------------------
def get_zone(key: str) -> ZoneInfo:
    """IANA zone lookup. Raises ZoneInfoNotFoundError (a KeyError) for unknown ids."""
    return ZoneInfo(key)


def is_known_zone(key: str) -> bool:
    try:
        get_zone(key)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True

# -------------------------------------------------------
# 🔹 Pattern tokens ("MM/DD/YYYY") -> strptime directives
# -------------------------------------------------------
_TOKENS = {
    "YYYY": "%Y",
    "MM": "%m",
    "DD": "%d",
    "HH": "%H",
    "mm": "%M",
}
_TOKEN_RE = re.compile("|".join(sorted(_TOKENS, key=len, reverse=True)))


def to_strptime(pattern: str) -> str:
    """
    "MM/DD/YYYY" -> "%m/%d/%Y", "HH:mm" -> "%H:%M".
    Letters outside the token set are rejected; separators pass through.
    """
    out = []
    pos = 0
    for m in _TOKEN_RE.finditer(pattern):
        literal = pattern[pos:m.start()]
        if any(ch.isalpha() for ch in literal):
            raise ValueError(f"unsupported date pattern: {pattern!r}")
        out.append(literal.replace("%", "%%"))
        out.append(_TOKENS[m.group(0)])
        pos = m.end()
    tail = pattern[pos:]
    if any(ch.isalpha() for ch in tail):
        raise ValueError(f"unsupported date pattern: {pattern!r}")
    out.append(tail.replace("%", "%%"))
    return "".join(out)


def pattern_has_full_date(pattern: str) -> bool:
    directives = to_strptime(pattern)
    return all(d in directives for d in ("%Y", "%m", "%d"))

# -------------------------------------------------------
# 🔹 Formatting
# -------------------------------------------------------
def format_date(d: date) -> str:
    return d.strftime(CANONICAL_DATE_FORMAT)


def format_datetime(dt: datetime) -> str:
    return dt.strftime(CANONICAL_DATETIME_FORMAT)


def weekday_name(dt: date) -> str:
    return WEEKDAY_NAMES[dt.weekday()]


def floor_to_minute(dt: datetime) -> datetime:
    return dt.replace(second=0, microsecond=0)

# -------------------------------------------------------
# 🔹 Business-day rules
# -------------------------------------------------------
def is_business_day(d: date, hours: Mapping = BUSINESS_HOURS) -> bool:
    return d.weekday() not in hours["weekend_days"]


def is_business_time(dt: datetime, hours: Mapping = BUSINESS_HOURS) -> bool:
    """
    True inside [opening, closing) on a business day.
    - 17:00 exactly is already closed
    - 09:00 exactly is open
    """
    if not is_business_day(dt, hours):
        return False
    t = dt.time()
    return hours["opening"] <= t < hours["closing"]


def next_business_opening(dt: datetime, hours: Mapping = BUSINESS_HOURS) -> datetime:
    """
    Opening time of the first business day strictly after dt's calendar day.
    Keeps dt's tzinfo; minutes of dt are dropped.
    """
    d = dt.date() + timedelta(days=1)
    while not is_business_day(d, hours):
        d += timedelta(days=1)
    return datetime.combine(d, hours["opening"], tzinfo=dt.tzinfo)


def resume_business_time(dt: datetime, hours: Mapping = BUSINESS_HOURS) -> datetime:
    """
    First instant at or after dt that counts as business time.
    - weekend / at-or-after closing -> next business day opening
    - before opening on a business day -> same day opening
    - otherwise dt unchanged
    """
    if is_business_time(dt, hours):
        return dt
    if is_business_day(dt, hours) and dt.time() < hours["opening"]:
        return datetime.combine(dt.date(), hours["opening"], tzinfo=dt.tzinfo)
    return next_business_opening(dt, hours)


__all__ = [
    "CANONICAL_TIMEZONE", "CANONICAL_DATE_FORMAT", "CANONICAL_DATETIME_FORMAT",
    "SOURCE_TIME_PATTERN", "BUSINESS_HOURS", "WEEKDAY_NAMES",
    "get_zone", "is_known_zone",
    "to_strptime", "pattern_has_full_date",
    "format_date", "format_datetime", "weekday_name", "floor_to_minute",
    "is_business_day", "is_business_time",
    "next_business_opening", "resume_business_time",
]
