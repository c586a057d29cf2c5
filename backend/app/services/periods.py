# app/services/periods.py
"""Assembly-name and Period ("November-2025") helpers."""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Tuple
from zoneinfo import ZoneInfo

MONTHS: List[str] = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_WEEK_RE = re.compile(r"(\d+)")


def normalize_assembly(name: Any) -> str:
    """Canonical assembly key: whitespace collapsed, upper-case."""
    if name is None:
        return ""
    return " ".join(str(name).split()).upper()


def normalize_month_name(value: Any) -> Optional[str]:
    """Return the English month name for 'nov', 'NOVEMBER', 11 or '11'; None if unknown."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if s.isdigit():
        n = int(s)
        return MONTHS[n - 1] if 1 <= n <= 12 else None
    low = s.lower()
    for m in MONTHS:
        if m.lower() == low or (len(low) >= 3 and m.lower().startswith(low)):
            return m
    return None


def month_index(name: str) -> int:
    """1-based month number for a canonical month name."""
    return MONTHS.index(name) + 1


def format_period(month: Any, year: Any) -> str:
    name = normalize_month_name(month) or str(month).strip()
    return f"{name}-{str(year).strip()}"


def normalize_period(period: Any) -> str:
    """'november-2025' -> 'November-2025'; unparsable input is returned trimmed."""
    s = str(period or "").strip()
    parsed = parse_period(s)
    if parsed is None:
        return s
    year, month = parsed
    return f"{MONTHS[month - 1]}-{year}"


def parse_period(period: Any) -> Optional[Tuple[int, int]]:
    """'November-2025' -> (2025, 11). Also accepts a space separator."""
    if not period:
        return None
    parts = re.split(r"[-\s]+", str(period).strip())
    if len(parts) != 2:
        return None
    name = normalize_month_name(parts[0])
    if name is None or not parts[1].isdigit():
        return None
    return int(parts[1]), month_index(name)


def period_sort_key(period: Any) -> Tuple[int, int, int, str]:
    parsed = parse_period(period)
    if parsed is None:
        return (1, 0, 0, str(period or ""))
    return (0, parsed[0], parsed[1], "")


def previous_periods(month: Any, year: Any, n: int = 2) -> List[Tuple[str, str]]:
    """The n calendar months before (month, year), most recent first."""
    name = normalize_month_name(month)
    if name is None:
        raise ValueError(f"Invalid month: {month!r}")
    idx = month_index(name) - 1
    cur_year = int(str(year).strip())
    out: List[Tuple[str, str]] = []
    for _ in range(n):
        idx -= 1
        if idx < 0:
            idx = 11
            cur_year -= 1
        out.append((MONTHS[idx], str(cur_year)))
    return out


def sunday_for_week(week: Any, period: Any) -> Optional[str]:
    """ISO date of the Nth Sunday of the period for a label like 'Week 3'."""
    parsed = parse_period(period)
    if parsed is None:
        return None
    year, month = parsed
    m = _WEEK_RE.search(str(week or ""))
    week_no = int(m.group(1)) if m else 1
    week_no = max(week_no, 1)

    first = date(year, month, 1)
    # date.weekday(): Monday=0 ... Sunday=6
    first_sunday = first + timedelta(days=(6 - first.weekday()) % 7)
    return (first_sunday + timedelta(days=7 * (week_no - 1))).isoformat()


def current_period(tz: str = "Africa/Lagos") -> str:
    now = datetime.now(ZoneInfo(tz))
    return f"{MONTHS[now.month - 1]}-{now.year}"
