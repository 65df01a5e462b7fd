# nexus/utils.py
import calendar
import math
import re
from typing import Any, Tuple

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def money(x: float, symbol: str = "$") -> str:
    try:
        sign = "-" if x < 0 else ""
        return f"{sign}{symbol}{abs(x):,.2f}"
    except Exception:
        return f"{symbol}{x}"


def parse_amount(raw: Any) -> float:
    """
    Lenient numeric parsing for form input: takes the leading number of a
    string ("86.60", "1200 per month"), anything unparseable becomes 0.0.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        m = _LEADING_NUMBER.match(str(raw).strip())
        if not m:
            return 0.0
        value = float(m.group(0))
    if not math.isfinite(value):
        return 0.0
    return value


def add_months(year: int, month: int, offset: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + offset
    return idx // 12, idx % 12 + 1


def format_month_year(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def month_year_iter(start_month=1, start_year=2025, months=12):
    m, y = start_month, start_year
    for _ in range(months):
        yield m, y
        m += 1
        if m > 12:
            m = 1
            y += 1
