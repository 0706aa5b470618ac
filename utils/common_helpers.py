from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def to_float(x: Any) -> float:
    if x is None:
        return 0.0
    if isinstance(x, Decimal):
        return float(x)
    try:
        value = float(x)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(value) else value


def safe_float(x: Any) -> Optional[float]:
    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return None
        return float(x)
    except (TypeError, ValueError):
        return None


def pct_growth(current: float, previous: float) -> float:
    """Percentage change from previous to current; 0 when previous is not positive."""
    if previous is None or previous <= 0:
        return 0.0
    return (current - previous) / previous * 100.0


def as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


# -----------------------
# Calendar helpers
# -----------------------

def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift to the first day of the month `months` away from d's month."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def parse_month_key(value: str) -> date:
    """'2024-03' -> date(2024, 3, 1). Raises ValueError on a malformed key."""
    if not MONTH_KEY_RE.match(value or ""):
        raise ValueError("month must be in YYYY-MM format")
    year, month = value.split("-")
    return date(int(year), int(month), 1)


def normalize_symbol(value: str) -> str:
    symbol = (value or "").strip().upper()
    if not symbol or len(symbol) > 32:
        raise ValueError("symbol must be 1-32 characters")
    return symbol
