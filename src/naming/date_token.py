from __future__ import annotations

import re
from datetime import date, timedelta

# DD_MM_YYYY, embedded in artifact filenames by `add` and read back by the collector.
DATE_TOKEN_RE = re.compile(r"([0-9]{2})_([0-9]{2})_([0-9]{4})")


def format_date_token(d: date) -> str:
    return f"{d.day:02d}_{d.month:02d}_{d.year:04d}"


def find_last_date_token(name: str) -> date | None:
    """
    Return the date of the last DD_MM_YYYY token in `name`, or None.

    Validation is range-only (day 1..31, month 1..12, year >= 1). A day past the
    end of its month rolls forward, so 31_04_2024 reads as 2024-05-01.
    """

    matches = DATE_TOKEN_RE.findall(name)
    if not matches:
        return None

    day_s, month_s, year_s = matches[-1]
    day, month, year = int(day_s), int(month_s), int(year_s)
    if not (1 <= day <= 31 and 1 <= month <= 12 and year >= 1):
        return None

    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError:
        # 31_12_9999 has no representable successor.
        return None
