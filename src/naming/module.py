from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Callable

from .contracts import InvalidDateFormat, TooManyCollisions
from .date_token import format_date_token

_SEPARATOR_RUN_RE = re.compile(r"[-_]{2,}")

# Tried in this order; the first strict match wins.
_DATE_LAYOUTS: tuple[re.Pattern[str], ...] = (
    re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{4})"),
    re.compile(r"([0-9]{2})\.([0-9]{2})\.([0-9]{4})"),
    re.compile(r"([0-9]{2})/([0-9]{2})/([0-9]{4})"),
)

MAX_COLLISION_SUFFIX = 999


def sanitize(text: str) -> str:
    """
    Deterministic, filesystem-safe slug.

    Case and diacritics are preserved.
    """

    s = text.strip()
    s = s.replace(" ", "_")
    s = s.replace("/", "-").replace("\\", "-").replace(":", "-")
    return _SEPARATOR_RUN_RE.sub("-", s)


def ensure_unique_path(path: Path, *, is_taken: Callable[[Path], bool] | None = None) -> Path:
    """
    Return `path` if it is free, else the first free `<stem>_NN<suffix>` sibling
    (NN = 02, 03, ... 999).

    `is_taken` overrides the default existence check.
    """

    taken = is_taken if is_taken is not None else Path.exists
    if not taken(path):
        return path

    for i in range(2, MAX_COLLISION_SUFFIX + 1):
        candidate = path.with_name(f"{path.stem}_{i:02d}{path.suffix}")
        if not taken(candidate):
            return candidate

    raise TooManyCollisions(f"Too many name collisions for {path}")


def parse_date(text: str) -> tuple[date, str]:
    """
    Parse a day-month-year date and return it with its DD_MM_YYYY token.
    """

    s = text.strip()
    for layout in _DATE_LAYOUTS:
        m = layout.fullmatch(s)
        if m is None:
            continue
        day, month, year = (int(g) for g in m.groups())
        try:
            d = date(year, month, day)
        except ValueError:
            continue
        return d, format_date_token(d)

    raise InvalidDateFormat(f"Expected a date formatted as DD-MM-YYYY, got: {text!r}")
