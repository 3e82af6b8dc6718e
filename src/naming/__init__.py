"""
Filesystem-safe naming for specialties and artifacts.

- `sanitize` turns free text into a slug usable as a directory or file prefix.
- `ensure_unique_path` resolves collisions with `_02`, `_03`, ... suffixes.
- `parse_date` accepts DD-MM-YYYY / DD.MM.YYYY / DD/MM/YYYY.
- `date_token` holds the DD_MM_YYYY token shared by the writer (`add`) and the
  reader (item collection).
"""

from .contracts import InvalidDateFormat, TooManyCollisions
from .date_token import DATE_TOKEN_RE, find_last_date_token, format_date_token
from .module import ensure_unique_path, parse_date, sanitize

__all__ = [
    "DATE_TOKEN_RE",
    "InvalidDateFormat",
    "TooManyCollisions",
    "ensure_unique_path",
    "find_last_date_token",
    "format_date_token",
    "parse_date",
    "sanitize",
]
