from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class DateSource(str, Enum):
    FILENAME = "filename"  # DD_MM_YYYY token embedded in the name
    MTIME = "mtime"  # file modification time


@dataclass(frozen=True, slots=True)
class CollectedItem:
    """
    One JPEG artifact of a specialty, with the date used to order it.

    `effective_date` is naive local time: midnight for filename dates.
    """

    path: Path
    name: str
    effective_date: datetime
    date_source: DateSource

    def sort_key(self) -> tuple[datetime, str]:
        return (self.effective_date, self.name)
