from __future__ import annotations

import logging
from datetime import datetime, time
from pathlib import Path

from naming.date_token import find_last_date_token

from .contracts import CollectedItem, DateSource

logger = logging.getLogger(__name__)

JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg"})


def effective_date_for(entry: Path) -> tuple[datetime, DateSource]:
    """
    Date embedded in the filename (last DD_MM_YYYY token wins), else mtime.
    """

    embedded = find_last_date_token(entry.name)
    if embedded is not None:
        return datetime.combine(embedded, time.min), DateSource.FILENAME
    return datetime.fromtimestamp(entry.stat().st_mtime), DateSource.MTIME


def collect_items(directory: Path) -> list[CollectedItem]:
    """
    JPEGs directly inside `directory`, ordered by (effective date, name).

    Non-recursive. Errors reading the directory itself propagate.
    """

    items: list[CollectedItem] = []
    for entry in directory.iterdir():
        if entry.suffix.lower() not in JPEG_EXTENSIONS or not entry.is_file():
            continue
        effective, source = effective_date_for(entry)
        items.append(CollectedItem(path=entry, name=entry.name, effective_date=effective, date_source=source))

    items.sort(key=CollectedItem.sort_key)
    logger.debug("Collected %d image(s) from %s", len(items), directory)
    return items
