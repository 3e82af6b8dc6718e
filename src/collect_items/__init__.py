"""
Deterministic ordering of a specialty's JPEG artifacts.
"""

from .contracts import CollectedItem, DateSource
from .module import collect_items, effective_date_for

__all__ = ["CollectedItem", "DateSource", "collect_items", "effective_date_for"]
