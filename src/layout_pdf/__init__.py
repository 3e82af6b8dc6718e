"""
Fitted page layout: one image per page, aspect preserved, centered.
"""

from .artifacts import serialize_layout_result, write_layout_manifest_json
from .contracts import LayoutConfig, LayoutIssue, LayoutResult, PageLayout, PlacedPage
from .module import compute_placement, generate_pdf, plan_pages, read_pixel_size

__all__ = [
    "LayoutConfig",
    "LayoutIssue",
    "LayoutResult",
    "PageLayout",
    "PlacedPage",
    "compute_placement",
    "generate_pdf",
    "plan_pages",
    "read_pixel_size",
    "serialize_layout_result",
    "write_layout_manifest_json",
]
