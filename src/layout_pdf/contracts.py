from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """
    Page geometry in millimetres. Defaults: portrait A4 with 10mm margins.
    """

    page_width_mm: float = 210.0
    page_height_mm: float = 297.0
    margin_mm: float = 10.0
    compress: bool = True

    def __post_init__(self) -> None:
        if self.page_width_mm <= 0 or self.page_height_mm <= 0:
            raise ValueError("page dimensions must be > 0")
        if self.margin_mm < 0:
            raise ValueError("margin_mm must be >= 0")
        if self.usable_width_mm <= 0 or self.usable_height_mm <= 0:
            raise ValueError("margins leave no usable page area")

    @property
    def usable_width_mm(self) -> float:
        return self.page_width_mm - 2 * self.margin_mm

    @property
    def usable_height_mm(self) -> float:
        return self.page_height_mm - 2 * self.margin_mm


@dataclass(frozen=True, slots=True)
class PageLayout:
    """
    Placement of one image on its page, in millimetres from the page's
    bottom-left corner. Centered, so y is the same from the top.
    """

    x: float
    y: float
    width: float
    height: float
    scale: float  # millimetres per pixel


@dataclass(frozen=True, slots=True)
class PlacedPage:
    page_num: int  # 1-indexed
    image_name: str
    width_px: int
    height_px: int
    placement: PageLayout


@dataclass(frozen=True, slots=True)
class LayoutIssue:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class LayoutResult:
    """
    Outcome of one document generation.

    `warnings` holds per-item problems (skipped images, empty input); they do
    not make the result fail. `errors` is non-empty only when the document
    could not be written, in which case any previous file is left untouched.
    """

    ok: bool
    out_file: str
    title: str
    pages: list[PlacedPage]
    warnings: list[LayoutIssue]
    errors: list[LayoutIssue]
    geometry: dict[str, Any] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
