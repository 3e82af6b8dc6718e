from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from PIL import Image
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from collect_items.contracts import CollectedItem

from .contracts import LayoutConfig, LayoutIssue, LayoutResult, PageLayout, PlacedPage

logger = logging.getLogger(__name__)


def read_pixel_size(path: Path) -> tuple[int, int]:
    """
    (width, height) in pixels. Pillow opens lazily, so only the header is read.
    """

    with Image.open(path) as img:
        width, height = img.size
    return int(width), int(height)


def compute_placement(*, width_px: int, height_px: int, config: LayoutConfig) -> PageLayout:
    """
    Fit-within scaling: the image fills the usable area along its limiting axis,
    keeps its aspect ratio, and is centered on the full page.
    """

    if width_px <= 0 or height_px <= 0:
        raise ValueError(f"image size must be positive, got {width_px}x{height_px}")

    scale = min(config.usable_width_mm / width_px, config.usable_height_mm / height_px)
    width = width_px * scale
    height = height_px * scale
    return PageLayout(
        x=(config.page_width_mm - width) / 2.0,
        y=(config.page_height_mm - height) / 2.0,
        width=width,
        height=height,
        scale=scale,
    )


def plan_pages(
    *, items: Iterable[CollectedItem], config: LayoutConfig
) -> tuple[list[tuple[CollectedItem, PlacedPage]], list[LayoutIssue]]:
    """
    Placement for every item whose dimensions can be read, in input order.
    Unreadable items are reported as warnings and skipped.
    """

    planned: list[tuple[CollectedItem, PlacedPage]] = []
    warnings: list[LayoutIssue] = []

    for item in items:
        try:
            width_px, height_px = read_pixel_size(item.path)
            placement = compute_placement(width_px=width_px, height_px=height_px, config=config)
        except Exception as e:
            logger.warning("Skipping %s: could not read image size: %s", item.name, e)
            warnings.append(
                LayoutIssue(
                    code="LAYOUT_IMAGE_SIZE_UNREADABLE",
                    message="Could not read image dimensions; item skipped",
                    detail={"image_name": item.name, "error": repr(e)},
                )
            )
            continue

        planned.append(
            (
                item,
                PlacedPage(
                    page_num=len(planned) + 1,
                    image_name=item.name,
                    width_px=width_px,
                    height_px=height_px,
                    placement=placement,
                ),
            )
        )

    return planned, warnings


def _render(*, planned: list[tuple[CollectedItem, PlacedPage]], target: Path, title: str, config: LayoutConfig) -> None:
    c = canvas.Canvas(
        str(target),
        pagesize=(config.page_width_mm * mm, config.page_height_mm * mm),
        pageCompression=1 if config.compress else 0,
    )
    c.setTitle(title)
    for item, page in planned:
        p = page.placement
        c.drawImage(str(item.path), p.x * mm, p.y * mm, width=p.width * mm, height=p.height * mm)
        c.showPage()
    c.save()


def generate_pdf(*, items: Iterable[CollectedItem], out_file: Path, title: str, config: LayoutConfig) -> LayoutResult:
    """
    Write one page per readable item to `out_file`, replacing it atomically.

    The document is rendered to a temporary file next to `out_file` and
    renamed over it, so a failed write keeps the previous document.
    """

    geometry = {
        "page_width_mm": config.page_width_mm,
        "page_height_mm": config.page_height_mm,
        "margin_mm": config.margin_mm,
        "compress": config.compress,
    }

    planned, warnings = plan_pages(items=items, config=config)
    if not planned:
        logger.warning("No images to lay out for %s; writing an empty document", title)
        warnings.append(LayoutIssue(code="LAYOUT_NO_IMAGES", message="No images available; document has no pages"))

    out_file.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=out_file.parent, prefix=f".{out_file.name}.", suffix=".tmp")
    os.close(fd)
    tmp_file = Path(tmp_name)

    try:
        _render(planned=planned, target=tmp_file, title=title, config=config)
        os.chmod(tmp_file, 0o644)  # mkstemp creates 0600
        os.replace(tmp_file, out_file)
    except Exception as e:
        tmp_file.unlink(missing_ok=True)
        logger.error("Failed to write %s: %s", out_file, e)
        return LayoutResult(
            ok=False,
            out_file=str(out_file),
            title=title,
            pages=[],
            warnings=warnings,
            errors=[
                LayoutIssue(
                    code="LAYOUT_WRITE_FAILED",
                    message="Failed to write PDF document",
                    detail={"error": repr(e)},
                )
            ],
            geometry=geometry,
        )

    logger.info("PDF written: %s (%d page(s))", out_file, len(planned))
    return LayoutResult(
        ok=True,
        out_file=str(out_file),
        title=title,
        pages=[page for _, page in planned],
        warnings=warnings,
        errors=[],
        geometry=geometry,
    )
