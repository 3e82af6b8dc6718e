"""
Conversion of arbitrary inputs (photos, video, HEIF, PDF) to JPEG.

- `convert_to_jpeg` runs the strategy chain and stops at the first success.
- `ingest_pdf_pages` rasterizes every page of a PDF in one ImageMagick call.
- Failed conversions leave nothing at the destination.
"""

from .contracts import (
    AttemptOutcome,
    AttemptStatus,
    ConvertConfig,
    ConvertError,
    ConvertResult,
    SourceItem,
    SourceKind,
)
from .module import classify_source, convert_to_jpeg, ingest_pdf_pages, page_files_for_base

__all__ = [
    "AttemptOutcome",
    "AttemptStatus",
    "ConvertConfig",
    "ConvertError",
    "ConvertResult",
    "SourceItem",
    "SourceKind",
    "classify_source",
    "convert_to_jpeg",
    "ingest_pdf_pages",
    "page_files_for_base",
]
