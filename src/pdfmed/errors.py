"""Exception hierarchy for PDFmed orchestration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from convert_image.contracts import ConvertResult
    from layout_pdf.contracts import LayoutResult


class PdfmedError(Exception):
    """Base exception for all PDFmed errors."""


class InvalidArgument(PdfmedError):
    """Raised when a required value is missing or malformed."""


class ConversionExhausted(PdfmedError):
    """Raised when no conversion strategy produced a JPEG."""

    def __init__(self, message: str, result: ConvertResult) -> None:
        super().__init__(message)
        self.result = result


class DirectoryMissing(PdfmedError):
    """Raised when a specialty has no source image directory."""


class PdfGenerationFailed(PdfmedError):
    """Raised when a specialty's document could not be written."""

    def __init__(self, message: str, result: LayoutResult) -> None:
        super().__init__(message)
        self.result = result
