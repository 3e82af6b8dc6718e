from __future__ import annotations

from pathlib import Path

from ..contracts import AttemptOutcome, ConvertConfig, SourceItem, SourceKind
from .base import ConversionStrategy
from .pillow_engine import flatten_to_rgb


class Pdfium2FirstPageStrategy(ConversionStrategy):
    """
    In-process rasterization of a PDF's first page.

    Last link of the chain for PDFs, so hosts without ImageMagick can still
    ingest a scanned document.
    """

    def name(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise RuntimeError("Missing dependency: pypdfium2 is required for in-process PDF rendering.") from e

    def attempt(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> AttemptOutcome:
        if source.kind != SourceKind.PDF:
            return self._skip(
                "CONVERT_NOT_APPLICABLE",
                "pypdfium2 only renders PDF sources",
                {"kind": source.kind.value},
            )
        if not config.enable_pdfium_fallback:
            return self._skip("CONVERT_STRATEGY_DISABLED", "pypdfium2 fallback disabled by configuration")

        scale = config.pdf_density / 72.0  # PDF points are 1/72 inch

        try:
            pdfium = self._require_pdfium()
            doc = pdfium.PdfDocument(str(source.path))
            try:
                if len(doc) < 1:
                    return self._failure("CONVERT_PDF_EMPTY", "PDF has no pages")
                page = doc[0]
                try:
                    bitmap = page.render(scale=scale)
                    pil_img = flatten_to_rgb(bitmap.to_pil())
                finally:
                    page.close()
                pil_img.save(destination, format="JPEG", quality=config.jpeg_quality)
            finally:
                doc.close()
        except Exception as e:
            return self._failure(
                "CONVERT_PDF_RENDER_FAILED",
                "PDF rendering failed",
                {"error": repr(e), "backend_version": self.backend_version()},
            )

        return self._success()
