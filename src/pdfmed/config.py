from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from convert_image.contracts import ConvertConfig
from layout_pdf.contracts import LayoutConfig

FOTO_DIR_NAME = "foto"
PDF_DIR_NAME = "pdf"


@dataclass(frozen=True, slots=True)
class PdfmedConfig:
    """
    Application configuration, built once by the CLI and passed explicitly.

    Layout on disk:
    - `<foto_root>/<specialty-slug>/<name-slug>_<DD_MM_YYYY>[_NN].jpg`
    - `<pdf_root>/<specialty-slug>/<specialty-slug>.pdf`
    """

    foto_root: Path = Path(FOTO_DIR_NAME)
    pdf_root: Path = Path(PDF_DIR_NAME)
    convert: ConvertConfig = field(default_factory=ConvertConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def __post_init__(self) -> None:
        if not isinstance(self.foto_root, Path) or not isinstance(self.pdf_root, Path):
            raise TypeError("foto_root and pdf_root must be pathlib.Path")

    def foto_dir(self, specialty_slug: str) -> Path:
        return self.foto_root / specialty_slug

    def pdf_file(self, specialty_slug: str) -> Path:
        return self.pdf_root / specialty_slug / f"{specialty_slug}.pdf"
