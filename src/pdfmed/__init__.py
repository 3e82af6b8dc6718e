"""
PDFmed: medical-analysis photos per specialty, one fitted PDF per specialty.

`add` converts a source to JPEG under `foto/<specialty>/` and regenerates
`pdf/<specialty>/<specialty>.pdf`; `regen` rebuilds documents from what is on
disk. Stage packages do the work:

- `naming`: slugs, collision-free paths, analysis dates
- `convert_image`: conversion strategy chain
- `collect_items`: chronological ordering
- `layout_pdf`: fitted page layout and PDF writing
"""

from .config import PdfmedConfig
from .errors import ConversionExhausted, DirectoryMissing, InvalidArgument, PdfGenerationFailed, PdfmedError
from .module import AddResult, RegenSummary, SpecialtyOutcome, add_source, generate_for_specialty, regen

__all__ = [
    "AddResult",
    "ConversionExhausted",
    "DirectoryMissing",
    "InvalidArgument",
    "PdfGenerationFailed",
    "PdfmedConfig",
    "PdfmedError",
    "RegenSummary",
    "SpecialtyOutcome",
    "add_source",
    "generate_for_specialty",
    "regen",
]
