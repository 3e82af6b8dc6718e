from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class SourceKind(str, Enum):
    """
    Input classification, decided by file extension only.
    """

    RASTER = "raster"
    VIDEO = "video"
    PDF = "pdf"
    HEIF = "heif"


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    SKIP = "skip"  # strategy not applicable, or its tool is not on PATH
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class ConvertError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class SourceItem:
    path: Path
    kind: SourceKind


@dataclass(frozen=True, slots=True)
class AttemptOutcome:
    strategy: str
    status: AttemptStatus
    error: ConvertError | None = None  # set for FAILURE; for SKIP it holds the reason


@dataclass(frozen=True, slots=True)
class ConvertResult:
    """
    Outcome of one conversion call.

    On failure `ok` is False, `output_files` is empty and no file is left at the
    destination. `errors[0]` is the leading error; every strategy that ran is
    listed in `attempts`, in chain order.
    """

    ok: bool
    source: str
    kind: SourceKind
    output_files: list[str]
    attempts: list[AttemptOutcome]
    errors: list[ConvertError]
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ConvertConfig:
    """
    Conversion parameters, shared by every strategy in the chain.
    """

    jpeg_quality: int = 85
    pdf_density: int = 300  # DPI used when rasterizing PDF pages
    imagemagick_commands: tuple[str, ...] = ("magick", "convert")  # preference order
    ffmpeg_command: str = "ffmpeg"
    heif_command: str = "heif-convert"
    enable_pdfium_fallback: bool = True

    def __post_init__(self) -> None:
        if not (1 <= self.jpeg_quality <= 100):
            raise ValueError("jpeg_quality must be within [1, 100]")
        if self.pdf_density <= 0:
            raise ValueError("pdf_density must be a positive integer")
        if not self.imagemagick_commands:
            raise ValueError("imagemagick_commands must name at least one command")
