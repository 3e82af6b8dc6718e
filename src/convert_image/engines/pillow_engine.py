from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps

from ..contracts import AttemptOutcome, ConvertConfig, SourceItem, SourceKind
from .base import ConversionStrategy


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """
    JPEG has no alpha channel: composite transparent images onto white.
    """

    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


class PillowStrategy(ConversionStrategy):
    """
    In-process decode + JPEG re-encode. Covers JPEG/PNG/GIF/WebP/BMP/TIFF.
    """

    def name(self) -> str:
        return "pillow"

    def attempt(self, *, source: SourceItem, destination: Path, config: ConvertConfig) -> AttemptOutcome:
        if source.kind in (SourceKind.PDF, SourceKind.VIDEO):
            return self._skip(
                "CONVERT_NOT_APPLICABLE",
                "Built-in decoder does not handle this source kind",
                {"kind": source.kind.value},
            )

        try:
            with Image.open(source.path) as img:
                # First frame only for animated inputs; honour EXIF orientation like -auto-orient.
                oriented = ImageOps.exif_transpose(img)
                rgb = flatten_to_rgb(oriented)
                rgb.save(destination, format="JPEG", quality=config.jpeg_quality)
        except Exception as e:
            return self._failure(
                "CONVERT_DECODE_FAILED",
                "Built-in decoder could not convert the image",
                {"error": repr(e)},
            )

        return self._success()
