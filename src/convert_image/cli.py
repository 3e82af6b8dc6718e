from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .artifacts import serialize_convert_result
from .contracts import ConvertConfig
from .module import convert_to_jpeg, ingest_pdf_pages


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdfmed-convert",
        description="Convert one photo, video, HEIF or PDF into JPEG and print the JSON result.",
    )
    p.add_argument("--source", required=True, type=Path, help="Input file.")
    p.add_argument(
        "--out",
        required=True,
        type=Path,
        help="Destination .jpg file, or the output directory with --all-pages.",
    )
    p.add_argument(
        "--all-pages",
        action="store_true",
        help="PDF only: write every page as <base-name>_NNN.jpg into --out.",
    )
    p.add_argument("--base-name", default=None, help="Page file prefix for --all-pages (default: source stem).")
    p.add_argument("--quality", type=int, default=85, help="JPEG quality (1..100).")
    p.add_argument("--density", type=int, default=300, help="DPI used to rasterize PDF pages.")
    p.add_argument(
        "--no-pdfium",
        action="store_true",
        help="Do not fall back to in-process PDF rendering.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = ConvertConfig(
        jpeg_quality=args.quality,
        pdf_density=args.density,
        enable_pdfium_fallback=not args.no_pdfium,
    )

    if args.all_pages:
        result = ingest_pdf_pages(
            config=config,
            pdf_file=args.source,
            out_dir=args.out,
            base_name=args.base_name or args.source.stem,
        )
    else:
        result = convert_to_jpeg(config=config, source=args.source, destination=args.out)

    sys.stdout.write(serialize_convert_result(result))
    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
