from __future__ import annotations

import argparse
import logging
from pathlib import Path

from convert_image.contracts import ConvertConfig
from naming.contracts import TooManyCollisions

from .config import FOTO_DIR_NAME, PDF_DIR_NAME, PdfmedConfig
from .errors import InvalidArgument, PdfmedError
from .module import add_source, regen

logger = logging.getLogger("pdfmed.cli")

EPILOG = """\
examples:
  pdfmed add -p /path/to/IMG_001.heic -s "Endocrinology" -d 01-01-2024
  pdfmed add -p scan.pdf -s Cardiology -d 15.03.2024 -n ecg --all-pages
  pdfmed regen
  pdfmed regen -s "Endocrinology"
  pdfmed help
"""


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdfmed",
        description="Keep medical-analysis photos per specialty and build one PDF per specialty.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--foto-root", type=Path, default=Path(FOTO_DIR_NAME), help="Source image root (default: foto).")
    p.add_argument("--pdf-root", type=Path, default=Path(PDF_DIR_NAME), help="Generated PDF root (default: pdf).")
    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")

    sub = p.add_subparsers(dest="command", required=True, metavar="{add,regen,help}")

    add = sub.add_parser("add", help="Convert a photo to JPG, store it, and regenerate the specialty PDF.")
    add.add_argument("-p", "--path", required=True, type=Path, help="Photo, video, HEIC or PDF to ingest.")
    add.add_argument("-s", "--spec", required=True, help="Specialty, e.g. Endocrinology.")
    add.add_argument("-d", "--date", required=True, help="Analysis date, DD-MM-YYYY (also DD.MM.YYYY, DD/MM/YYYY).")
    add.add_argument("-n", "--name", default=None, help="Filename prefix (default: the specialty).")
    add.add_argument("--all-pages", action="store_true", help="PDF source: ingest every page, not just the first.")
    add.add_argument("--quality", type=int, default=85, help="JPEG quality (1..100).")

    rg = sub.add_parser("regen", help="Regenerate PDFs for one or all specialties.")
    rg.add_argument("-s", "--spec", default=None, help="Only this specialty (default: all).")
    rg.add_argument(
        "--manifest-dir",
        type=Path,
        default=None,
        help="Also write a JSON layout manifest per specialty into this directory.",
    )

    sub.add_parser("help", help="Show this help message and exit.")
    return p


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "help":
        parser.print_help()
        return 0
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        if args.command == "add":
            config = PdfmedConfig(
                foto_root=args.foto_root,
                pdf_root=args.pdf_root,
                convert=ConvertConfig(jpeg_quality=args.quality),
            )
            add_source(
                config=config,
                source=args.path,
                specialty=args.spec,
                date_text=args.date,
                name=args.name,
                all_pages=args.all_pages,
            )
            logger.info("PDF regenerated.")
            return 0

        config = PdfmedConfig(foto_root=args.foto_root, pdf_root=args.pdf_root)
        summary = regen(config=config, specialty=args.spec, manifest_dir=args.manifest_dir)
        if summary.ok:
            logger.info("Done.")
            return 0
        return 2
    except (InvalidArgument, ValueError) as e:
        parser.error(str(e))
    except (PdfmedError, TooManyCollisions, OSError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
