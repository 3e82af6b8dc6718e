from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from .contracts import (
    AttemptOutcome,
    AttemptStatus,
    ConvertConfig,
    ConvertError,
    ConvertResult,
    SourceItem,
    SourceKind,
)
from .engines import (
    ConversionStrategy,
    FfmpegFrameStrategy,
    HeifConvertStrategy,
    ImageMagickStrategy,
    Pdfium2FirstPageStrategy,
    PillowStrategy,
)
from .engines.cli_tools import (
    STDERR_TAIL_CHARS,
    have_command,
    imagemagick_args,
    run_tool,
    templated_args,
    tool_error_detail,
)

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv", ".mpeg", ".mpg", ".m4v", ".webm"})
HEIF_EXTENSIONS = frozenset({".heic", ".heif", ".heics"})

PAGE_INDEX_DIGITS = 3


def classify_source(path: Path) -> SourceKind:
    ext = path.suffix.lower()
    if ext in VIDEO_EXTENSIONS:
        return SourceKind.VIDEO
    if ext == ".pdf":
        return SourceKind.PDF
    if ext in HEIF_EXTENSIONS:
        return SourceKind.HEIF
    return SourceKind.RASTER


def _strategy_chain(config: ConvertConfig, kind: SourceKind) -> list[ConversionStrategy]:
    imagemagick = [ImageMagickStrategy(cmd) for cmd in config.imagemagick_commands]
    ffmpeg = FfmpegFrameStrategy(config.ffmpeg_command)

    chain: list[ConversionStrategy] = [PillowStrategy()]
    if kind == SourceKind.VIDEO:
        # ffmpeg extracts exactly one frame; ImageMagick writes one file per frame.
        chain.extend([ffmpeg, *imagemagick])
    else:
        chain.extend([*imagemagick, ffmpeg])
    chain.append(HeifConvertStrategy(config.heif_command))
    chain.append(Pdfium2FirstPageStrategy())
    return chain


def _clear_staging(staging_dir: Path) -> None:
    """
    Drop whatever a failed attempt wrote, including numbered sibling frames.
    """

    for p in staging_dir.iterdir():
        logger.debug("Removing partial output %s", p.name)
        if p.is_dir():
            shutil.rmtree(p)
        else:
            p.unlink()


def _leading_error(attempts: list[AttemptOutcome]) -> ConvertError:
    """
    First real failure in chain order; if every strategy was skipped, the skip
    reason of the last candidate.
    """

    for a in attempts:
        if a.status == AttemptStatus.FAILURE and a.error is not None:
            return a.error

    tried = [a.strategy for a in attempts]
    last_reason = attempts[-1].error if attempts else None
    return ConvertError(
        code="CONVERT_NO_TOOL_AVAILABLE",
        message="No conversion strategy was able to run for this source",
        detail={
            "strategies": tried,
            "last_skip": None if last_reason is None else {"code": last_reason.code, "message": last_reason.message},
        },
    )


def convert_to_jpeg(*, config: ConvertConfig, source: Path, destination: Path) -> ConvertResult:
    """
    Convert one input (photo, video, HEIF, or PDF first page) into a JPEG at
    `destination`, trying each strategy in order until one succeeds.

    Strategies write into a private staging directory next to `destination`;
    only a finished JPEG is moved into place, so a failed run leaves
    `destination` (and anything already there) untouched.
    """

    kind = classify_source(source)
    meta = {"jpeg_quality": config.jpeg_quality, "pdf_density": config.pdf_density}

    if not source.is_file():
        return ConvertResult(
            ok=False,
            source=str(source),
            kind=kind,
            output_files=[],
            attempts=[],
            errors=[
                ConvertError(
                    code="CONVERT_INPUT_NOT_FOUND",
                    message="Input file not found",
                    detail={"source": str(source)},
                )
            ],
            meta=meta,
        )

    destination.parent.mkdir(parents=True, exist_ok=True)
    item = SourceItem(path=source, kind=kind)

    staging_dir = Path(tempfile.mkdtemp(dir=destination.parent, prefix=f".{destination.name}."))
    staged = staging_dir / destination.name

    attempts: list[AttemptOutcome] = []
    try:
        for strategy in _strategy_chain(config, kind):
            outcome = strategy.attempt(source=item, destination=staged, config=config)
            attempts.append(outcome)

            if outcome.status == AttemptStatus.SUCCESS:
                os.replace(staged, destination)
                logger.info("Converted %s -> %s via %s", source.name, destination, outcome.strategy)
                return ConvertResult(
                    ok=True,
                    source=str(source),
                    kind=kind,
                    output_files=[str(destination)],
                    attempts=attempts,
                    errors=[],
                    meta={**meta, "strategy": outcome.strategy},
                )

            if outcome.status == AttemptStatus.FAILURE:
                _clear_staging(staging_dir)
                logger.debug("Strategy %s failed for %s: %s", outcome.strategy, source.name, outcome.error)
    finally:
        shutil.rmtree(staging_dir)

    return ConvertResult(
        ok=False,
        source=str(source),
        kind=kind,
        output_files=[],
        attempts=attempts,
        errors=[_leading_error(attempts)],
        meta=meta,
    )


def page_output_pattern(base_name: str) -> re.Pattern[str]:
    return re.compile(re.escape(base_name) + r"_[0-9]{%d}\.jpg" % PAGE_INDEX_DIGITS)


def page_files_for_base(*, out_dir: Path, base_name: str) -> list[Path]:
    """
    Existing per-page outputs for `base_name`, lexicographically sorted.
    """

    if not out_dir.is_dir():
        return []
    pattern = page_output_pattern(base_name)
    return sorted(p for p in out_dir.iterdir() if p.is_file() and pattern.fullmatch(p.name))


def _first_available_imagemagick(config: ConvertConfig) -> str | None:
    for cmd in config.imagemagick_commands:
        if have_command(cmd):
            return cmd
    return None


def ingest_pdf_pages(*, config: ConvertConfig, pdf_file: Path, out_dir: Path, base_name: str) -> ConvertResult:
    """
    Rasterize every page of `pdf_file` into `<out_dir>/<base_name>_NNN.jpg`
    with a single ImageMagick call.

    Zero output files after a clean exit is reported as a failure: it means the
    tool failed silently, not that the document has no pages.
    """

    kind = classify_source(pdf_file)
    meta = {"jpeg_quality": config.jpeg_quality, "pdf_density": config.pdf_density, "base_name": base_name}

    def _failed(code: str, message: str, detail: dict | None = None) -> ConvertResult:
        return ConvertResult(
            ok=False,
            source=str(pdf_file),
            kind=kind,
            output_files=[],
            attempts=[],
            errors=[ConvertError(code=code, message=message, detail=detail)],
            meta=meta,
        )

    if kind != SourceKind.PDF:
        return _failed("CONVERT_INPUT_NOT_PDF", "Multi-page ingestion only accepts PDFs (by .pdf extension)")
    if not pdf_file.is_file():
        return _failed("CONVERT_INPUT_NOT_FOUND", "Input PDF not found", {"source": str(pdf_file)})

    tool = _first_available_imagemagick(config)
    if tool is None:
        return _failed(
            "CONVERT_TOOL_UNAVAILABLE",
            "No ImageMagick binary found on PATH",
            {"expected_commands": list(config.imagemagick_commands)},
        )

    out_dir.mkdir(parents=True, exist_ok=True)
    existing = page_files_for_base(out_dir=out_dir, base_name=base_name)
    if existing:
        return _failed(
            "CONVERT_PAGE_OUTPUT_EXISTS",
            "Page files for this base name already exist",
            {"existing": [p.name for p in existing]},
        )

    # ImageMagick expands %03d to the page index; a literal % must be doubled.
    output_pattern = out_dir / f"{base_name.replace('%', '%%')}_%0{PAGE_INDEX_DIGITS}d.jpg"
    args = [*imagemagick_args(source=pdf_file, kind=kind, config=config, all_pages=True), str(output_pattern)]
    cmd = [tool, *args]
    template = [tool, *templated_args(args, source=pdf_file, destination=output_pattern)]

    try:
        proc = run_tool(cmd)
    except OSError as e:
        return _failed("CONVERT_TOOL_FAILED", f"{tool} could not be started", {"command_template": template, "error": repr(e)})

    produced = page_files_for_base(out_dir=out_dir, base_name=base_name)

    if proc.returncode != 0:
        for p in produced:
            p.unlink()
        return _failed(
            "CONVERT_TOOL_FAILED",
            f"{tool} returned a non-zero exit code",
            tool_error_detail(command_template=template, proc=proc),
        )

    if not produced:
        return _failed(
            "CONVERT_NO_PAGES_PRODUCED",
            f"{tool} exited cleanly but produced no page images",
            {"command_template": template, "stderr": (proc.stderr or "")[-STDERR_TAIL_CHARS:]},
        )

    logger.info("Rasterized %d page(s) of %s into %s", len(produced), pdf_file.name, out_dir)
    return ConvertResult(
        ok=True,
        source=str(pdf_file),
        kind=kind,
        output_files=[str(p) for p in produced],
        attempts=[],
        errors=[],
        meta={**meta, "strategy": tool, "page_count": len(produced)},
    )
