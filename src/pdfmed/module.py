from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path

from collect_items.module import collect_items
from convert_image.contracts import ConvertResult, SourceKind
from convert_image.module import classify_source, convert_to_jpeg, ingest_pdf_pages, page_files_for_base
from layout_pdf.artifacts import write_layout_manifest_json
from layout_pdf.contracts import LayoutResult
from layout_pdf.module import generate_pdf
from naming.contracts import InvalidDateFormat
from naming.module import ensure_unique_path, parse_date, sanitize

from .config import PdfmedConfig
from .errors import ConversionExhausted, DirectoryMissing, InvalidArgument, PdfGenerationFailed, PdfmedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AddResult:
    specialty_slug: str
    artifacts: list[Path]
    conversion: ConvertResult
    layout: LayoutResult


@dataclass(frozen=True, slots=True)
class SpecialtyOutcome:
    specialty_slug: str
    ok: bool
    page_count: int = 0
    warnings: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RegenSummary:
    outcomes: list[SpecialtyOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def generated(self) -> list[str]:
        return [o.specialty_slug for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[str]:
        return [o.specialty_slug for o in self.outcomes if not o.ok]


def _slug(text: str | None, *, what: str) -> str:
    slug = sanitize(text or "")
    if slug == "":
        raise InvalidArgument(f"{what} must not be empty")
    return slug


def _set_analysis_mtime(path: Path, analysis_date: date) -> None:
    """
    Stamp the artifact with the analysis date instead of the ingestion time.
    """

    mtime = datetime.combine(analysis_date, time.min).timestamp()
    os.utime(path, (datetime.now().timestamp(), mtime))


def _pages_taken(path: Path) -> bool:
    return path.exists() or bool(page_files_for_base(out_dir=path.parent, base_name=path.stem))


def add_source(
    *,
    config: PdfmedConfig,
    source: Path,
    specialty: str,
    date_text: str,
    name: str | None = None,
    all_pages: bool = False,
) -> AddResult:
    """
    Ingest one source into a specialty and regenerate that specialty's PDF.

    The artifact is named `<name-slug>_<DD_MM_YYYY>[_NN].jpg` (`name` defaults to
    the specialty). With `all_pages`, a PDF source yields one artifact per page.
    """

    specialty_slug = _slug(specialty, what="specialty")
    try:
        analysis_date, token = parse_date(date_text)
    except InvalidDateFormat as e:
        raise InvalidArgument(str(e)) from e
    name_slug = _slug(name if name else specialty, what="name")

    if all_pages and classify_source(source) != SourceKind.PDF:
        raise InvalidArgument(f"--all-pages requires a PDF source, got: {source}")

    foto_dir = config.foto_dir(specialty_slug)
    foto_dir.mkdir(parents=True, exist_ok=True)
    config.pdf_file(specialty_slug).parent.mkdir(parents=True, exist_ok=True)

    wanted = foto_dir / f"{name_slug}_{token}.jpg"
    if all_pages:
        target = ensure_unique_path(wanted, is_taken=_pages_taken)
        result = ingest_pdf_pages(config=config.convert, pdf_file=source, out_dir=foto_dir, base_name=target.stem)
    else:
        target = ensure_unique_path(wanted)
        result = convert_to_jpeg(config=config.convert, source=source, destination=target)

    if not result.ok:
        lead = result.errors[0]
        raise ConversionExhausted(f"Could not convert {source} to JPEG: [{lead.code}] {lead.message}", result)

    artifacts = [Path(f) for f in result.output_files]
    for artifact in artifacts:
        _set_analysis_mtime(artifact, analysis_date)
        logger.info("Added: %s", artifact)

    layout = generate_for_specialty(config=config, specialty_slug=specialty_slug)
    return AddResult(specialty_slug=specialty_slug, artifacts=artifacts, conversion=result, layout=layout)


def generate_for_specialty(
    *, config: PdfmedConfig, specialty_slug: str, manifest_dir: Path | None = None
) -> LayoutResult:
    """
    Rebuild `<pdf_root>/<slug>/<slug>.pdf` from the JPEGs currently in
    `<foto_root>/<slug>/`, in chronological order.
    """

    src_dir = config.foto_dir(specialty_slug)
    if not src_dir.is_dir():
        raise DirectoryMissing(f"Source directory not found: {src_dir}")

    items = collect_items(src_dir)
    if not items:
        logger.warning("No JPG images in %s to build a PDF from", src_dir)

    result = generate_pdf(
        items=items,
        out_file=config.pdf_file(specialty_slug),
        title=specialty_slug,
        config=config.layout,
    )
    if manifest_dir is not None:
        write_layout_manifest_json(result=result, out_manifest=manifest_dir / f"{specialty_slug}.layout.json")
    if not result.ok:
        raise PdfGenerationFailed(f"Could not write PDF for {specialty_slug}: {result.errors[0].message}", result)
    return result


def _specialty_slugs(foto_root: Path) -> list[str]:
    return sorted(p.name for p in foto_root.iterdir() if p.is_dir())


def regen(*, config: PdfmedConfig, specialty: str | None = None, manifest_dir: Path | None = None) -> RegenSummary:
    """
    Regenerate one specialty (failures raise) or all of them (failures are
    isolated per specialty and reported in the summary).
    """

    if specialty is not None:
        slug = _slug(specialty, what="specialty")
        result = generate_for_specialty(config=config, specialty_slug=slug, manifest_dir=manifest_dir)
        return RegenSummary(
            outcomes=[SpecialtyOutcome(slug, ok=True, page_count=result.page_count, warnings=len(result.warnings))]
        )

    if not config.foto_root.is_dir():
        logger.info("%s/ does not exist; nothing to regenerate", config.foto_root)
        return RegenSummary()

    slugs = _specialty_slugs(config.foto_root)
    if not slugs:
        logger.info("No specialties in %s/; nothing to regenerate", config.foto_root)
        return RegenSummary()

    outcomes: list[SpecialtyOutcome] = []
    for slug in slugs:
        logger.info("Generating PDF for %s...", slug)
        try:
            result = generate_for_specialty(config=config, specialty_slug=slug, manifest_dir=manifest_dir)
        except (PdfmedError, OSError) as e:
            logger.error("PDF generation failed for %s: %s", slug, e)
            outcomes.append(SpecialtyOutcome(slug, ok=False, error=str(e)))
            continue
        outcomes.append(
            SpecialtyOutcome(slug, ok=True, page_count=result.page_count, warnings=len(result.warnings))
        )

    summary = RegenSummary(outcomes=outcomes)
    logger.info("Regenerated %d/%d specialties", len(summary.generated), len(outcomes))
    if summary.failed:
        logger.error("Failed: %s", ", ".join(summary.failed))
    return summary
