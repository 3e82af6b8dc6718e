from __future__ import annotations

import io
import subprocess
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pypdfium2 as pdfium
from PIL import Image

from collect_items.module import collect_items
from pdfmed.cli import main
from pdfmed.config import PdfmedConfig
from pdfmed.errors import ConversionExhausted, DirectoryMissing, InvalidArgument
from pdfmed.module import add_source, generate_for_specialty, regen


def _page_count(pdf: Path) -> int:
    doc = pdfium.PdfDocument(str(pdf))
    try:
        return len(doc)
    finally:
        doc.close()


class _WorkspaceCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.inbox = self.root / "inbox"
        self.inbox.mkdir()
        self.config = PdfmedConfig(foto_root=self.root / "foto", pdf_root=self.root / "pdf")

    def _photo(self, name: str, size: tuple[int, int] = (64, 48)) -> Path:
        p = self.inbox / name
        Image.new("RGB", size, (200, 30, 30)).save(p)
        return p


class TestAdd(_WorkspaceCase):
    def test_pages_follow_analysis_date_not_ingestion_order(self) -> None:
        for i, d in enumerate(("03-01-2024", "01-01-2024", "02-01-2024")):
            add_source(config=self.config, source=self._photo(f"p{i}.png"), specialty="Endocrinology", date_text=d)

        result = regen(config=self.config, specialty="Endocrinology")

        self.assertTrue(result.ok)
        pdf = self.root / "pdf" / "Endocrinology" / "Endocrinology.pdf"
        self.assertEqual(_page_count(pdf), 3)
        items = collect_items(self.root / "foto" / "Endocrinology")
        self.assertEqual(
            [i.name for i in items],
            [
                "Endocrinology_01_01_2024.jpg",
                "Endocrinology_02_01_2024.jpg",
                "Endocrinology_03_01_2024.jpg",
            ],
        )

    def test_add_regenerates_and_reports_layout(self) -> None:
        r = add_source(
            config=self.config,
            source=self._photo("a.bmp"),
            specialty="Foot &  Ankle",
            date_text="15/03/2024",
            name="x ray",
        )

        self.assertEqual(r.specialty_slug, "Foot_&-Ankle")
        self.assertEqual([a.name for a in r.artifacts], ["x_ray_15_03_2024.jpg"])
        self.assertEqual(r.layout.page_count, 1)
        self.assertEqual([p.image_name for p in r.layout.pages], ["x_ray_15_03_2024.jpg"])

    def test_same_name_and_date_gets_collision_suffix(self) -> None:
        for _ in range(3):
            add_source(config=self.config, source=self._photo("a.png"), specialty="ENT", date_text="01.02.2024")

        names = sorted(p.name for p in (self.root / "foto" / "ENT").iterdir())
        self.assertEqual(names, ["ENT_01_02_2024.jpg", "ENT_01_02_2024_02.jpg", "ENT_01_02_2024_03.jpg"])

    def test_mtime_set_to_analysis_date(self) -> None:
        r = add_source(config=self.config, source=self._photo("a.png"), specialty="ENT", date_text="07-08-2023")

        mtime = datetime.fromtimestamp(r.artifacts[0].stat().st_mtime)
        self.assertEqual(mtime, datetime(2023, 8, 7))

    def test_invalid_date(self) -> None:
        with self.assertRaises(InvalidArgument):
            add_source(config=self.config, source=self._photo("a.png"), specialty="ENT", date_text="2024-01-01")
        self.assertFalse((self.root / "foto").exists())

    def test_blank_specialty(self) -> None:
        with self.assertRaises(InvalidArgument):
            add_source(config=self.config, source=self._photo("a.png"), specialty="  ", date_text="01-01-2024")

    def test_all_pages_requires_pdf(self) -> None:
        with self.assertRaises(InvalidArgument):
            add_source(
                config=self.config,
                source=self._photo("a.png"),
                specialty="ENT",
                date_text="01-01-2024",
                all_pages=True,
            )

    def test_unconvertible_source_leaves_nothing(self) -> None:
        src = self.inbox / "broken.png"
        src.write_bytes(b"garbage")

        with patch("convert_image.engines.cli_tools.shutil.which", return_value=None):
            with self.assertRaises(ConversionExhausted) as ctx:
                add_source(config=self.config, source=src, specialty="ENT", date_text="01-01-2024")

        self.assertEqual(ctx.exception.result.errors[0].code, "CONVERT_DECODE_FAILED")
        self.assertEqual(list((self.root / "foto" / "ENT").iterdir()), [])
        self.assertFalse((self.root / "pdf" / "ENT" / "ENT.pdf").exists())

    def test_multi_page_pdf(self) -> None:
        pdf = self.inbox / "scan.pdf"
        pdf.write_bytes(b"%PDF-FAKE%")

        def rasterize(cmd, **kwargs):
            for i in range(2):
                out = Path(cmd[-1].replace("%03d", f"{i:03d}"))
                Image.new("RGB", (30, 40), "white").save(out, format="JPEG")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        which = lambda n: "/usr/bin/magick" if n == "magick" else None  # noqa: E731
        with patch("convert_image.engines.cli_tools.shutil.which", side_effect=which), patch(
            "convert_image.engines.cli_tools.subprocess.run", side_effect=rasterize
        ):
            first = add_source(
                config=self.config, source=pdf, specialty="Cardio", date_text="01-01-2024", name="ecg", all_pages=True
            )
            second = add_source(
                config=self.config, source=pdf, specialty="Cardio", date_text="01-01-2024", name="ecg", all_pages=True
            )

        self.assertEqual([a.name for a in first.artifacts], ["ecg_01_01_2024_000.jpg", "ecg_01_01_2024_001.jpg"])
        self.assertEqual([a.name for a in second.artifacts], ["ecg_01_01_2024_02_000.jpg", "ecg_01_01_2024_02_001.jpg"])
        self.assertEqual(second.layout.page_count, 4)


class TestRegen(_WorkspaceCase):
    def test_missing_directory_for_single_specialty(self) -> None:
        with self.assertRaises(DirectoryMissing):
            regen(config=self.config, specialty="Nope")

    def test_empty_specialty_yields_zero_page_document(self) -> None:
        (self.root / "foto" / "Empty").mkdir(parents=True)

        r = generate_for_specialty(config=self.config, specialty_slug="Empty")

        self.assertTrue(r.ok)
        self.assertEqual(r.page_count, 0)
        pdf = self.root / "pdf" / "Empty" / "Empty.pdf"
        self.assertTrue(pdf.is_file())
        self.assertIn(b"/Count 0", pdf.read_bytes())

    def test_nothing_to_do_without_foto_root(self) -> None:
        summary = regen(config=self.config)
        self.assertTrue(summary.ok)
        self.assertEqual(summary.outcomes, [])

    def test_failures_isolated_per_specialty(self) -> None:
        for spec in ("A", "B", "C"):
            add_source(config=self.config, source=self._photo("a.png"), specialty=spec, date_text="01-01-2024")

        def flaky(directory: Path):
            if directory.name == "B":
                raise PermissionError(f"cannot read {directory}")
            return collect_items(directory)

        with patch("pdfmed.module.collect_items", side_effect=flaky):
            summary = regen(config=self.config)

        self.assertFalse(summary.ok)
        self.assertEqual(summary.generated, ["A", "C"])
        self.assertEqual(summary.failed, ["B"])

    def test_manifest_dir(self) -> None:
        add_source(config=self.config, source=self._photo("a.png"), specialty="ENT", date_text="01-01-2024")

        regen(config=self.config, manifest_dir=self.root / "manifests")

        self.assertTrue((self.root / "manifests" / "ENT.layout.json").is_file())


class TestCli(_WorkspaceCase):
    def _argv(self, *rest: str) -> list[str]:
        return ["--foto-root", str(self.root / "foto"), "--pdf-root", str(self.root / "pdf"), "-q", *rest]

    def test_add_then_regen(self) -> None:
        src = self._photo("a.png")

        self.assertEqual(main(self._argv("add", "-p", str(src), "-s", "Endo", "-d", "01-01-2024")), 0)
        self.assertEqual(main(self._argv("regen")), 0)
        self.assertEqual(main(self._argv("regen", "-s", "Endo")), 0)
        self.assertEqual(_page_count(self.root / "pdf" / "Endo" / "Endo.pdf"), 1)

    def test_missing_required_flag_exits_2(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(self._argv("add", "-p", "x.png", "-s", "Endo"))
        self.assertEqual(ctx.exception.code, 2)

    def test_bad_date_exits_2(self) -> None:
        src = self._photo("a.png")
        with self.assertRaises(SystemExit) as ctx:
            main(self._argv("add", "-p", str(src), "-s", "Endo", "-d", "1/1/24"))
        self.assertEqual(ctx.exception.code, 2)

    def test_regen_unknown_specialty_fails(self) -> None:
        self.assertEqual(main(self._argv("regen", "-s", "Nope")), 2)

    def test_help_subcommand_prints_usage(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = main(["help"])

        self.assertEqual(code, 0)
        self.assertIn("usage: pdfmed", out.getvalue())
        self.assertIn("regen", out.getvalue())


if __name__ == "__main__":
    unittest.main()
