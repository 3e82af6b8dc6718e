from __future__ import annotations

import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pypdfium2 as pdfium
from PIL import Image

from collect_items.contracts import CollectedItem, DateSource
from layout_pdf.artifacts import serialize_layout_result
from layout_pdf.contracts import LayoutConfig
from layout_pdf.module import compute_placement, generate_pdf, read_pixel_size


def _page_count(pdf: Path) -> int:
    doc = pdfium.PdfDocument(str(pdf))
    try:
        return len(doc)
    finally:
        doc.close()


class TestComputePlacement(unittest.TestCase):
    def test_landscape_photo_on_a4(self) -> None:
        p = compute_placement(width_px=4000, height_px=3000, config=LayoutConfig())

        self.assertAlmostEqual(p.scale, 0.0475)
        self.assertAlmostEqual(p.width, 190.0)
        self.assertAlmostEqual(p.height, 142.5)
        self.assertAlmostEqual(p.x, 10.0)
        self.assertAlmostEqual(p.y, (297.0 - 142.5) / 2)
        self.assertGreater(p.y, 10.0)

    def test_tall_image_is_height_limited(self) -> None:
        p = compute_placement(width_px=1000, height_px=4000, config=LayoutConfig())

        self.assertAlmostEqual(p.height, 277.0)
        self.assertAlmostEqual(p.width, 69.25)
        self.assertAlmostEqual(p.y, 10.0)
        self.assertAlmostEqual(p.x, (210.0 - 69.25) / 2)

    def test_small_image_is_scaled_up_to_fit(self) -> None:
        p = compute_placement(width_px=19, height_px=10, config=LayoutConfig())
        self.assertAlmostEqual(p.width, 190.0)
        self.assertAlmostEqual(p.height, 100.0)

    def test_aspect_ratio_preserved_with_custom_geometry(self) -> None:
        cfg = LayoutConfig(page_width_mm=100, page_height_mm=100, margin_mm=0)
        p = compute_placement(width_px=300, height_px=200, config=cfg)
        self.assertAlmostEqual(p.width / p.height, 1.5)
        self.assertAlmostEqual(p.width, 100.0)

    def test_rejects_degenerate_sizes(self) -> None:
        with self.assertRaises(ValueError):
            compute_placement(width_px=0, height_px=10, config=LayoutConfig())

    def test_config_rejects_margins_that_fill_the_page(self) -> None:
        with self.assertRaises(ValueError):
            LayoutConfig(page_width_mm=20, page_height_mm=20, margin_mm=10)


class TestGeneratePdf(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)
        self.out = self.dir / "pdf" / "cardio" / "cardio.pdf"

    def _item(self, name: str, size: tuple[int, int] | None = (80, 60)) -> CollectedItem:
        p = self.dir / name
        if size is None:
            p.write_bytes(b"definitely not a jpeg")
        else:
            Image.new("RGB", size, (0, 128, 255)).save(p, format="JPEG", quality=85)
        return CollectedItem(path=p, name=name, effective_date=datetime(2024, 1, 1), date_source=DateSource.FILENAME)

    def test_header_only_probe(self) -> None:
        item = self._item("a.jpg", size=(123, 45))
        self.assertEqual(read_pixel_size(item.path), (123, 45))

    def test_one_page_per_readable_item_in_order(self) -> None:
        items = [self._item("b.jpg", (60, 80)), self._item("bad.jpg", None), self._item("a.jpg", (80, 60))]

        r = generate_pdf(items=items, out_file=self.out, title="cardio", config=LayoutConfig())

        self.assertTrue(r.ok)
        self.assertEqual(r.page_count, 2)
        self.assertEqual([p.image_name for p in r.pages], ["b.jpg", "a.jpg"])
        self.assertEqual([p.page_num for p in r.pages], [1, 2])
        self.assertEqual([w.code for w in r.warnings], ["LAYOUT_IMAGE_SIZE_UNREADABLE"])
        self.assertEqual(_page_count(self.out), 2)

    def test_page_size_matches_geometry(self) -> None:
        generate_pdf(items=[self._item("a.jpg")], out_file=self.out, title="cardio", config=LayoutConfig())

        doc = pdfium.PdfDocument(str(self.out))
        try:
            page = doc[0]
            width_pt, height_pt = page.get_size()
            page.close()
        finally:
            doc.close()
        self.assertAlmostEqual(width_pt, 210 / 25.4 * 72, places=1)
        self.assertAlmostEqual(height_pt, 297 / 25.4 * 72, places=1)

    def test_title_metadata(self) -> None:
        generate_pdf(items=[self._item("a.jpg")], out_file=self.out, title="cardio", config=LayoutConfig())

        doc = pdfium.PdfDocument(str(self.out))
        try:
            self.assertEqual(doc.get_metadata_dict().get("Title"), "cardio")
        finally:
            doc.close()

    def test_no_items_gives_empty_document_and_warning(self) -> None:
        r = generate_pdf(items=[], out_file=self.out, title="cardio", config=LayoutConfig())

        self.assertTrue(r.ok)
        self.assertEqual(r.page_count, 0)
        self.assertEqual([w.code for w in r.warnings], ["LAYOUT_NO_IMAGES"])
        self.assertTrue(self.out.is_file())
        self.assertIn(b"/Count 0", self.out.read_bytes())

    def test_failed_write_keeps_previous_document(self) -> None:
        self.out.parent.mkdir(parents=True)
        self.out.write_bytes(b"%PDF-previous%")

        with patch("layout_pdf.module._render", side_effect=OSError("disk full")):
            r = generate_pdf(items=[self._item("a.jpg")], out_file=self.out, title="cardio", config=LayoutConfig())

        self.assertFalse(r.ok)
        self.assertEqual([e.code for e in r.errors], ["LAYOUT_WRITE_FAILED"])
        self.assertEqual(self.out.read_bytes(), b"%PDF-previous%")
        self.assertEqual(sorted(p.name for p in self.out.parent.iterdir()), ["cardio.pdf"])

    def test_overwrites_on_success(self) -> None:
        self.out.parent.mkdir(parents=True)
        self.out.write_bytes(b"%PDF-previous%")

        generate_pdf(items=[self._item("a.jpg")], out_file=self.out, title="cardio", config=LayoutConfig())

        self.assertEqual(_page_count(self.out), 1)

    def test_manifest_bytes_stable_across_runs(self) -> None:
        items = [self._item("a.jpg", (400, 300))]

        r1 = generate_pdf(items=items, out_file=self.out, title="cardio", config=LayoutConfig())
        r2 = generate_pdf(items=items, out_file=self.out, title="cardio", config=LayoutConfig())

        self.assertEqual(serialize_layout_result(r1), serialize_layout_result(r2))
        self.assertIn('"out_file": "cardio.pdf"', serialize_layout_result(r1))


if __name__ == "__main__":
    unittest.main()
