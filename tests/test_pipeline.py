import io
import threading
import zipfile

import numpy as np
import pytest
from PIL import Image

from watermarker.config import WatermarkConfig
from watermarker.docs.export import build_zip
from watermarker.docs.model import Overlay, PageImage
from watermarker.errors import DocumentDecodeError, NoOverlaysError
from watermarker.pipeline.process import (
    print_progress_bar,
    process_pages,
    watermark_pdf_file,
)


class FakeRasterizer:
    """Stands in for PdfRasterizer: white pages of a fixed size."""

    def __init__(self, pages=2, size=(600, 800), fail_on=None):
        self.page_count = pages
        self.size = size
        self.fail_on = fail_on
        self.rendered = []
        self._lock = threading.Lock()

    def render(self, page_number):
        with self._lock:
            self.rendered.append(page_number)
        if page_number == self.fail_on:
            raise DocumentDecodeError(f"page {page_number} is broken")
        w, h = self.size
        pixels = np.full((h, w, 4), 255, dtype=np.uint8)
        # make pages distinguishable
        pixels[0, 0, :3] = 40 * page_number
        return PageImage(index=page_number, pixels=pixels)


def _overlay(w=100, h=50, rgb=(0, 0, 0)):
    pixels = np.zeros((h, w, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return Overlay(name="mark.png", pixels=pixels)


def _decode(data):
    return np.array(Image.open(io.BytesIO(data)))


def test_two_page_center_scenario():
    rasterizer = FakeRasterizer(pages=2, size=(600, 800))
    config = WatermarkConfig(opacity=0.5, scale=1.0, position="center")
    pages = process_pages(rasterizer, [_overlay()], config)

    assert [p.index for p in pages] == [1, 2]
    for page in pages:
        pixels = _decode(page.data)
        assert pixels.shape == (800, 600, 4)
        # draw lands on x in [250, 350), y in [375, 425)
        assert abs(int(pixels[400, 300, 0]) - 128) <= 1
        assert (pixels[374, 300] == 255).all()
        assert (pixels[400, 249] == 255).all()
        assert (pixels[425, 300] == 255).all()

    with zipfile.ZipFile(io.BytesIO(build_zip(pages))) as zf:
        assert zf.namelist() == ["page_1.png", "page_2.png"]


def test_top_right_scenario():
    rasterizer = FakeRasterizer(pages=1, size=(600, 800))
    config = WatermarkConfig(opacity=1.0, scale=1.0, position="topRight")
    (page,) = process_pages(rasterizer, [_overlay()], config)
    pixels = _decode(page.data)
    # x = 600 - 100 - 20 = 480, y = 20
    assert tuple(pixels[20, 480]) == (0, 0, 0, 255)
    assert tuple(pixels[69, 579]) == (0, 0, 0, 255)
    assert (pixels[19, 480] == 255).all()
    assert (pixels[20, 580] == 255).all()


def test_zero_overlays_rejected_before_rasterizing():
    rasterizer = FakeRasterizer()
    with pytest.raises(NoOverlaysError):
        process_pages(rasterizer, [], WatermarkConfig())
    assert rasterizer.rendered == []


def test_parallel_run_keeps_page_order():
    config = WatermarkConfig(opacity=0.5, scale=0.5, position="tile")
    overlays = [_overlay(40, 20, (255, 0, 0)), _overlay(30, 30, (0, 0, 255))]
    sequential = process_pages(FakeRasterizer(pages=5, size=(120, 160)), overlays, config)
    parallel = process_pages(FakeRasterizer(pages=5, size=(120, 160)), overlays, config, max_workers=4)
    assert [p.index for p in parallel] == [1, 2, 3, 4, 5]
    assert [p.data for p in parallel] == [p.data for p in sequential]
    # each page keeps its own content
    assert len({p.data for p in parallel}) == 5


@pytest.mark.parametrize("workers", [1, 3])
def test_page_failure_aborts_run(workers):
    rasterizer = FakeRasterizer(pages=4, size=(50, 50), fail_on=2)
    with pytest.raises(DocumentDecodeError):
        process_pages(rasterizer, [_overlay(10, 10)], WatermarkConfig(), max_workers=workers)


def test_watermark_pdf_file_checks_overlays_first(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("not an image")
    # the PDF does not exist: overlays must be rejected before it is opened
    with pytest.raises(NoOverlaysError):
        watermark_pdf_file(str(tmp_path / "missing.pdf"), [str(notes)])


def test_watermark_pdf_file_rejects_unknown_format(tmp_path):
    from watermarker.errors import ConfigError

    with pytest.raises(ConfigError):
        watermark_pdf_file(str(tmp_path / "doc.pdf"), [], out_format="tiff")


def test_print_progress_bar(capsys):
    print_progress_bar(1, 4)
    out = capsys.readouterr().out
    assert "[1/4]" in out
    print_progress_bar(4, 4)
    out = capsys.readouterr().out
    assert "[4/4]" in out and out.endswith("\n")
