import io

import numpy as np
import pytest
from PIL import Image

from watermarker.errors import EncodeError, ImageDecodeError, NoOverlaysError
from watermarker.image.processing import (
    encode_page,
    is_image_path,
    load_overlay,
    load_overlays,
    read_overlay_files,
)


def _png_bytes(w, h, color=(255, 0, 0, 128)):
    buf = io.BytesIO()
    Image.new("RGBA", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


def _jpeg_bytes(w, h):
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (10, 20, 30)).save(buf, format="JPEG")
    return buf.getvalue()


def test_load_overlay_keeps_intrinsic_size():
    overlay = load_overlay(_png_bytes(100, 50), name="logo.png")
    assert overlay.name == "logo.png"
    assert (overlay.width, overlay.height) == (100, 50)
    assert overlay.pixels.shape == (50, 100, 4)
    assert overlay.pixels.dtype == np.uint8
    assert tuple(overlay.pixels[0, 0]) == (255, 0, 0, 128)


def test_load_overlay_is_read_only():
    overlay = load_overlay(_png_bytes(4, 4))
    with pytest.raises(ValueError):
        overlay.pixels[0, 0, 0] = 1


def test_load_overlay_converts_rgb_to_opaque_rgba():
    overlay = load_overlay(_jpeg_bytes(30, 20))
    assert overlay.pixels.shape == (20, 30, 4)
    assert (overlay.pixels[..., 3] == 255).all()


def test_load_overlay_rejects_corrupt_input():
    with pytest.raises(ImageDecodeError):
        load_overlay(b"definitely not an image", name="bad.png")
    with pytest.raises(ImageDecodeError):
        load_overlay(b"")


def test_load_overlays_preserves_order():
    items = [(f"o{i}.png", _png_bytes(10 + i, 5)) for i in range(6)]
    overlays = load_overlays(items, max_workers=4)
    assert [o.name for o in overlays] == [name for name, _ in items]
    assert [o.width for o in overlays] == [10 + i for i in range(6)]


def test_load_overlays_propagates_decode_error():
    items = [("good.png", _png_bytes(4, 4)), ("bad.png", b"nope")]
    with pytest.raises(ImageDecodeError):
        load_overlays(items, max_workers=2)


def test_load_overlays_requires_at_least_one():
    with pytest.raises(NoOverlaysError):
        load_overlays([])


def test_read_overlay_files_skips_non_images(tmp_path):
    logo = tmp_path / "logo.png"
    logo.write_bytes(_png_bytes(8, 8))
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    items = read_overlay_files([str(notes), str(logo)])
    assert [name for name, _ in items] == ["logo.png"]

    with pytest.raises(NoOverlaysError):
        read_overlay_files([str(notes)])


def test_read_overlay_files_missing_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_overlay_files([str(tmp_path / "missing.png")])


def test_encode_page_is_lossless():
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(17, 23, 4), dtype=np.uint8)
    data = encode_page(pixels)
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    decoded = np.array(Image.open(io.BytesIO(data)))
    assert (decoded == pixels).all()


def test_encode_page_rejects_unsupported_channels():
    with pytest.raises(EncodeError):
        encode_page(np.zeros((4, 4, 5), dtype=np.uint8))


@pytest.mark.parametrize("name", ["logo.png", "photo.JPG", "mark.webp", "anim.gif"])
def test_is_image_path_accepts_image_types(name):
    assert is_image_path(name)


@pytest.mark.parametrize("name", ["notes.txt", "doc.pdf", "noext"])
def test_is_image_path_rejects_other_types(name):
    assert not is_image_path(name)
