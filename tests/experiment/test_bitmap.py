"""Tests for the bitmap producers."""

import asyncio

import numpy as np
import pytest
from PIL import Image

from swarmscope.experiment.bitmap import (
    Bitmap,
    BitmapError,
    ImageBitmapSource,
    QrBitmapSource,
    TextBitmapSource,
    add_quiet_zone,
    make_source,
)
from swarmscope.experiment.sampler import sample_targets


class TestBitmap:
    def test_from_image(self):
        img = Image.new("RGB", (30, 20), (255, 0, 0))
        bmp = Bitmap.from_image(img)
        assert (bmp.width, bmp.height) == (30, 20)
        assert bmp.rgba.shape == (20, 30, 4)
        assert bmp.rgba.dtype == np.uint8
        assert tuple(bmp.rgba[0, 0]) == (255, 0, 0, 255)

    def test_from_array_rejects_rgb(self):
        with pytest.raises(BitmapError):
            Bitmap.from_array(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_pixels_read_only(self):
        bmp = Bitmap.from_image(Image.new("RGBA", (4, 4)))
        with pytest.raises(ValueError):
            bmp.rgba[0, 0, 0] = 1

    def test_from_array_read_only(self):
        src = np.zeros((4, 4, 4), dtype=np.uint8)
        bmp = Bitmap.from_array(src)
        with pytest.raises(ValueError):
            bmp.rgba[0, 0, 0] = 1
        src[0, 0, 0] = 7  # caller keeps a writable buffer
        assert bmp.rgba[0, 0, 0] == 0


class TestQuietZone:
    def test_border_size(self):
        img = Image.new("RGBA", (100, 50), (255, 255, 255, 255))
        out = add_quiet_zone(img, fraction=0.1)
        assert out.size == (110, 60)  # border = round(50 * 0.1) = 5

    def test_border_is_black(self):
        img = Image.new("RGBA", (100, 100), (255, 255, 255, 255))
        arr = np.array(add_quiet_zone(img))
        assert tuple(arr[0, 0, :3]) == (0, 0, 0)
        assert tuple(arr[50, 50, :3]) == (255, 255, 255)


class TestTextBitmapSource:
    def test_render_produces_bright_pixels(self):
        source = TextBitmapSource(size=128)
        bmp = source.render("HI")
        assert bmp.width == bmp.height
        assert bmp.width > 128  # quiet zone added
        pts = sample_targets(bmp.rgba, threshold=180, stride=2, jitter=0.0)
        assert len(pts) > 0

    def test_corners_stay_dark(self):
        bmp = TextBitmapSource(size=128).render("HELLO WORLD")
        assert bmp.rgba[0, 0, :3].max() == 0
        assert bmp.rgba[-1, -1, :3].max() == 0

    def test_async_call(self):
        bmp = asyncio.run(TextBitmapSource(size=64)("x"))
        assert isinstance(bmp, Bitmap)

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_blank_text_fails(self, text):
        with pytest.raises(BitmapError):
            TextBitmapSource(size=64).render(text)

    def test_long_text_wraps(self):
        source = TextBitmapSource(size=128, font_size=20)
        bmp = source.render("a rather long line of words that cannot fit")
        bright_rows = np.nonzero(bmp.rgba[..., 0].max(axis=1) > 128)[0]
        # Wrapped text spans more vertical space than one line of glyphs
        assert bright_rows.max() - bright_rows.min() > 40


class TestImageBitmapSource:
    def test_loads_file(self, tmp_path):
        path = tmp_path / "shape.png"
        Image.new("RGB", (40, 30), (255, 255, 255)).save(path)
        bmp = asyncio.run(ImageBitmapSource(path)("ignored"))
        assert (bmp.width, bmp.height) == (40, 30)

    def test_downscales_large_images(self, tmp_path):
        path = tmp_path / "big.png"
        Image.new("RGB", (1000, 500)).save(path)
        bmp = ImageBitmapSource(path, max_side=200).load()
        assert (bmp.width, bmp.height) == (200, 100)

    def test_missing_file(self, tmp_path):
        with pytest.raises(BitmapError):
            ImageBitmapSource(tmp_path / "nope.png").load()

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not pixels")
        with pytest.raises(BitmapError):
            ImageBitmapSource(path).load()


class TestQrBitmapSource:
    def test_module_matrix(self):
        grid = QrBitmapSource().modules("hello")
        assert grid.dtype == bool
        assert grid.shape == (21, 21)  # version 1
        # Finder patterns: dark outer ring, light inner ring
        assert grid[0, 0] and grid[0, -1] and grid[-1, 0]
        assert not grid[1, 1]

    def test_square_card_with_black_border(self):
        bmp = QrBitmapSource(size=128).render("hello")
        assert bmp.rgba.shape == (148, 148, 4)  # 128 + 2 * round(128 * 0.08)
        assert bmp.rgba.dtype == np.uint8
        assert bmp.rgba[:10, :, :3].max() == 0
        assert bmp.rgba[:, -10:, :3].max() == 0

    def test_modules_are_white_on_black(self):
        bmp = QrBitmapSource(size=126).render("hello")
        border = round(126 * 0.08)
        # Top-left module belongs to a finder pattern, so it is lit
        assert tuple(bmp.rgba[border + 1, border + 1, :3]) == (255, 255, 255)
        lit = (bmp.rgba[..., 0] > 128).mean()
        assert 0.2 < lit < 0.8

    def test_samples_into_targets(self):
        bmp = QrBitmapSource(size=256).render("https://example.com")
        pts = sample_targets(bmp.rgba, stride=3, jitter=0.0)
        assert len(pts) > 100

    def test_async_call(self):
        bmp = asyncio.run(QrBitmapSource(size=64)("x"))
        assert isinstance(bmp, Bitmap)

    def test_higher_level_needs_more_modules(self):
        payload = "https://example.com/some/longer/path?with=query"
        low = QrBitmapSource(level="L").modules(payload)
        high = QrBitmapSource(level="H").modules(payload)
        assert high.shape[0] > low.shape[0]

    def test_unknown_level_falls_back(self):
        assert QrBitmapSource(level="Z").level == "M"

    @pytest.mark.parametrize("payload", ["", "   "])
    def test_empty_payload_fails(self, payload):
        with pytest.raises(BitmapError):
            QrBitmapSource().render(payload)

    def test_oversized_payload_fails(self):
        with pytest.raises(BitmapError):
            QrBitmapSource().render("x" * 5000)


class TestMakeSource:
    def test_default_is_qr(self):
        assert isinstance(make_source(), QrBitmapSource)

    def test_text_mode(self):
        assert isinstance(make_source("text"), TextBitmapSource)

    def test_image_wins(self, tmp_path):
        source = make_source("qr", image=tmp_path / "logo.png")
        assert isinstance(source, ImageBitmapSource)

    def test_qr_level_passed_through(self):
        assert make_source(qr_level="H").level == "H"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            make_source("morse")
