"""
Bitmap producers.

The swarm only needs an RGBA buffer with bright pixels where the shape is.
The default source encodes the text as a QR code (white modules on black,
with a quiet-zone border). Alternatives rasterize the text itself or load
an image file. All are async callables ``text -> Bitmap`` so the engine can
await them without caring how the pixels are made.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Union

import numpy as np
import qrcode
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError


class BitmapError(RuntimeError):
    """A bitmap producer could not produce an image."""


@dataclass(frozen=True)
class Bitmap:
    """Read-only RGBA pixel buffer."""
    width: int
    height: int
    rgba: np.ndarray  # (H, W, 4) uint8

    @classmethod
    def from_image(cls, img: Image.Image) -> "Bitmap":
        arr = np.array(img.convert("RGBA"), dtype=np.uint8)
        arr.setflags(write=False)
        return cls(width=arr.shape[1], height=arr.shape[0], rgba=arr)

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "Bitmap":
        arr = np.asarray(rgba, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise BitmapError(f"expected (H, W, 4) RGBA pixels, got shape {arr.shape}")
        arr = arr.copy()
        arr.setflags(write=False)
        return cls(width=arr.shape[1], height=arr.shape[0], rgba=arr)


BitmapSource = Callable[[str], Awaitable[Bitmap]]


def add_quiet_zone(img: Image.Image, fraction: float = 0.08) -> Image.Image:
    """Pad ``img`` with a black border of ``fraction`` of its short side."""
    border = round(min(img.width, img.height) * fraction)
    out = Image.new("RGBA", (img.width + border * 2, img.height + border * 2), (0, 0, 0, 255))
    out.paste(img.convert("RGBA"), (border, border))
    return out


QR_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


class QrBitmapSource:
    """
    Encodes the text as a QR code.

    Modules are drawn white on black and scaled to a ``size`` square, then a
    quiet-zone border is added so the code stays scannable once assembled.
    Unknown error-correction levels fall back to "M".
    """

    def __init__(self, size: int = 512, level: str = "M", quiet_zone: float = 0.08):
        self.size = size
        self.level = level if level in QR_LEVELS else "M"
        self.quiet_zone = quiet_zone

    async def __call__(self, text: str) -> Bitmap:
        return await asyncio.to_thread(self.render, text)

    def modules(self, text: str) -> np.ndarray:
        """(M, M) bool module matrix, True for dark modules, no border."""
        if not text or not text.strip():
            raise BitmapError("cannot encode an empty QR payload")

        qr = qrcode.QRCode(
            version=None,
            error_correction=QR_LEVELS[self.level],
            box_size=1,
            border=0,
        )
        try:
            qr.add_data(text)
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as e:
            raise BitmapError(f"QR encoding failed: {e}") from e
        return np.array(qr.get_matrix(), dtype=bool)

    def render(self, text: str) -> Bitmap:
        """Blocking encode. Raises BitmapError for empty or oversized payloads."""
        grid = self.modules(text)
        img = Image.fromarray(np.where(grid, 255, 0).astype(np.uint8))
        img = img.resize((self.size, self.size), Image.NEAREST)
        return Bitmap.from_image(add_quiet_zone(img, self.quiet_zone))


class TextBitmapSource:
    """
    Rasterizes text to a square card.

    Words are wrapped greedily to fit the card, the block is centred, and a
    quiet-zone border is added around the result.
    """

    def __init__(
        self,
        size: int = 512,
        font_size: int | None = None,
        margin: float = 0.06,
        quiet_zone: float = 0.08,
    ):
        self.size = size
        self.font_size = font_size or max(8, size // 6)
        self.margin = margin
        self.quiet_zone = quiet_zone

    async def __call__(self, text: str) -> Bitmap:
        return await asyncio.to_thread(self.render, text)

    def _wrap(self, draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> list[str]:
        lines = []
        for paragraph in text.splitlines() or [text]:
            line = ""
            for word in paragraph.split():
                candidate = f"{line} {word}".strip()
                if line and draw.textlength(candidate, font=font) > max_width:
                    lines.append(line)
                    line = word
                else:
                    line = candidate
            if line:
                lines.append(line)
        return lines

    def render(self, text: str) -> Bitmap:
        """Blocking rasterization. Raises BitmapError for blank text."""
        if not text or not text.strip():
            raise BitmapError("cannot rasterize empty text")

        img = Image.new("RGBA", (self.size, self.size), (0, 0, 0, 255))
        draw = ImageDraw.Draw(img)
        font = ImageFont.load_default(size=self.font_size)

        max_width = self.size * (1.0 - 2.0 * self.margin)
        lines = self._wrap(draw, text, font, max_width)
        block = "\n".join(lines)
        draw.multiline_text(
            (self.size / 2, self.size / 2),
            block,
            fill=(255, 255, 255, 255),
            font=font,
            anchor="mm",
            align="center",
        )
        return Bitmap.from_image(add_quiet_zone(img, self.quiet_zone))


class ImageBitmapSource:
    """Loads a fixed image file; the text argument is ignored."""

    def __init__(self, path: Union[str, Path], max_side: int | None = 512):
        self.path = Path(path)
        self.max_side = max_side

    async def __call__(self, text: str = "") -> Bitmap:
        return await asyncio.to_thread(self.load)

    def load(self) -> Bitmap:
        try:
            with Image.open(self.path) as img:
                img = img.convert("RGBA")
        except (OSError, UnidentifiedImageError) as e:
            raise BitmapError(f"Failed to load image {self.path}: {e}") from e

        if self.max_side and max(img.size) > self.max_side:
            scale = self.max_side / max(img.size)
            new_size = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
            img = img.resize(new_size, Image.BILINEAR)
        return Bitmap.from_image(img)


def make_source(
    mode: str = "qr",
    image: Union[str, Path, None] = None,
    qr_level: str = "M",
    size: int = 512,
) -> BitmapSource:
    """Pick a bitmap source: an image file if given, else "qr" or "text"."""
    if image is not None:
        return ImageBitmapSource(image, max_side=size)
    if mode == "text":
        return TextBitmapSource(size=size)
    if mode == "qr":
        return QrBitmapSource(size=size, level=qr_level)
    raise ValueError(f"Unknown source mode: {mode!r}")
