"""
Color grading and post-processing for point-cloud frames.

Tints the splatted luminance field and finishes the frame with bloom,
chromatic fringe, vignette and a soft highlight shoulder.
"""

import numpy as np
from PIL import Image, ImageFilter


def colorize(
    field: np.ndarray,
    tint: tuple[float, float, float] = (1.0, 1.0, 1.0),
    background: tuple[int, int, int] = (0, 0, 0),
    gamma: float = 1.0,
) -> np.ndarray:
    """
    Map a luminance field onto a tinted RGB frame.

    Args:
        field: (H, W) float array, 1.0 is full brightness (values above are clipped).
        tint: RGB multipliers in [0, 1] applied to lit pixels.
        background: RGB colour of unlit pixels.
        gamma: Exponent applied to the field before tinting.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    vals = np.clip(field, 0.0, 1.0).astype(np.float32)
    if gamma != 1.0:
        vals = vals ** gamma
    lit = vals[:, :, None] * np.asarray(tint, dtype=np.float32)[None, None, :]
    bg = np.asarray(background, dtype=np.float32)[None, None, :] / 255.0
    rgb = bg + (1.0 - bg) * lit
    return (np.clip(rgb, 0.0, 1.0) * 255 + 0.5).astype(np.uint8)


def tone_map_soft(frame: np.ndarray, shoulder: float = 0.8) -> np.ndarray:
    """
    Roll off highlights above ``shoulder`` instead of clipping them.

    Below the shoulder pixels pass through; above it a Reinhard curve bends
    them towards 255.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        shoulder: Knee position as a fraction of full scale.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    knee = shoulder * 255.0
    headroom = 255.0 - knee
    f = frame.astype(np.float32)
    over = np.maximum(f - knee, 0.0)
    rolled = knee + over * headroom / (over + headroom)
    return np.where(f > knee, rolled, f).astype(np.uint8)


def add_glow(frame: np.ndarray, intensity: float = 0.35, radius: int = 6) -> np.ndarray:
    """
    Bloom: screen-blend a blurred copy of the frame over itself.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: Opacity of the blurred layer (0 disables).
        radius: Gaussian blur radius in pixels.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    if intensity <= 0:
        return frame

    blurred = Image.fromarray(frame).filter(ImageFilter.GaussianBlur(radius=radius))
    base = frame.astype(np.float32) / 255.0
    layer = np.asarray(blurred, dtype=np.float32) / 255.0 * intensity
    screen = 1.0 - (1.0 - base) * (1.0 - layer)
    return (screen * 255).astype(np.uint8)


def chromatic_aberration(frame: np.ndarray, offset: int = 2) -> np.ndarray:
    """Shift red right and blue left by ``offset`` pixels."""
    if offset <= 0 or offset >= frame.shape[1]:
        return frame

    out = frame.copy()
    out[:, offset:, 0] = frame[:, :-offset, 0]
    out[:, :-offset, 2] = frame[:, offset:, 2]
    return out


def vignette(frame: np.ndarray, strength: float = 0.3) -> np.ndarray:
    """
    Darken towards the corners.

    Args:
        frame: (H, W, 3) uint8.
        strength: 0 = none, 1 = black corners.

    Returns:
        (H, W, 3) uint8.
    """
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    yy, xx = np.ogrid[:h, :w]
    cy, cx = (h - 1) / 2.0, (w - 1) / 2.0
    r = np.sqrt((xx - cx) ** 2 + (yy - cy) ** 2) / np.sqrt(cx ** 2 + cy ** 2 + 1e-9)
    falloff = 1.0 - np.clip(r * strength, 0.0, 1.0) ** 2
    return (frame.astype(np.float32) * falloff[:, :, None]).astype(np.uint8)
