"""
Bitmap sampler.

Scans an RGBA pixel buffer on a coarse grid and turns every bright enough
pixel into a 3D target point on the z = 0 plane, scaled so the whole bitmap
spans ``world_width`` scene units with its aspect ratio preserved.
"""

import numpy as np


def sample_targets(
    rgba: np.ndarray,
    threshold: float = 180,
    stride: int = 3,
    world_width: float = 16.0,
    jitter: float = 0.12,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """
    Extract target points from bright pixels.

    Args:
        rgba: (H, W, 4) uint8 pixel buffer (an (H, W, 3) buffer also works,
            alpha is never read).
        threshold: Minimum mean of R, G, B (0-255) for a pixel to be kept.
        stride: Pixel step between samples along both axes.
        world_width: Width of the target rectangle in scene units.
        jitter: Full width of the uniform in-plane jitter.
        rng: General random source for jitter.

    Returns:
        (K, 3) float32 array, row-major scan order (rows outer).
    """
    if rgba.ndim != 3 or rgba.shape[2] < 3:
        raise ValueError(f"expected an (H, W, 4) pixel buffer, got shape {rgba.shape}")

    h, w = rgba.shape[:2]
    stride = max(1, int(stride))

    grid = rgba[::stride, ::stride, :3].astype(np.float32)
    brightness = grid.sum(axis=2) / 3.0
    rows, cols = np.nonzero(brightness >= threshold)
    ys = rows * stride
    xs = cols * stride

    world_w = float(world_width)
    world_h = world_w / (w / h)

    # Normalized device coords, y flipped so image "up" is +y in the scene
    u = xs / (w - 1) * 2.0 - 1.0 if w > 1 else np.zeros(len(xs))
    v = ys / (h - 1) * 2.0 - 1.0 if h > 1 else np.zeros(len(ys))

    pts = np.zeros((len(xs), 3), dtype=np.float32)
    pts[:, 0] = u * world_w / 2.0
    pts[:, 1] = -v * world_h / 2.0

    if jitter > 0 and len(pts):
        rng = rng or np.random.default_rng()
        pts[:, :2] += (rng.random((len(pts), 2)) - 0.5) * jitter

    return pts
