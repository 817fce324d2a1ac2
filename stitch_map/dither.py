# stitch_map/dither.py
from __future__ import annotations

"""
Dithering onto a fixed palette.

Modes:
  none            : identity copy
  floyd-steinberg : error diffusion, 7/16 3/16 5/16 1/16
  ordered         : 4x4 Bayer threshold, stateless per pixel
  atkinson        : error diffusion to six neighbours at 1/8 each (3/4 carried)

Error diffusion runs a single row-major, left-to-right pass. Pending error lives
in a rolling three-row buffer (current row plus two look-ahead rows), which
covers the reach of both kernels. Transparent pixels pass through untouched;
error routed onto them is dropped when the scan reaches them. Neighbours outside
the raster (including x-1 at the left edge) are skipped, never wrapped.

Exports:
  DitherMode, DITHER_MODES, parse_dither_mode(name)
  dither_none, dither_floyd_steinberg, dither_ordered, dither_atkinson
  diffuse_error(raster, palette, kernel)
  apply_dithering(raster, palette, mode)
"""

from typing import Callable, Dict, Literal, Sequence, Tuple

import numpy as np

from .constants import (
    ALPHA_THRESHOLD,
    BAYER_4X4,
    BAYER_STRENGTH,
    KERNEL_ATKINSON,
    KERNEL_FS,
)
from .core_types import RGBAImage, assert_rgba_image, transparent_mask
from .quantize import nearest_palette_indices
from .utils import warn

DitherMode = Literal["none", "floyd-steinberg", "ordered", "atkinson"]
DITHER_MODES: Tuple[str, ...] = ("none", "floyd-steinberg", "ordered", "atkinson")

Kernel = Sequence[Tuple[int, int, float]]


def parse_dither_mode(name: str | None) -> DitherMode:
    """
    Permissive decode: 'floyd_steinberg' and 'floyd-steinberg' are accepted;
    anything unrecognised falls back to 'none' with a warning.
    """
    key = (name or "").strip().lower().replace("_", "-")
    if key in DITHER_MODES:
        return key  # type: ignore[return-value]
    if name:
        warn(f"unknown dither mode {name!r}; using none")
    return "none"


def dither_none(raster: RGBAImage, palette: np.ndarray) -> RGBAImage:
    return raster.copy()


def _palette_for_search(palette: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    usable = pal[:, 3] >= ALPHA_THRESHOLD
    dist_pal = pal[:, :3].astype(np.float64)
    return pal, np.where(usable[:, None], dist_pal, np.inf)


def diffuse_error(raster: RGBAImage, palette: np.ndarray, kernel: Kernel) -> RGBAImage:
    """
    Generic error-diffusion pass.

    For each opaque pixel: add pending error, clamp to [0, 255] and truncate to
    integers, pick the nearest palette row, then push (corrected - chosen) times
    each kernel weight onto in-bounds neighbours.
    """
    assert_rgba_image(raster)
    pal, search = _palette_for_search(palette)
    if pal.shape[0] == 0:
        return raster.copy()

    height, width = raster.shape[:2]
    out = raster.copy()
    clear = transparent_mask(raster)
    reach = max(dy for _dx, dy, _w in kernel) + 1
    pending = np.zeros((reach, width, 3), dtype=np.float64)
    all_inf = bool(np.all(np.isinf(search)))

    for y in range(height):
        row_err = pending[y % reach]
        for x in range(width):
            if clear[y, x]:
                continue
            corrected = np.clip(raster[y, x, :3] + row_err[x], 0.0, 255.0).astype(
                np.int64
            )
            if all_inf:
                j = 0
            else:
                diff = search - corrected
                j = int(np.argmin(np.sum(diff * diff, axis=1)))
            chosen = pal[j]
            out[y, x] = chosen

            quant_err = corrected.astype(np.float64) - chosen[:3].astype(np.float64)
            for dx, dy, weight in kernel:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and ny < height:
                    pending[ny % reach, nx] += quant_err * weight
        row_err[:] = 0.0

    return out


def dither_floyd_steinberg(raster: RGBAImage, palette: np.ndarray) -> RGBAImage:
    return diffuse_error(raster, palette, KERNEL_FS)


def dither_atkinson(raster: RGBAImage, palette: np.ndarray) -> RGBAImage:
    return diffuse_error(raster, palette, KERNEL_ATKINSON)


def bayer_threshold_map(height: int, width: int) -> np.ndarray:
    """Per-pixel offset (matrix[y%4][x%4] / 16 - 0.5) * 64. Returns float64 [H,W]."""
    matrix = np.asarray(BAYER_4X4, dtype=np.float64)
    ys = np.arange(height)[:, None] % 4
    xs = np.arange(width)[None, :] % 4
    return (matrix[ys, xs] / 16.0 - 0.5) * BAYER_STRENGTH


def dither_ordered(raster: RGBAImage, palette: np.ndarray) -> RGBAImage:
    """Bayer 4x4 ordered dither. No state crosses pixels, so this is vectorised."""
    assert_rgba_image(raster)
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    if pal.shape[0] == 0:
        return raster.copy()

    height, width = raster.shape[:2]
    out = raster.copy()
    opaque = ~transparent_mask(raster)
    if not opaque.any():
        return out

    offset = bayer_threshold_map(height, width)[..., None]
    adjusted = np.clip(raster[..., :3].astype(np.float64) + offset, 0.0, 255.0)
    samples = adjusted.astype(np.int64)[opaque]
    uniques, inverse = np.unique(samples, axis=0, return_inverse=True)
    idx = nearest_palette_indices(uniques, pal)
    out[opaque] = pal[idx[inverse.reshape(-1)]]
    return out


_DISPATCH: Dict[str, Callable[[RGBAImage, np.ndarray], RGBAImage]] = {
    "none": dither_none,
    "floyd-steinberg": dither_floyd_steinberg,
    "ordered": dither_ordered,
    "atkinson": dither_atkinson,
}


def apply_dithering(raster: RGBAImage, palette: np.ndarray, mode: str) -> RGBAImage:
    """Dispatch on a (permissively decoded) dither mode name."""
    return _DISPATCH[parse_dither_mode(mode)](raster, palette)


__all__ = [
    "DitherMode",
    "DITHER_MODES",
    "parse_dither_mode",
    "dither_none",
    "diffuse_error",
    "dither_floyd_steinberg",
    "dither_atkinson",
    "bayer_threshold_map",
    "dither_ordered",
    "apply_dithering",
]
