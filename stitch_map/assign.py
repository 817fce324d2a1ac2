# stitch_map/assign.py
from __future__ import annotations

"""
Per-pixel colour id assignment and preview rendering.

Functions:
  default_palette_ids(palette) -> {palette index: "color-<n>"}
  build_palette_cache(palette, id_of) -> {exact RGB: colour id}
  assign_pixels(dithered, palette, id_of, remove_background, threshold)
    -> (id grid, fallback hit count)
  render_preview(grid, colors) -> uint8 [H,W,4]
  count_ids(grid) -> {colour id: cells}

The exact-RGB cache makes each cell an O(1) dict lookup. A miss falls back to
a linear nearest-colour scan of the palette; with a palette-only raster that
never happens, so the returned hit count should stay at zero.
"""

from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from .constants import EMPTY_CELL, PREVIEW_UNKNOWN_RGBA
from .core_types import (
    IdGrid,
    PaletteCache,
    PatternColor,
    RGBAImage,
    assert_rgba_image,
    coerce_to_rgb_tuple,
    excluded_mask,
    is_transparent,
)
from .quantize import find_closest_color


def default_palette_ids(palette: np.ndarray) -> Dict[int, str]:
    """Ids for unmatched palettes: 'color-<index + 1>' for every opaque row."""
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    return {i: f"color-{i + 1}" for i, row in enumerate(pal) if not is_transparent(row)}


def build_palette_cache(palette: np.ndarray, id_of: Mapping[int, str]) -> PaletteCache:
    """
    Exact RGB -> colour id for opaque palette rows that have an id.
    The first row with a given RGB wins, matching the lowest-index tie rule of
    find_closest_color so the cache and the fallback scan always agree.
    """
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    cache: PaletteCache = {}
    for i, row in enumerate(pal):
        if is_transparent(row) or i not in id_of:
            continue
        cache.setdefault(coerce_to_rgb_tuple(row), id_of[i])
    return cache


def assign_pixels(
    dithered: RGBAImage,
    palette: np.ndarray,
    id_of: Mapping[int, str],
    remove_background: bool = False,
    threshold: int = 0,
) -> Tuple[IdGrid, int]:
    """
    Walk the raster once, row-major, and emit one id (or "") per pixel.

    Transparent pixels, and near-white pixels when remove_background is set, get
    the empty sentinel. Everything else is an exact-RGB cache lookup with the
    linear scan as a safety net. Returns (grid, number of fallback lookups).
    """
    assert_rgba_image(dithered)
    cache = build_palette_cache(palette, id_of)
    skip = excluded_mask(dithered, remove_background, threshold)
    has_palette = np.asarray(palette).size > 0

    grid: IdGrid = []
    fallback_hits = 0
    for y in range(dithered.shape[0]):
        row_px = dithered[y, :, :3].tolist()
        row_skip = skip[y].tolist()
        row: List[str] = []
        for x, px in enumerate(row_px):
            if row_skip[x]:
                row.append(EMPTY_CELL)
                continue
            colour_id = cache.get((px[0], px[1], px[2]))
            if colour_id is None:
                fallback_hits += 1
                colour_id = EMPTY_CELL
                if has_palette:
                    idx = find_closest_color(dithered[y, x], palette)
                    colour_id = id_of.get(idx, EMPTY_CELL)
            row.append(colour_id)
        grid.append(row)
    return grid, fallback_hits


def render_preview(grid: IdGrid, colors: Sequence[PatternColor]) -> RGBAImage:
    """RGBA raster for a grid: empty cells transparent, ids painted in their colour."""
    height = len(grid)
    width = len(grid[0]) if height else 0
    out = np.zeros((height, width, 4), dtype=np.uint8)
    lut: Dict[str, Tuple[int, int, int, int]] = {
        c.id: (c.rgb[0], c.rgb[1], c.rgb[2], 255) for c in colors
    }
    for y, row in enumerate(grid):
        for x, colour_id in enumerate(row):
            if colour_id == EMPTY_CELL:
                continue
            out[y, x] = lut.get(colour_id, PREVIEW_UNKNOWN_RGBA)
    return out


def count_ids(grid: IdGrid) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for row in grid:
        for colour_id in row:
            if colour_id != EMPTY_CELL:
                counts[colour_id] = counts.get(colour_id, 0) + 1
    return counts


__all__ = [
    "default_palette_ids",
    "build_palette_cache",
    "assign_pixels",
    "render_preview",
    "count_ids",
]
