# stitch_map/quantize.py
from __future__ import annotations

"""
Median-cut palette building and nearest-palette lookups.

Exports:
  collect_stitch_pixels(raster, remove_background, threshold) -> uint8 [N,4]
  median_cut(pixels, max_colors) -> uint8 [P,4]
  find_closest_color(pixel, palette) -> int
  nearest_palette_indices(pixels, palette) -> int64 [N]
  map_to_palette(raster, palette, exclude) -> uint8 [H,W,4]
  quantize_image(raster, max_colors, remove_background, threshold)
    -> (mapped raster, palette)

Palettes are uint8 [P,4] RGBA rows. Median-cut output always has alpha 255;
exclusion of transparent and background pixels happens before the cut.
Nearest lookups use plain Euclidean RGB distance, skip transparent palette
rows, and break ties on the lowest index.
"""

from typing import List, Tuple

import numpy as np

from .constants import ALPHA_THRESHOLD
from .core_types import BoolMask, RGBAImage, assert_rgba_image, excluded_mask


def collect_stitch_pixels(
    raster: RGBAImage, remove_background: bool, threshold: int
) -> np.ndarray:
    """Row-major list of pixels that may receive a stitch. Returns uint8 [N,4]."""
    keep = ~excluded_mask(raster, remove_background, threshold)
    return raster[keep].reshape(-1, 4)


def _channel_ranges(bucket: np.ndarray) -> np.ndarray:
    return bucket.max(axis=0).astype(np.int64) - bucket.min(axis=0).astype(np.int64)


def median_cut(pixels: np.ndarray, max_colors: int) -> np.ndarray:
    """
    Reduce pixels to at most max_colors representative colours.

    Repeatedly splits the bucket whose R, G or B range is the largest across all
    buckets (first bucket, then first channel wins ties). The bucket is stably
    sorted on that channel, cut at len // 2, removed, and both halves appended.
    Stops when the palette is full, every multi-pixel bucket is flat, or no
    bucket has more than one pixel. Each bucket becomes its per-channel
    integer mean with alpha 255, in bucket order.
    """
    if max_colors < 0:
        raise ValueError("max_colors must be >= 0")
    rgb = np.asarray(pixels, dtype=np.uint8).reshape(-1, pixels.shape[-1])[:, :3]
    if rgb.shape[0] == 0 or max_colors == 0:
        return np.zeros((0, 4), dtype=np.uint8)

    buckets: List[np.ndarray] = [rgb]
    ranges: List[np.ndarray] = [_channel_ranges(rgb)]

    while len(buckets) < max_colors:
        max_range = 0
        max_bucket_idx = 0
        split_channel = 0
        for i, bucket in enumerate(buckets):
            if bucket.shape[0] <= 1:
                continue
            for channel in range(3):
                spread = int(ranges[i][channel])
                if spread > max_range:
                    max_range = spread
                    max_bucket_idx = i
                    split_channel = channel

        if max_range == 0 or buckets[max_bucket_idx].shape[0] <= 1:
            break

        bucket = buckets.pop(max_bucket_idx)
        ranges.pop(max_bucket_idx)
        order = np.argsort(bucket[:, split_channel], kind="stable")
        bucket = bucket[order]
        mid = bucket.shape[0] // 2
        for half in (bucket[:mid], bucket[mid:]):
            if half.shape[0] > 0:
                buckets.append(half)
                ranges.append(_channel_ranges(half))

    palette = np.empty((len(buckets), 4), dtype=np.uint8)
    for i, bucket in enumerate(buckets):
        sums = bucket.astype(np.int64).sum(axis=0)
        palette[i, :3] = (sums // bucket.shape[0]).astype(np.uint8)
        palette[i, 3] = 255
    return palette


def _opaque_palette_rows(palette: np.ndarray) -> np.ndarray:
    pal = np.asarray(palette, dtype=np.uint8)
    if pal.shape[-1] < 4:
        return np.ones((pal.shape[0],), dtype=bool)
    return pal[:, 3] >= ALPHA_THRESHOLD


def nearest_palette_indices(pixels: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """
    Index of the nearest opaque palette row for each pixel (RGB Euclidean).
    Ties go to the lowest index. When no palette row is usable every
    pixel maps to index 0.
    """
    src = np.asarray(pixels, dtype=np.int64).reshape(-1, np.shape(pixels)[-1])[:, :3]
    pal = np.asarray(palette, dtype=np.int64).reshape(-1, np.shape(palette)[-1])
    if pal.shape[0] == 0:
        raise ValueError("cannot search an empty palette")
    usable = _opaque_palette_rows(np.asarray(palette))
    if not usable.any():
        return np.zeros((src.shape[0],), dtype=np.int64)

    diff = src[:, None, :] - pal[None, :, :3]
    dist2 = np.sum(diff * diff, axis=2).astype(np.float64)
    dist2[:, ~usable] = np.inf
    return np.argmin(dist2, axis=1).astype(np.int64)


def find_closest_color(pixel: np.ndarray, palette: np.ndarray) -> int:
    """Single-pixel form of nearest_palette_indices."""
    return int(nearest_palette_indices(np.asarray(pixel)[None, :], palette)[0])


def map_to_palette(
    raster: RGBAImage, palette: np.ndarray, exclude: BoolMask
) -> RGBAImage:
    """
    Replace every non-excluded pixel with its nearest palette row.
    Excluded pixels become (0, 0, 0, 0). Lookups run once per unique colour.
    """
    out = np.zeros_like(raster)
    keep = ~exclude
    if not keep.any():
        return out
    samples = raster[keep][:, :3]
    uniques, inverse = np.unique(samples, axis=0, return_inverse=True)
    idx = nearest_palette_indices(uniques, palette)
    out[keep] = np.asarray(palette, dtype=np.uint8)[idx[inverse.reshape(-1)]]
    return out


def quantize_image(
    raster: RGBAImage,
    max_colors: int,
    remove_background: bool = False,
    threshold: int = 0,
) -> Tuple[RGBAImage, np.ndarray]:
    """
    Build a median-cut palette from the stitchable pixels and map the raster onto it.

    Returns (mapped, palette). When nothing is stitchable (or max_colors is 0)
    the raster is returned unchanged with an empty palette.
    """
    assert_rgba_image(raster)
    pixels = collect_stitch_pixels(raster, remove_background, threshold)
    palette = median_cut(pixels, max_colors)
    if palette.shape[0] == 0:
        return raster.copy(), palette
    exclude = excluded_mask(raster, remove_background, threshold)
    return map_to_palette(raster, palette, exclude), palette


__all__ = [
    "collect_stitch_pixels",
    "median_cut",
    "nearest_palette_indices",
    "find_closest_color",
    "map_to_palette",
    "quantize_image",
]
