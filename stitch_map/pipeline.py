# stitch_map/pipeline.py
from __future__ import annotations

"""
End-to-end processing: raster -> palette -> dithered raster -> [catalog match] -> id grid.

Exports:
  ProcessOptions
  ProcessedPattern
  process(image, target_w, target_h, options, catalog) -> ProcessedPattern

The caller resizes the image to (target_w, target_h) first. Every call owns its
buffers; nothing is cached across calls.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .assign import assign_pixels, count_ids, default_palette_ids, render_preview
from .constants import (
    DEFAULT_BACKGROUND_THRESHOLD,
    DEFAULT_DITHER,
    DEFAULT_MAX_COLORS,
    DEFAULT_METRIC,
    EMPTY_CELL,
)
from .core_types import (
    CatalogEntry,
    IdGrid,
    InvalidDimensionsError,
    PatternColor,
    RGBAImage,
    assert_rgba_image,
    coerce_to_rgb_tuple,
    excluded_mask,
    is_transparent,
)
from .dither import apply_dithering, parse_dither_mode
from .image_io import raster_to_data_url
from .match import match_palette
from .metrics import parse_metric
from .quantize import quantize_image
from .utils import debug_log, format_seconds_compact, print_config_line, warn


@dataclass(frozen=True)
class ProcessOptions:
    max_colors: int = DEFAULT_MAX_COLORS
    dither: str = DEFAULT_DITHER
    remove_background: bool = False
    background_threshold: int = DEFAULT_BACKGROUND_THRESHOLD
    metric: str = DEFAULT_METRIC
    debug: bool = False

    @classmethod
    def from_strings(
        cls, dither: Optional[str] = None, metric: Optional[str] = None, **kwargs: Any
    ) -> "ProcessOptions":
        """Build options with permissive decoding of the mode strings."""
        return cls(
            dither=parse_dither_mode(dither),
            metric=parse_metric(metric),
            **kwargs,
        )

    def validate(self) -> None:
        if self.max_colors < 0:
            raise ValueError(f"max_colors must be >= 0, got {self.max_colors}")
        if not 0 <= self.background_threshold <= 255:
            raise ValueError(
                f"background_threshold must be 0..255, got {self.background_threshold}"
            )


@dataclass
class ProcessedPattern:
    width: int
    height: int
    colors: List[PatternColor]
    pixels: IdGrid
    preview: RGBAImage
    palette: np.ndarray
    dither: str
    algorithm: Optional[str] = None
    thread_brand: Optional[str] = None
    fallback_hits: int = 0

    @property
    def is_empty(self) -> bool:
        """No stitches: the image was entirely transparent or background."""
        return len(self.colors) == 0

    def preview_data_url(self) -> str:
        return raster_to_data_url(self.preview)

    def color_usage(self) -> List[Tuple[str, str, str, int]]:
        """(id, name, hex, cells) for used colours, most used first."""
        counts = count_ids(self.pixels)
        rows = [(c.id, c.name, c.hex, counts.get(c.id, 0)) for c in self.colors]
        rows = [r for r in rows if r[3] > 0]
        rows.sort(key=lambda r: -r[3])
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "colors": [
                {
                    "id": c.id,
                    "name": c.name,
                    "rgb": list(c.rgb),
                    "thread_brand": c.thread_brand,
                    "thread_code": c.thread_code,
                    "symbol": c.symbol,
                }
                for c in self.colors
            ],
            "pixels": self.pixels,
            "thread_brand": self.thread_brand,
            "algorithm": self.algorithm,
        }


def _unmatched_colors(palette: np.ndarray) -> List[PatternColor]:
    return [
        PatternColor(
            id=f"color-{i + 1}",
            name=f"Color {i + 1}",
            rgb=coerce_to_rgb_tuple(row),
        )
        for i, row in enumerate(palette)
        if not is_transparent(row)
    ]


def _check_dimensions(image: RGBAImage, target_w: int, target_h: int) -> None:
    if target_w <= 0 or target_h <= 0:
        raise InvalidDimensionsError(
            f"target size must be positive, got {target_w}x{target_h}"
        )
    if image.shape[0] != target_h or image.shape[1] != target_w:
        raise InvalidDimensionsError(
            f"raster is {image.shape[1]}x{image.shape[0]}, expected {target_w}x{target_h}"
        )


def process(
    image: RGBAImage,
    target_w: int,
    target_h: int,
    options: Optional[ProcessOptions] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> ProcessedPattern:
    """
    Turn a pre-resized RGBA raster into a stitch pattern.

    Steps: median-cut palette over stitchable pixels, nearest-colour map, dither,
    optional catalog match (when `catalog` is given), then one pass assigning an
    id or "" to every cell, and a preview painted from the grid.

    Raises InvalidDimensionsError for a zero target size or a raster that does not
    match it. An empty palette is not an error: the result has no colours and
    an all-empty grid.
    """
    opts = options or ProcessOptions()
    opts = replace(
        opts, dither=parse_dither_mode(opts.dither), metric=parse_metric(opts.metric)
    )
    opts.validate()
    assert_rgba_image(image)
    _check_dimensions(image, target_w, target_h)

    t_start = time.perf_counter()
    if opts.debug:
        print_config_line(
            "process",
            [
                ("Size", f"{target_w}x{target_h}"),
                ("Colours", opts.max_colors),
                ("Dither", opts.dither),
                ("Background", opts.remove_background),
                ("Threshold", opts.background_threshold),
                ("Catalog", len(catalog) if catalog is not None else "-"),
                ("Metric", opts.metric if catalog is not None else "-"),
            ],
            debug=True,
        )

    mapped, palette = quantize_image(
        image, opts.max_colors, opts.remove_background, opts.background_threshold
    )

    if palette.shape[0] == 0:
        warn("no stitchable pixels; pattern is empty")
        empty_grid: IdGrid = [[EMPTY_CELL] * target_w for _ in range(target_h)]
        return ProcessedPattern(
            width=target_w,
            height=target_h,
            colors=[],
            pixels=empty_grid,
            preview=np.zeros((target_h, target_w, 4), dtype=np.uint8),
            palette=palette,
            dither=opts.dither,
            algorithm=opts.metric if catalog is not None else None,
        )

    if opts.dither == "none":
        source = mapped
    else:
        source = image.copy()
        source[excluded_mask(image, opts.remove_background, opts.background_threshold)] = 0
    dithered = apply_dithering(source, palette, opts.dither)

    thread_brand: Optional[str] = None
    algorithm: Optional[str] = None
    if catalog:
        outcome = match_palette(palette, catalog, opts.metric)
        colors = outcome.colors
        id_of = outcome.id_map
        algorithm = outcome.metric
        brands = sorted({c.thread_brand for c in colors if c.thread_brand})
        thread_brand = "/".join(brands) or None
    else:
        colors = _unmatched_colors(palette)
        id_of = default_palette_ids(palette)

    grid, fallback_hits = assign_pixels(
        dithered, palette, id_of, opts.remove_background, opts.background_threshold
    )
    preview = render_preview(grid, colors)

    if opts.debug:
        debug_log(
            f"palette={palette.shape[0]} colours={len(colors)} "
            f"fallback_hits={fallback_hits} "
            f"time={format_seconds_compact(time.perf_counter() - t_start)}"
        )
    if fallback_hits:
        warn(f"{fallback_hits} cells missed the palette cache and used the linear scan")

    return ProcessedPattern(
        width=target_w,
        height=target_h,
        colors=colors,
        pixels=grid,
        preview=preview,
        palette=palette,
        dither=opts.dither,
        algorithm=algorithm,
        thread_brand=thread_brand,
        fallback_hits=fallback_hits,
    )


__all__ = ["ProcessOptions", "ProcessedPattern", "process"]
