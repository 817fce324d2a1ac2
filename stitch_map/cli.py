#!/usr/bin/env python3
"""
stitch_map.cli
Turn an image into a stitch pattern: bounded palette, per-cell colour ids, preview PNG.

Usage:
  stitch-map INPUT --width W --height H [--out PNG] [--grid JSON]
             [--colors N] [--dither none|floyd-steinberg|ordered|atkinson]
             [--remove-background] [--threshold T]
             [--brand DMC|Anchor|Kreinik] [--threads FILE]
             [--metric euclidean|weighted|cie76|cie94|ciede2000]
             [--resample lanczos|bicubic|bilinear|nearest] [--debug]

Matching:
  Enabled by --brand or --threads. Kreinik ships with the package; other
  brands need a --threads CSV/JSON table.

Output:
  Preview PNG (default <stem>_pattern.png next to INPUT) and, with --grid, a JSON
  file holding the colour list and the id grid.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .constants import DEFAULT_BACKGROUND_THRESHOLD, DEFAULT_MAX_COLORS
from .core_types import CatalogEntry, InvalidDimensionsError
from .dither import DITHER_MODES
from .image_io import load_image_rgba, resize_exact, save_png, write_grid_json
from .metrics import METRICS
from .pipeline import ProcessOptions, ProcessedPattern, process
from .thread_data import get_threads_by_brand, load_threads, parse_brand, threads_to_catalog
from .utils import (
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    warn,
)


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Mode strings are passed through untouched so the pipeline applies its
    permissive decode (unknown dither -> none, unknown metric -> ciede2000).
    """
    parser = argparse.ArgumentParser(
        prog="stitch-map",
        description="Convert an image into a stitchable colour pattern.",
    )
    parser.add_argument("src", type=Path, help="Input image")
    parser.add_argument("--out", type=Path, default=None, help="Preview PNG path")
    parser.add_argument("--grid", type=Path, default=None, help="Pattern JSON path")
    parser.add_argument("--width", type=int, required=True, help="Pattern width in stitches")
    parser.add_argument("--height", type=int, required=True, help="Pattern height in stitches")
    parser.add_argument(
        "--colors", type=int, default=DEFAULT_MAX_COLORS, help="Maximum palette size"
    )
    parser.add_argument(
        "--dither", default="none", help=f"One of: {', '.join(DITHER_MODES)}"
    )
    parser.add_argument(
        "--remove-background",
        action="store_true",
        help="Leave near-white pixels unstitched",
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=DEFAULT_BACKGROUND_THRESHOLD,
        help="Background threshold 0..255 (higher removes more)",
    )
    parser.add_argument("--brand", default=None, help="Thread brand to match onto")
    parser.add_argument(
        "--threads", type=Path, default=None, help="Thread table (CSV or JSON)"
    )
    parser.add_argument(
        "--metric", default="ciede2000", help=f"One of: {', '.join(METRICS)}"
    )
    parser.add_argument(
        "--resample",
        choices=["lanczos", "bicubic", "bilinear", "nearest"],
        default="lanczos",
        help="Resize filter",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def build_catalog(
    brand: Optional[str], threads_path: Optional[Path]
) -> Optional[List[CatalogEntry]]:
    """Catalog from --threads, else bundled data for --brand, else None (no matching)."""
    if brand is None and threads_path is None:
        return None
    brand_eff = parse_brand(brand)
    extra = None
    if threads_path is not None:
        extra = {brand_eff: load_threads(threads_path, brand_eff)}
    threads = get_threads_by_brand(brand_eff, extra)
    if not threads:
        warn(f"no thread data for {brand_eff}; pass --threads to supply a table")
    return threads_to_catalog(threads)


def report(pattern: ProcessedPattern) -> None:
    log("Colours used:")
    for colour_id, name, hex_code, count in pattern.color_usage():
        log(f"  {hex_code}  {name} [{colour_id}]: {count:,}")
    stitched = sum(1 for row in pattern.pixels for cell in row if cell)
    log(f"Total stitches: {stitched:,}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)
    t_start = time.perf_counter()

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    print_banner(src.name)
    options = ProcessOptions.from_strings(
        dither=args.dither,
        metric=args.metric,
        max_colors=args.colors,
        remove_background=args.remove_background,
        background_threshold=args.threshold,
        debug=args.debug,
    )
    print_config_line(
        "run",
        [
            ("Size", f"{args.width}x{args.height}"),
            ("Colours", options.max_colors),
            ("Dither", options.dither),
            ("Background", options.remove_background),
        ],
        debug=False,
    )

    try:
        catalog = build_catalog(args.brand, args.threads)
        raster = load_image_rgba(src)
        if args.debug:
            debug_log(
                key_value_pairs_to_string(
                    [("Loaded", f"{raster.shape[1]}x{raster.shape[0]}")]
                )
            )
        raster = resize_exact(raster, args.width, args.height, args.resample)
        pattern = process(raster, args.width, args.height, options, catalog)
    except (InvalidDimensionsError, ValueError, OSError) as e:
        error(str(e))
        return 1

    out_path = args.out or src.with_name(f"{src.stem}_pattern.png")
    out_path = save_png(out_path, pattern.preview)
    log(f"Wrote {out_path.name} | size={pattern.width}x{pattern.height} | colours={len(pattern.colors)}")
    if args.grid is not None:
        write_grid_json(args.grid, pattern.to_dict())
        log(f"Wrote {args.grid.name}")

    report(pattern)
    log(f"Total time {format_total_duration_compact(time.perf_counter() - t_start)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
