"""
stitch_map package.

Purpose:
  Convert an image into a stitchable pattern: a bounded palette, a per-cell
  colour id grid and a preview, optionally matched onto a thread library.
  See stitch_map.cli for the command line.

Public API:
  process         : end-to-end pattern entry point.
  ProcessOptions  : processing knobs (colours, dither, background, metric).
  colour_convert  : sRGB -> XYZ -> Lab transforms.
  metrics         : five colour distance metrics (euclidean .. ciede2000).
  quantize        : median-cut palette and nearest-palette lookups.
  dither          : none / floyd-steinberg / ordered / atkinson.
  match           : catalog matching with duplicate coalescing.
  assign          : exact-RGB id cache, grid walk, preview rendering.
  thread_data     : thread libraries and catalog builders.

Quick start:
  from stitch_map import process, ProcessOptions
  pattern = process(rgba, w, h, ProcessOptions(max_colors=12, dither="atkinson"))
"""

__version__ = "0.1.0"

from . import colour_convert
from . import core_types
from . import metrics
from . import quantize
from . import dither
from . import match
from . import assign
from . import thread_data
from . import utils

from .pipeline import ProcessOptions, ProcessedPattern, process  # noqa: E402

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "metrics",
    "quantize",
    "dither",
    "match",
    "assign",
    "thread_data",
    "utils",
    "ProcessOptions",
    "ProcessedPattern",
    "process",
]
