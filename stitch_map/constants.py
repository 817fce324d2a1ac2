# stitch_map/constants.py
"""
Global constants and tunables used across the project.

- Alpha / background classification
- sRGB -> XYZ -> Lab (D65) constants
- CIE94 textile weights
- Dither kernels and the Bayer threshold matrix
- Processing defaults
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Pixel classification
# =========================

# Alpha below this is fully transparent. Binary threshold, no blending.
ALPHA_THRESHOLD = 128

# Generated stitch ids use this empty string for "no stitch".
EMPTY_CELL = ""

# Preview colour for a cell whose id has no resolved colour.
PREVIEW_UNKNOWN_RGBA: Tuple[int, int, int, int] = (128, 128, 128, 255)

# =========================
# Colour science (D65)
# =========================

SRGB_TO_XYZ: Tuple[Tuple[float, float, float], ...] = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# Reference white on the 0..100 XYZ scale.
REF_WHITE: Tuple[float, float, float] = (95.047, 100.0, 108.883)

LAB_EPSILON = 0.008856
LAB_KAPPA = 903.3

# CIE94 textile weighting.
CIE94_KL = 2.0
CIE94_K1 = 0.048
CIE94_K2 = 0.014

# =========================
# Dithering
# =========================

# Floyd-Steinberg: (dx, dy, weight). Weights sum to 1.
KERNEL_FS: Tuple[Tuple[int, int, float], ...] = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)

# Atkinson: six neighbours at 1/8 each. Only 3/4 of the error is carried.
KERNEL_ATKINSON: Tuple[Tuple[int, int, float], ...] = (
    (1, 0, 1 / 8),
    (2, 0, 1 / 8),
    (-1, 1, 1 / 8),
    (0, 1, 1 / 8),
    (1, 1, 1 / 8),
    (0, 2, 1 / 8),
)

BAYER_4X4: Tuple[Tuple[int, int, int, int], ...] = (
    (0, 8, 2, 10),
    (12, 4, 14, 6),
    (3, 11, 1, 9),
    (15, 7, 13, 5),
)

# Threshold spread in RGB units: (m/16 - 0.5) * BAYER_STRENGTH.
BAYER_STRENGTH = 64.0

# =========================
# Defaults
# =========================

DEFAULT_MAX_COLORS = 16
DEFAULT_BACKGROUND_THRESHOLD = 10
DEFAULT_DITHER = "none"
DEFAULT_METRIC = "ciede2000"
DEFAULT_BRAND = "DMC"
