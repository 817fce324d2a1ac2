# stitch_map/colour_convert.py
from __future__ import annotations

"""
Colour conversions (sRGB -> XYZ -> CIE Lab, D65). Vectorised NumPy.

Exports:
  rgb_to_linear(srgb)
  rgb_to_xyz(rgb)
  xyz_to_lab(xyz)
  rgb_to_lab(rgb)
  lab_to_lch(lab)

All functions accept any shape (..., 3) and return float64 with shape preserved.
RGB input is always 8-bit scale (0..255), either uint8 or float.
"""

import numpy as np

from .constants import LAB_EPSILON, LAB_KAPPA, REF_WHITE, SRGB_TO_XYZ
from .core_types import Lab


# sRGB to linear


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1).
    Args:
      srgb: array[...] in 0..1 (float)
    Returns:
      float64 array, same shape
    """
    srgb_f = np.asarray(srgb, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        linear = np.where(
            srgb_f > 0.04045, ((srgb_f + 0.055) / 1.055) ** 2.4, srgb_f / 12.92
        )
    return linear


# sRGB to XYZ (D65, 0..100 scale)


def rgb_to_xyz(rgb: np.ndarray) -> np.ndarray:
    """8-bit sRGB [...,3] to XYZ [...,3] scaled so white has Y=100."""
    rgb_f = np.asarray(rgb, dtype=np.float64) / 255.0
    lin = rgb_to_linear(rgb_f) * 100.0
    matrix = np.asarray(SRGB_TO_XYZ, dtype=np.float64)
    return lin @ matrix.T


# XYZ to Lab


def _lab_f(t: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore"):
        return np.where(t > LAB_EPSILON, np.cbrt(t), (LAB_KAPPA * t + 16.0) / 116.0)


def xyz_to_lab(xyz: np.ndarray) -> Lab:
    """XYZ [...,3] (0..100 scale) to CIE Lab [...,3] against the D65 white."""
    xyz_f = np.asarray(xyz, dtype=np.float64)
    white = np.asarray(REF_WHITE, dtype=np.float64)
    scaled = xyz_f / white
    fx = _lab_f(scaled[..., 0])
    fy = _lab_f(scaled[..., 1])
    fz = _lab_f(scaled[..., 2])

    out = np.empty(xyz_f.shape, dtype=np.float64)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


def rgb_to_lab(rgb: np.ndarray) -> Lab:
    """
    sRGB to CIE Lab (D65).
    Accepts 8-bit values [0..255] as uint8 or float. Preserves shape (...,3).
    """
    return xyz_to_lab(rgb_to_xyz(rgb))


# Lab to LCh


def lab_to_lch(lab: Lab) -> np.ndarray:
    """
    Lab[...,3] to LCh[...,3] (hue in degrees, [0,360)).
    Returns float64 with shape preserved.
    """
    lab_f = np.asarray(lab, dtype=np.float64)
    a = lab_f[..., 1]
    b = lab_f[..., 2]
    out = np.empty(lab_f.shape, dtype=np.float64)
    out[..., 0] = lab_f[..., 0]
    out[..., 1] = np.hypot(a, b)
    out[..., 2] = np.degrees(np.arctan2(b, a)) % 360.0
    return out


__all__ = [
    "rgb_to_linear",
    "rgb_to_xyz",
    "xyz_to_lab",
    "rgb_to_lab",
    "lab_to_lch",
]
