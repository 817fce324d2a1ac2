# stitch_map/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .constants import ALPHA_THRESHOLD

# Basic aliases

RGBTuple = Tuple[int, int, int]
RGBATuple = Tuple[int, int, int, int]
HexStr = str

RGBAImage = NDArray[np.uint8]  # (H, W, 4)
BoolMask = NDArray[np.bool_]  # (H, W)
Lab = NDArray[np.float64]  # (..., 3) CIE Lab

IdGrid = List[List[str]]  # [row][col] -> colour id or ""
PaletteCache = Dict[RGBTuple, str]  # exact RGB -> colour id

# Value objects


@dataclass(frozen=True)
class PatternColor:
    """Colour emitted by processing: generated id, display name, optional thread link."""

    id: str
    name: str
    rgb: RGBTuple
    thread_brand: Optional[str] = None
    thread_code: Optional[str] = None
    symbol: Optional[str] = None

    @property
    def hex(self) -> HexStr:
        return rgb_to_hex(self.rgb)


@dataclass(frozen=True)
class CatalogEntry:
    """Reference colour to match onto: (id, rgb, display name), plus optional thread link."""

    id: str
    rgb: RGBTuple
    name: str
    brand: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class ColorMatch:
    """Nearest catalog entry for one target colour."""

    color: RGBTuple
    color_id: str
    distance: float
    name: str


# Errors


class InvalidDimensionsError(ValueError):
    """Target width or height is zero, or the raster does not match it."""


# Small helpers


def rgb_to_hex(rgb: Sequence[int]) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def coerce_to_rgb_tuple(value: Union[Sequence[int], NDArray[np.generic]]) -> RGBTuple:
    """
    Coerce a 3+ length sequence or array to an (int, int, int) RGB tuple.
    Extra channels (alpha) are dropped.
    """
    if len(value) < 3:  # type: ignore[arg-type]
        raise ValueError("sequence too small for RGB")
    return (int(value[0]), int(value[1]), int(value[2]))


def is_transparent(pixel: Sequence[int]) -> bool:
    return int(pixel[3]) < ALPHA_THRESHOLD


def is_background(pixel: Sequence[int], threshold: int) -> bool:
    """Near-white test: every RGB channel strictly above 255 - threshold."""
    floor = 255 - int(threshold)
    return int(pixel[0]) > floor and int(pixel[1]) > floor and int(pixel[2]) > floor


def transparent_mask(raster: RGBAImage) -> BoolMask:
    """Vectorised is_transparent over an (H, W, 4) raster."""
    return raster[..., 3] < ALPHA_THRESHOLD


def background_mask(raster: RGBAImage, threshold: int) -> BoolMask:
    """Vectorised is_background over an (H, W, 4) raster."""
    floor = 255 - int(threshold)
    return np.all(raster[..., :3].astype(np.int16) > floor, axis=-1)


def excluded_mask(
    raster: RGBAImage, remove_background: bool, threshold: int
) -> BoolMask:
    """Pixels that never receive a stitch: transparent, or background when enabled."""
    mask = transparent_mask(raster)
    if remove_background:
        mask = mask | background_mask(raster, threshold)
    return mask


def assert_rgba_image(image: np.ndarray) -> RGBAImage:
    """Validate a uint8 (H,W,4) raster and return it typed as RGBAImage."""
    if not isinstance(image, np.ndarray):
        raise TypeError("expected a numpy array raster")
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] != 4:
        raise ValueError(f"expected uint8 (H,W,4) raster, got {image.dtype} {image.shape}")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBTuple",
    "RGBATuple",
    "HexStr",
    "RGBAImage",
    "BoolMask",
    "Lab",
    "IdGrid",
    "PaletteCache",
    # errors
    "InvalidDimensionsError",
    # value objects
    "PatternColor",
    "CatalogEntry",
    "ColorMatch",
    # helpers
    "rgb_to_hex",
    "hex_to_rgb",
    "coerce_to_rgb_tuple",
    "is_transparent",
    "is_background",
    "transparent_mask",
    "background_mask",
    "excluded_mask",
    "assert_rgba_image",
]
