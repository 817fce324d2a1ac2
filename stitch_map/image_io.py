# stitch_map/image_io.py
from __future__ import annotations

import base64
import io
import json
from pathlib import Path
from typing import Any, Mapping

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .core_types import InvalidDimensionsError, RGBAImage, assert_rgba_image

"""
Image I/O helpers: RGBA loading, exact resize, PNG / data-URL encoding, grid JSON.
"""


def pillow_resample_from_name(name: str) -> Image.Resampling:
    """Map a string to a Pillow resampling filter enum."""
    if name == "nearest":
        return Image.Resampling.NEAREST
    if name == "bilinear":
        return Image.Resampling.BILINEAR
    if name == "bicubic":
        return Image.Resampling.BICUBIC
    return Image.Resampling.LANCZOS  # default


def load_image_rgba(path: Path) -> RGBAImage:
    """Open with Pillow, apply EXIF orientation, return uint8 (H,W,4)."""
    with Image.open(path) as im0:
        im = ImageOps.exif_transpose(im0).convert("RGBA")
    return np.array(im, dtype=np.uint8)


def resize_exact(
    raster: RGBAImage, width: int, height: int, resample: str = "lanczos"
) -> RGBAImage:
    """Resize to exactly (width, height), ignoring aspect ratio."""
    assert_rgba_image(raster)
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"target size must be positive, got {width}x{height}")
    if raster.shape[1] == width and raster.shape[0] == height:
        return raster.copy()
    im = Image.fromarray(raster)
    im2 = im.resize((width, height), resample=pillow_resample_from_name(resample))
    return np.array(im2, dtype=np.uint8)


def raster_to_png_bytes(raster: RGBAImage) -> bytes:
    assert_rgba_image(raster)
    buf = io.BytesIO()
    Image.fromarray(raster).save(buf, format="PNG")
    return buf.getvalue()


def raster_to_data_url(raster: RGBAImage) -> str:
    """'data:image/png;base64,...' for a raster."""
    encoded = base64.b64encode(raster_to_png_bytes(raster)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def save_png(path: Path, raster: RGBAImage) -> Path:
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    path.write_bytes(raster_to_png_bytes(raster))
    return path


def write_grid_json(path: Path, payload: Mapping[str, Any]) -> Path:
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=1)
        f.write("\n")
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "pillow_resample_from_name",
    "load_image_rgba",
    "resize_exact",
    "raster_to_png_bytes",
    "raster_to_data_url",
    "save_png",
    "write_grid_json",
    "is_image_file",
]
