"""Shared fixtures for stitch_map tests."""

import numpy as np
import pytest


def make_raster(rows):
    """Nested [[(r,g,b,a), ...], ...] to a uint8 (H,W,4) raster."""
    return np.array(rows, dtype=np.uint8).reshape(len(rows), len(rows[0]), 4)


@pytest.fixture
def rgbw_2x2():
    return make_raster(
        [
            [(255, 0, 0, 255), (0, 255, 0, 255)],
            [(0, 0, 255, 255), (255, 255, 255, 255)],
        ]
    )


@pytest.fixture
def bw_palette():
    return np.array([[0, 0, 0, 255], [255, 255, 255, 255]], dtype=np.uint8)


@pytest.fixture
def grey_8x8():
    raster = np.zeros((8, 8, 4), dtype=np.uint8)
    raster[..., :3] = 128
    raster[..., 3] = 255
    return raster


@pytest.fixture
def gradient_8x8():
    raster = np.zeros((8, 8, 4), dtype=np.uint8)
    ramp = np.linspace(0, 255, 8).astype(np.uint8)
    raster[..., 0] = ramp[None, :]
    raster[..., 1] = ramp[:, None]
    raster[..., 2] = 90
    raster[..., 3] = 255
    return raster


@pytest.fixture
def tiny_catalog():
    from stitch_map.core_types import CatalogEntry

    return [
        CatalogEntry(id="only-dark", rgb=(0, 0, 0), name="Dark"),
        CatalogEntry(id="only-light", rgb=(255, 255, 255), name="Light"),
    ]
