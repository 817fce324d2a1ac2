import numpy as np
import pytest

from stitch_map.quantize import (
    collect_stitch_pixels,
    find_closest_color,
    map_to_palette,
    median_cut,
    nearest_palette_indices,
    quantize_image,
)

from conftest import make_raster


def _rows(palette):
    return {tuple(int(v) for v in row) for row in palette}


def test_median_cut_recovers_distinct_colours():
    pixels = np.array(
        [[255, 0, 0, 255], [0, 255, 0, 255], [0, 0, 255, 255], [255, 255, 255, 255]],
        dtype=np.uint8,
    )
    palette = median_cut(pixels, 4)
    assert _rows(palette) == {
        (255, 0, 0, 255),
        (0, 255, 0, 255),
        (0, 0, 255, 255),
        (255, 255, 255, 255),
    }
    # Split order: blue and green come out of the first half before red/white.
    assert palette[:, :3].tolist() == [[0, 0, 255], [0, 255, 0], [255, 0, 0], [255, 255, 255]]


def test_median_cut_respects_bound():
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(300, 4), dtype=np.uint8)
    palette = median_cut(pixels, 5)
    assert 1 <= palette.shape[0] <= 5
    assert np.all(palette[:, 3] == 255)


def test_median_cut_flat_input_gives_one_colour():
    pixels = np.tile(np.array([[12, 34, 56, 255]], dtype=np.uint8), (50, 1))
    palette = median_cut(pixels, 8)
    assert palette.tolist() == [[12, 34, 56, 255]]


def test_median_cut_uses_floor_mean():
    pixels = np.array([[0, 0, 0, 255], [1, 3, 5, 255]], dtype=np.uint8)
    assert median_cut(pixels, 1).tolist() == [[0, 1, 2, 255]]


def test_median_cut_empty_cases():
    assert median_cut(np.zeros((0, 4), dtype=np.uint8), 4).shape == (0, 4)
    assert median_cut(np.full((3, 4), 9, dtype=np.uint8), 0).shape == (0, 4)
    with pytest.raises(ValueError):
        median_cut(np.zeros((3, 4), dtype=np.uint8), -1)


def test_collect_skips_transparent_and_background():
    raster = make_raster([[(10, 10, 10, 255), (250, 250, 250, 255), (5, 5, 5, 0)]])
    assert collect_stitch_pixels(raster, False, 10).shape == (2, 4)
    assert collect_stitch_pixels(raster, True, 10).tolist() == [[10, 10, 10, 255]]


def test_nearest_ties_go_to_lowest_index():
    palette = np.array([[0, 0, 0, 255], [20, 20, 20, 255]], dtype=np.uint8)
    assert find_closest_color(np.array([10, 10, 10, 255]), palette) == 0


def test_nearest_skips_transparent_palette_rows():
    palette = np.array([[10, 10, 10, 0], [200, 200, 200, 255]], dtype=np.uint8)
    idx = nearest_palette_indices(np.array([[10, 10, 10, 255]]), palette)
    assert idx.tolist() == [1]


def test_nearest_rejects_empty_palette():
    with pytest.raises(ValueError):
        nearest_palette_indices(np.zeros((1, 4)), np.zeros((0, 4), dtype=np.uint8))


def test_map_to_palette_zeroes_excluded(bw_palette):
    raster = make_raster([[(30, 30, 30, 255), (220, 220, 220, 255), (0, 0, 0, 0)]])
    exclude = raster[..., 3] < 128
    out = map_to_palette(raster, bw_palette, exclude)
    assert out[0].tolist() == [[0, 0, 0, 255], [255, 255, 255, 255], [0, 0, 0, 0]]


def test_quantize_image_removes_background():
    raster = make_raster([[(250, 250, 250, 255), (40, 80, 120, 255)]])
    mapped, palette = quantize_image(raster, 4, remove_background=True, threshold=10)
    assert palette.tolist() == [[40, 80, 120, 255]]
    assert mapped[0, 0].tolist() == [0, 0, 0, 0]
    assert mapped[0, 1].tolist() == [40, 80, 120, 255]


def test_quantize_image_nothing_stitchable():
    raster = np.zeros((2, 2, 4), dtype=np.uint8)
    mapped, palette = quantize_image(raster, 4)
    assert palette.shape == (0, 4)
    assert np.array_equal(mapped, raster)
