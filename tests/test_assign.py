import numpy as np
import pytest

from stitch_map.assign import (
    assign_pixels,
    build_palette_cache,
    count_ids,
    default_palette_ids,
    render_preview,
)
from stitch_map.core_types import PatternColor
from stitch_map.quantize import find_closest_color

from conftest import make_raster


def test_default_ids_skip_transparent_rows():
    palette = np.array([[1, 1, 1, 255], [0, 0, 0, 0], [2, 2, 2, 255]], dtype=np.uint8)
    assert default_palette_ids(palette) == {0: "color-1", 2: "color-3"}


def test_cache_first_duplicate_wins():
    palette = np.array([[5, 5, 5, 255], [5, 5, 5, 255]], dtype=np.uint8)
    assert build_palette_cache(palette, {0: "a", 1: "b"}) == {(5, 5, 5): "a"}


@pytest.mark.parametrize(
    "rows",
    [
        [[5, 5, 5, 255], [5, 5, 5, 255], [200, 0, 0, 255]],
        [[0, 0, 0, 0], [9, 9, 9, 255], [9, 9, 9, 255], [9, 9, 9, 255]],
        [[10, 20, 30, 255], [40, 50, 60, 255], [10, 20, 30, 255]],
    ],
)
def test_cache_agrees_with_fallback_scan(rows):
    palette = np.array(rows, dtype=np.uint8)
    id_of = default_palette_ids(palette)
    cache = build_palette_cache(palette, id_of)
    for row in palette:
        if row[3] < 128:
            continue
        rgb = (int(row[0]), int(row[1]), int(row[2]))
        assert cache[rgb] == id_of[find_closest_color(row, palette)]


def test_duplicate_palette_rows_resolve_to_first_id():
    palette = np.array([[5, 5, 5, 255], [5, 5, 5, 255], [200, 0, 0, 255]], dtype=np.uint8)
    raster = make_raster([[(5, 5, 5, 255), (200, 0, 0, 255)]])
    grid, hits = assign_pixels(raster, palette, default_palette_ids(palette))
    assert grid == [["color-1", "color-3"]]
    assert hits == 0


def test_assign_exact_palette_has_no_fallbacks(bw_palette):
    raster = make_raster(
        [[(0, 0, 0, 255), (255, 255, 255, 255)], [(0, 0, 0, 0), (0, 0, 0, 255)]]
    )
    grid, hits = assign_pixels(raster, bw_palette, {0: "k", 1: "w"})
    assert grid == [["k", "w"], ["", "k"]]
    assert hits == 0


def test_assign_counts_fallbacks(bw_palette):
    raster = make_raster([[(20, 20, 20, 255), (0, 0, 0, 255)]])
    grid, hits = assign_pixels(raster, bw_palette, {0: "k", 1: "w"})
    assert grid == [["k", "k"]]
    assert hits == 1


def test_assign_background_removal(bw_palette):
    raster = make_raster([[(255, 255, 255, 255), (0, 0, 0, 255)]])
    grid, _ = assign_pixels(raster, bw_palette, {0: "k", 1: "w"}, True, 10)
    assert grid == [["", "k"]]


def test_render_preview():
    colors = [PatternColor(id="a", name="A", rgb=(10, 20, 30))]
    out = render_preview([["a", ""], ["zzz", "a"]], colors)
    assert out[0, 0].tolist() == [10, 20, 30, 255]
    assert out[0, 1].tolist() == [0, 0, 0, 0]
    assert out[1, 0].tolist() == [128, 128, 128, 255]


def test_render_preview_empty_grid():
    assert render_preview([], []).shape == (0, 0, 4)


def test_count_ids():
    assert count_ids([["a", "", "b"], ["a", "a", ""]]) == {"a": 3, "b": 1}
