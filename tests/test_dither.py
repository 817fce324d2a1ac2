import numpy as np
import pytest

from stitch_map.constants import KERNEL_ATKINSON, KERNEL_FS
from stitch_map.dither import (
    DITHER_MODES,
    apply_dithering,
    bayer_threshold_map,
    dither_atkinson,
    dither_floyd_steinberg,
    dither_none,
    dither_ordered,
    parse_dither_mode,
)

DIFFUSERS = [dither_floyd_steinberg, dither_atkinson]


def _only_palette_colours(out, palette, opaque):
    allowed = {tuple(row) for row in palette.tolist()}
    return all(tuple(px) in allowed for px in out[opaque].tolist())


def test_kernel_weights():
    assert sum(w for _dx, _dy, w in KERNEL_FS) == pytest.approx(1.0)
    assert sum(w for _dx, _dy, w in KERNEL_ATKINSON) == pytest.approx(0.75)


def test_none_is_a_copy(gradient_8x8, bw_palette):
    out = dither_none(gradient_8x8, bw_palette)
    assert np.array_equal(out, gradient_8x8)
    assert out is not gradient_8x8


@pytest.mark.parametrize("fn", DIFFUSERS + [dither_ordered])
def test_output_uses_palette_only(fn, gradient_8x8, bw_palette):
    out = fn(gradient_8x8, bw_palette)
    assert out.shape == gradient_8x8.shape
    assert _only_palette_colours(out, bw_palette, out[..., 3] >= 128)


@pytest.mark.parametrize("fn", DIFFUSERS)
def test_mid_grey_diffuses_to_a_mix(fn, grey_8x8, bw_palette):
    out = fn(grey_8x8, bw_palette)
    white = np.mean(out[..., 0] == 255)
    assert 0.25 < white < 0.75


def test_floyd_steinberg_roughly_preserves_mean(grey_8x8, bw_palette):
    out = dither_floyd_steinberg(grey_8x8, bw_palette)
    assert abs(float(out[..., 0].mean()) - 128.0) < 24.0


@pytest.mark.parametrize("fn", DIFFUSERS + [dither_ordered])
def test_transparent_pixels_untouched(fn, grey_8x8, bw_palette):
    raster = grey_8x8.copy()
    raster[3, 4] = (77, 66, 55, 0)
    out = fn(raster, bw_palette)
    assert out[3, 4].tolist() == [77, 66, 55, 0]


@pytest.mark.parametrize("fn", DIFFUSERS)
def test_single_column_does_not_wrap(fn, bw_palette):
    raster = np.zeros((5, 1, 4), dtype=np.uint8)
    raster[..., :3] = 100
    raster[..., 3] = 255
    out = fn(raster, bw_palette)
    assert out.shape == (5, 1, 4)
    assert _only_palette_colours(out, bw_palette, out[..., 3] >= 128)


@pytest.mark.parametrize("fn", DIFFUSERS + [dither_ordered])
def test_exact_palette_input_is_stable(fn, bw_palette):
    raster = np.zeros((4, 4, 4), dtype=np.uint8)
    raster[::2, :, :3] = 255
    raster[..., 3] = 255
    assert np.array_equal(fn(raster, bw_palette), raster)


def test_bayer_threshold_values():
    m = bayer_threshold_map(5, 5)
    assert m[0, 0] == pytest.approx(-32.0)
    assert m[1, 0] == pytest.approx(16.0)
    assert m[3, 0] == pytest.approx(28.0)
    assert m[4, 4] == m[0, 0]


def test_ordered_grey_gives_both_colours(grey_8x8, bw_palette):
    out = dither_ordered(grey_8x8, bw_palette)
    values = set(out[..., 0].ravel().tolist())
    assert values == {0, 255}


def test_ordered_is_stateless(grey_8x8, bw_palette):
    full = dither_ordered(grey_8x8, bw_palette)
    tile = dither_ordered(grey_8x8[:4, :4].copy(), bw_palette)
    assert np.array_equal(full[4:, 4:], tile)


def test_parse_dither_mode_is_permissive(capsys):
    assert parse_dither_mode("floyd_steinberg") == "floyd-steinberg"
    assert parse_dither_mode("ATKINSON") == "atkinson"
    assert parse_dither_mode(None) == "none"
    assert capsys.readouterr().out == ""
    assert parse_dither_mode("sierra") == "none"
    assert "[warn]" in capsys.readouterr().out


def test_apply_dithering_dispatch(gradient_8x8, bw_palette):
    for mode in DITHER_MODES:
        assert apply_dithering(gradient_8x8, bw_palette, mode).shape == gradient_8x8.shape
    assert np.array_equal(
        apply_dithering(gradient_8x8, bw_palette, "floyd_steinberg"),
        dither_floyd_steinberg(gradient_8x8, bw_palette),
    )


def _grey(rows):
    """Rows of grey levels (None = transparent) to an RGBA raster."""
    raster = np.zeros((len(rows), len(rows[0]), 4), dtype=np.uint8)
    for y, row in enumerate(rows):
        for x, v in enumerate(row):
            if v is not None:
                raster[y, x] = (v, v, v, 255)
    return raster


def _levels(out):
    return [[int(px[0]) if px[3] >= 128 else None for px in row] for row in out]


def test_floyd_steinberg_hand_computed(bw_palette):
    # Row 0: 100 -> 0, 143 -> 255, 51 -> 0.
    # Row 1: 110 -> 0, 128 -> 255, 53 -> 0.
    out = dither_floyd_steinberg(_grey([[100, 100, 100], [100, 100, 100]]), bw_palette)
    assert _levels(out) == [[0, 255, 0], [0, 255, 0]]


def test_atkinson_hand_computed(bw_palette):
    # 100 -> 0, 112 -> 0, 126 -> 0; row 1: 126 -> 0, 158 -> 255, 133 -> 255.
    out = dither_atkinson(_grey([[100, 100, 100], [100, 100, 100]]), bw_palette)
    assert _levels(out) == [[0, 0, 0], [0, 255, 255]]


def test_error_on_transparent_pixel_is_dropped(bw_palette):
    # 120 -> 0 sends 52.5 onto the transparent cell, which is discarded.
    # 130 then sees no error and goes to 255. Carrying the error through the
    # hole would make it 0.
    raster = _grey([[120, None, 130]])
    raster[0, 1] = (9, 8, 7, 0)
    out = dither_floyd_steinberg(raster, bw_palette)
    assert out[0, 0].tolist() == [0, 0, 0, 255]
    assert out[0, 1].tolist() == [9, 8, 7, 0]
    assert out[0, 2].tolist() == [255, 255, 255, 255]


def test_right_edge_error_does_not_wrap_to_next_row(bw_palette):
    # The 100 at the end of row 0 leaves error 100. (0, 1) gets only the 3/16
    # share: 100 + 18.75 -> 0. A wrapped 7/16 share would lift it to 162 -> 255.
    out = dither_floyd_steinberg(_grey([[255, 100], [100, 255]]), bw_palette)
    assert _levels(out) == [[255, 0], [0, 255]]


def _reference_diffusion(raster, palette, kernel):
    """Coordinate-keyed pending-error map, one pixel at a time."""
    height, width = raster.shape[:2]
    out = raster.copy()
    pal = palette[:, :3].astype(np.float64)
    pending = {}
    for y in range(height):
        for x in range(width):
            err = pending.pop((x, y), None)
            if raster[y, x, 3] < 128:
                continue
            base = raster[y, x, :3].astype(np.float64)
            if err is not None:
                base = base + err
            corrected = np.clip(base, 0.0, 255.0).astype(np.int64)
            dists = [float(np.sum((corrected - p) ** 2)) for p in pal]
            j = dists.index(min(dists))
            out[y, x] = palette[j]
            quant = corrected.astype(np.float64) - pal[j]
            for dx, dy, w in kernel:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    key = (nx, ny)
                    pending[key] = pending.get(key, np.zeros(3)) + quant * w
    return out


FS_LITERAL = ((1, 0, 7 / 16), (-1, 1, 3 / 16), (0, 1, 5 / 16), (1, 1, 1 / 16))
ATKINSON_LITERAL = (
    (1, 0, 1 / 8), (2, 0, 1 / 8), (-1, 1, 1 / 8), (0, 1, 1 / 8), (1, 1, 1 / 8), (0, 2, 1 / 8),
)


@pytest.mark.parametrize(
    "fn, kernel",
    [(dither_floyd_steinberg, FS_LITERAL), (dither_atkinson, ATKINSON_LITERAL)],
)
def test_diffusion_matches_pixel_by_pixel_reference(fn, kernel):
    rng = np.random.default_rng(11)
    palette = np.array(
        [[0, 0, 0, 255], [255, 255, 255, 255], [200, 40, 40, 255], [30, 90, 200, 255]],
        dtype=np.uint8,
    )
    for _ in range(10):
        raster = rng.integers(0, 256, size=(7, 9, 4), dtype=np.uint8)
        raster[..., 3] = np.where(rng.random((7, 9)) < 0.2, 0, 255)
        assert np.array_equal(fn(raster, palette), _reference_diffusion(raster, palette, kernel))
