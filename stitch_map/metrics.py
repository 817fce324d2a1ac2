# stitch_map/metrics.py
from __future__ import annotations

"""
Colour distance metrics.

Five interchangeable models, all returning a non-negative distance:
  euclidean : plain RGB distance
  weighted  : RGB distance with red-mean channel weights (no colour-space change)
  cie76     : Euclidean distance in CIE Lab
  cie94     : Lab distance with chroma/hue terms, textile weights (kL=2)
  ciede2000 : full CIEDE2000 (default)

Every formula is written over NumPy arrays of shape (..., 3) so the same code
serves a single pair and one target against a whole catalog. Degenerate hue
cases (zero chroma) are handled by explicit branches; outputs never carry NaN.

Exports:
  Metric, METRICS, parse_metric(name)
  euclidean_distance, weighted_rgb_distance, delta_e76, delta_e94, delta_e2000
  delta_e2000_lab(lab1, lab2)
  colour_distance(c1, c2, metric)
  distances_to_many(target, candidates, metric)
"""

from typing import Callable, Dict, Literal, Sequence, Tuple, Union

import numpy as np

from .colour_convert import rgb_to_lab
from .constants import CIE94_K1, CIE94_K2, CIE94_KL, DEFAULT_METRIC
from .core_types import Lab
from .utils import warn

Metric = Literal["euclidean", "weighted", "cie76", "cie94", "ciede2000"]
METRICS: Tuple[str, ...] = ("euclidean", "weighted", "cie76", "cie94", "ciede2000")

ColourLike = Union[Sequence[int], np.ndarray]


def parse_metric(name: str | None) -> Metric:
    """
    Permissive decode: unknown or missing names fall back to CIEDE2000.
    The fallback is deliberate and logged, not an error.
    """
    key = (name or "").strip().lower()
    if key in METRICS:
        return key  # type: ignore[return-value]
    if name:
        warn(f"unknown colour metric {name!r}; using {DEFAULT_METRIC}")
    return DEFAULT_METRIC  # type: ignore[return-value]


def _rgb(c: ColourLike) -> np.ndarray:
    return np.asarray(c, dtype=np.float64)[..., :3]


# RGB-space metrics


def euclidean_distance(c1: ColourLike, c2: ColourLike) -> np.ndarray:
    diff = _rgb(c1) - _rgb(c2)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def weighted_rgb_distance(c1: ColourLike, c2: ColourLike) -> np.ndarray:
    """Red-mean weighted RGB distance."""
    a = _rgb(c1)
    b = _rgb(c2)
    rmean = (a[..., 0] + b[..., 0]) / 2.0
    dr = a[..., 0] - b[..., 0]
    dg = a[..., 1] - b[..., 1]
    db = a[..., 2] - b[..., 2]

    wr = 2.0 + rmean / 256.0
    wg = 4.0
    wb = 2.0 + (255.0 - rmean) / 256.0
    return np.sqrt(wr * dr * dr + wg * dg * dg + wb * db * db)


# Lab-space metrics


def delta_e76_lab(lab1: Lab, lab2: Lab) -> np.ndarray:
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def delta_e94_lab(lab1: Lab, lab2: Lab) -> np.ndarray:
    """
    CIE94 with textile constants. The first argument is the reference colour:
    SC and SH scale with its chroma, so the metric is not symmetric.
    """
    l1 = np.asarray(lab1, dtype=np.float64)
    l2 = np.asarray(lab2, dtype=np.float64)
    dl = l1[..., 0] - l2[..., 0]
    da = l1[..., 1] - l2[..., 1]
    db = l1[..., 2] - l2[..., 2]

    c1 = np.hypot(l1[..., 1], l1[..., 2])
    c2 = np.hypot(l2[..., 1], l2[..., 2])
    dc = c1 - c2

    dh2 = da * da + db * db - dc * dc
    dh = np.sqrt(np.maximum(dh2, 0.0))

    sl = 1.0
    sc = 1.0 + CIE94_K1 * c1
    sh = 1.0 + CIE94_K2 * c1

    term1 = dl / (CIE94_KL * sl)
    term2 = dc / sc
    term3 = dh / sh
    return np.sqrt(term1 * term1 + term2 * term2 + term3 * term3)


def _hue_degrees(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """atan2 hue in [0, 360); exactly 0 on the grey axis."""
    ang = np.degrees(np.arctan2(b, a))
    ang = np.where(ang < 0.0, ang + 360.0, ang)
    return np.where((a == 0.0) & (b == 0.0), 0.0, ang)


def delta_e2000_lab(lab1: Lab, lab2: Lab) -> np.ndarray:
    """
    CIEDE2000 between Lab colours (kL = kC = kH = 1).

    Includes the G chroma rotation of a*, hue averaging with the 360 degree
    wrap rules, the T polynomial, SL/SC/SH weights and the RT rotation term.
    """
    l1 = np.asarray(lab1, dtype=np.float64)
    l2 = np.asarray(lab2, dtype=np.float64)
    L1, a1, b1 = l1[..., 0], l1[..., 1], l1[..., 2]
    L2, a2, b2 = l2[..., 0], l2[..., 1], l2[..., 2]

    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    C_bar7 = C_bar**7
    G = 0.5 * (1.0 - np.sqrt(C_bar7 / (C_bar7 + 25.0**7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)

    h1p = _hue_degrees(a1p, b1)
    h2p = _hue_degrees(a2p, b2)

    dLp = L2 - L1
    dCp = C2p - C1p

    chroma_prod = C1p * C2p
    zero_chroma = chroma_prod == 0.0

    dhp = h2p - h1p
    dhp = np.where(dhp > 180.0, dhp - 360.0, dhp)
    dhp = np.where(dhp < -180.0, dhp + 360.0, dhp)
    dhp = np.where(zero_chroma, 0.0, dhp)

    dHp = 2.0 * np.sqrt(chroma_prod) * np.sin(np.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    h_sum = h1p + h2p
    h_diff = np.abs(h1p - h2p)
    h_bar_p = np.where(
        h_diff <= 180.0,
        0.5 * h_sum,
        np.where(h_sum < 360.0, 0.5 * (h_sum + 360.0), 0.5 * (h_sum - 360.0)),
    )
    h_bar_p = np.where(zero_chroma, h_sum, h_bar_p)

    T = (
        1.0
        - 0.17 * np.cos(np.radians(h_bar_p - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * h_bar_p))
        + 0.32 * np.cos(np.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * np.exp(-(((h_bar_p - 275.0) / 25.0) ** 2))
    C_bar_p7 = C_bar_p**7
    R_c = 2.0 * np.sqrt(C_bar_p7 / (C_bar_p7 + 25.0**7))

    L_off2 = (L_bar - 50.0) ** 2
    S_l = 1.0 + (0.015 * L_off2) / np.sqrt(20.0 + L_off2)
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -np.sin(np.radians(2.0 * d_theta)) * R_c

    kL = kC = kH = 1.0
    term_l = dLp / (kL * S_l)
    term_c = dCp / (kC * S_c)
    term_h = dHp / (kH * S_h)
    total = term_l**2 + term_c**2 + term_h**2 + R_t * term_c * term_h
    return np.sqrt(np.maximum(total, 0.0))


def delta_e76(c1: ColourLike, c2: ColourLike) -> np.ndarray:
    return delta_e76_lab(rgb_to_lab(_rgb(c1)), rgb_to_lab(_rgb(c2)))


def delta_e94(c1: ColourLike, c2: ColourLike) -> np.ndarray:
    return delta_e94_lab(rgb_to_lab(_rgb(c1)), rgb_to_lab(_rgb(c2)))


def delta_e2000(c1: ColourLike, c2: ColourLike) -> np.ndarray:
    return delta_e2000_lab(rgb_to_lab(_rgb(c1)), rgb_to_lab(_rgb(c2)))


_DISPATCH: Dict[str, Callable[[ColourLike, ColourLike], np.ndarray]] = {
    "euclidean": euclidean_distance,
    "weighted": weighted_rgb_distance,
    "cie76": delta_e76,
    "cie94": delta_e94,
    "ciede2000": delta_e2000,
}


def colour_distance(c1: ColourLike, c2: ColourLike, metric: str = DEFAULT_METRIC) -> float:
    """
    Distance between two RGB colours under the named metric.
    Every metric is symmetric except cie94, which treats c1 as the reference.
    """
    fn = _DISPATCH[parse_metric(metric)]
    return float(fn(c1, c2))


def distances_to_many(
    target: ColourLike, candidates: np.ndarray, metric: str = DEFAULT_METRIC
) -> np.ndarray:
    """
    Distance from one RGB target to each row of an (N,3) RGB candidate array.
    The target is always the first (reference) argument.
    Returns float64 [N].
    """
    cands = np.asarray(candidates, dtype=np.float64).reshape(-1, 3)
    if cands.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)
    src = np.broadcast_to(_rgb(target), cands.shape)
    fn = _DISPATCH[parse_metric(metric)]
    return np.asarray(fn(src, cands), dtype=np.float64).reshape(-1)


__all__ = [
    "Metric",
    "METRICS",
    "parse_metric",
    "euclidean_distance",
    "weighted_rgb_distance",
    "delta_e76_lab",
    "delta_e94_lab",
    "delta_e2000_lab",
    "delta_e76",
    "delta_e94",
    "delta_e2000",
    "colour_distance",
    "distances_to_many",
]
