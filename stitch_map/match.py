# stitch_map/match.py
from __future__ import annotations

"""
Catalog matching: snap quantised palette colours onto a fixed reference library.

Exports:
  MatchOutcome
  find_closest(target, catalog, metric) -> ColorMatch | None
  find_closest_n(target, catalog, count, metric) -> list[ColorMatch]
  difference_category(delta_e) -> str
  match_palette(palette, catalog, metric) -> MatchOutcome
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .constants import DEFAULT_METRIC
from .core_types import (
    CatalogEntry,
    ColorMatch,
    PatternColor,
    coerce_to_rgb_tuple,
    is_transparent,
)
from .metrics import distances_to_many, parse_metric


@dataclass(frozen=True)
class MatchOutcome:
    """Unique matched colours in first-use order, plus palette index -> colour id."""

    colors: List[PatternColor]
    id_map: Dict[int, str]
    metric: str


def _catalog_rgb(catalog: Sequence[CatalogEntry]) -> np.ndarray:
    return np.array([e.rgb for e in catalog], dtype=np.float64).reshape(-1, 3)


def _to_match(entry: CatalogEntry, distance: float) -> ColorMatch:
    return ColorMatch(
        color=entry.rgb, color_id=entry.id, distance=float(distance), name=entry.name
    )


def find_closest(
    target: Sequence[int],
    catalog: Sequence[CatalogEntry],
    metric: str = DEFAULT_METRIC,
) -> Optional[ColorMatch]:
    """Nearest catalog entry; ties go to the earliest entry. None for an empty catalog."""
    if len(catalog) == 0:
        return None
    dists = distances_to_many(target, _catalog_rgb(catalog), metric)
    best = int(np.argmin(dists))
    return _to_match(catalog[best], dists[best])


def find_closest_n(
    target: Sequence[int],
    catalog: Sequence[CatalogEntry],
    count: int = 5,
    metric: str = DEFAULT_METRIC,
) -> List[ColorMatch]:
    """The `count` nearest catalog entries, closest first (stable on ties)."""
    if len(catalog) == 0 or count <= 0:
        return []
    dists = distances_to_many(target, _catalog_rgb(catalog), metric)
    order = np.argsort(dists, kind="stable")[:count]
    return [_to_match(catalog[int(i)], dists[int(i)]) for i in order]


def difference_category(delta_e: float) -> str:
    """Rough perceptual label for a Delta E value."""
    if delta_e == 0:
        return "exact match"
    if delta_e < 1:
        return "imperceptible"
    if delta_e < 2:
        return "very close"
    if delta_e < 3.5:
        return "close"
    if delta_e < 5:
        return "noticeable"
    if delta_e < 10:
        return "different"
    return "very different"


def match_palette(
    palette: np.ndarray,
    catalog: Sequence[CatalogEntry],
    metric: str = DEFAULT_METRIC,
) -> MatchOutcome:
    """
    Match each opaque palette row, in palette order, to its nearest catalog entry.

    A catalog entry picked by an earlier palette row is reused: the later row maps
    to the id already issued instead of creating a second colour. New colours get
    the id '<catalog id>-color-<palette index + 1>'.
    """
    metric_eff = parse_metric(metric)
    colors: List[PatternColor] = []
    id_map: Dict[int, str] = {}
    seen: Dict[str, int] = {}

    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    if len(catalog) == 0:
        return MatchOutcome(colors, id_map, metric_eff)

    cat_rgb = _catalog_rgb(catalog)
    for i, row in enumerate(pal):
        if is_transparent(row):
            continue
        dists = distances_to_many(coerce_to_rgb_tuple(row), cat_rgb, metric_eff)
        best = int(np.argmin(dists))
        entry = catalog[best]
        hit = _to_match(entry, dists[best])

        if hit.color_id in seen:
            id_map[i] = colors[seen[hit.color_id]].id
            continue

        colour_id = f"{hit.color_id}-color-{i + 1}"
        colors.append(
            PatternColor(
                id=colour_id,
                name=hit.name,
                rgb=hit.color,
                thread_brand=entry.brand,
                thread_code=entry.code,
            )
        )
        seen[hit.color_id] = len(colors) - 1
        id_map[i] = colour_id

    return MatchOutcome(colors, id_map, metric_eff)


__all__ = [
    "MatchOutcome",
    "find_closest",
    "find_closest_n",
    "difference_category",
    "match_palette",
]
