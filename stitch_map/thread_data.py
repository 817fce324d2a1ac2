# stitch_map/thread_data.py
from __future__ import annotations

"""
Embroidery thread libraries and catalog builders.

Exports:
  ThreadColor, ThreadLibraryInfo
  BRANDS, KREINIK_THREADS
  parse_brand(name)
  bundled_threads(brand)
  get_threads_by_brand(brand, extra)
  load_threads(path, brand)
  thread_libraries(libraries)
  search_threads(threads, query)
  get_thread_by_code(threads, code)
  threads_to_catalog(threads) -> list[CatalogEntry]

Kreinik metallics ship with the package. DMC and Anchor tables are read from
CSV (code,name,r,g,b[,category]) or JSON ([{code,name,rgb[,category]}]) files;
JSON rgb is either [r,g,b] or "#rrggbb".
"""

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import DEFAULT_BRAND
from .core_types import CatalogEntry, RGBTuple, hex_to_rgb
from .utils import warn


@dataclass(frozen=True)
class ThreadColor:
    code: str
    name: str
    rgb: RGBTuple
    brand: str
    category: Optional[str] = None

    @property
    def catalog_id(self) -> str:
        return f"{self.brand}-{self.code}"


@dataclass(frozen=True)
class ThreadLibraryInfo:
    brand: str
    name: str
    description: str
    color_count: int


BRANDS: Tuple[str, ...] = ("DMC", "Anchor", "Kreinik")

_BRAND_INFO: Dict[str, Tuple[str, str]] = {
    "DMC": ("DMC", "DMC Cotton Embroidery Floss - Industry standard"),
    "Anchor": ("Anchor Stranded", "Anchor Stranded Cotton - Popular alternative"),
    "Kreinik": ("Kreinik Metallics", "Kreinik Metallic Threads - Premium metallics"),
}

# (code, name, rgb, type)
KREINIK_THREADS: List[Tuple[str, str, RGBTuple, str]] = [
    ("002", "Gold", (255, 215, 0), "braid"),
    ("002C", "Gold Cord", (255, 215, 0), "cord"),
    ("002F", "Gold Fine", (255, 215, 0), "blending-filament"),
    ("002HL", "Gold Hi Lustre", (255, 220, 50), "braid"),
    ("002J", "Japan Gold", (255, 210, 80), "japan"),
    ("002L", "Gold Light", (255, 230, 100), "braid"),
    ("002P", "Gold Pearl", (255, 225, 130), "braid"),
    ("002V", "Vintage Gold", (200, 160, 60), "braid"),
    ("003HL", "Red Gold Hi Lustre", (255, 180, 50), "braid"),
    ("021", "Copper", (184, 115, 51), "braid"),
    ("021C", "Copper Cord", (184, 115, 51), "cord"),
    ("021F", "Copper Filament", (184, 115, 51), "blending-filament"),
    ("021HL", "Copper Hi Lustre", (205, 135, 75), "braid"),
    ("202HL", "Aztec Gold", (218, 165, 32), "braid"),
    ("205C", "Antique Gold", (180, 145, 75), "cord"),
    ("205HL", "Antique Gold Hi Lustre", (195, 160, 85), "braid"),
    ("221", "Antique Gold Dark", (155, 120, 50), "braid"),
    ("3212", "Citron", (210, 200, 70), "braid"),
    ("001", "Silver", (192, 192, 192), "braid"),
    ("001C", "Silver Cord", (192, 192, 192), "cord"),
    ("001F", "Silver Fine", (192, 192, 192), "blending-filament"),
    ("001HL", "Silver Hi Lustre", (210, 210, 215), "braid"),
    ("001J", "Japan Silver", (195, 195, 200), "japan"),
    ("001L", "Silver Light", (220, 220, 225), "braid"),
    ("001P", "Silver Pearl", (230, 230, 235), "braid"),
    ("001V", "Vintage Silver", (160, 160, 165), "braid"),
    ("011HL", "Nickel Hi Lustre", (175, 175, 180), "braid"),
    ("012", "Pewter", (130, 130, 135), "braid"),
    ("012HL", "Pewter Hi Lustre", (145, 145, 150), "braid"),
    ("032", "Pearl", (255, 255, 255), "braid"),
    ("032C", "Pearl Cord", (255, 255, 255), "cord"),
    ("032F", "Pearl Fine", (255, 255, 255), "blending-filament"),
    ("032HL", "Pearl Hi Lustre", (255, 255, 255), "braid"),
    ("100", "White", (255, 255, 255), "braid"),
    ("100HL", "White Hi Lustre", (255, 255, 255), "braid"),
    ("005", "Black", (0, 0, 0), "braid"),
    ("005C", "Black Cord", (0, 0, 0), "cord"),
    ("005F", "Black Fine", (0, 0, 0), "blending-filament"),
    ("005HL", "Black Hi Lustre", (25, 25, 25), "braid"),
    ("003", "Red", (255, 0, 0), "braid"),
    ("003F", "Red Fine", (255, 0, 0), "blending-filament"),
    ("003L", "Red Light", (255, 80, 80), "braid"),
    ("003HL", "Red Hi Lustre", (255, 40, 40), "braid"),
    ("031", "Flame", (255, 100, 30), "braid"),
    ("031HL", "Flame Hi Lustre", (255, 115, 45), "braid"),
    ("034", "Fuschia", (255, 0, 128), "braid"),
    ("034HL", "Fuschia Hi Lustre", (255, 30, 140), "braid"),
    ("042", "Confetti Red", (220, 50, 50), "braid"),
    ("203HL", "Flame Red", (255, 60, 20), "braid"),
    ("332", "Christmas Red", (200, 0, 0), "braid"),
    ("332F", "Christmas Red Fine", (200, 0, 0), "blending-filament"),
    ("333", "Ruby", (155, 25, 50), "braid"),
    ("334", "Cranberry", (130, 30, 50), "braid"),
    ("007", "Pink", (255, 192, 203), "braid"),
    ("007HL", "Pink Hi Lustre", (255, 200, 210), "braid"),
    ("024", "Fuchsia", (255, 50, 150), "braid"),
    ("024HL", "Fuchsia Hi Lustre", (255, 70, 160), "braid"),
    ("194", "Pale Pink", (255, 220, 225), "braid"),
    ("9194", "Star Pink", (255, 180, 200), "braid"),
    ("006", "Orange", (255, 165, 0), "braid"),
    ("006HL", "Orange Hi Lustre", (255, 175, 30), "braid"),
    ("052", "Grapefruit", (255, 130, 100), "braid"),
    ("321", "Tangerine", (255, 145, 50), "braid"),
    ("326", "Burnt Orange", (205, 95, 20), "braid"),
    ("091", "Star Yellow", (255, 255, 100), "braid"),
    ("091HL", "Star Yellow Hi Lustre", (255, 255, 120), "braid"),
    ("311", "Sunlight", (255, 250, 150), "braid"),
    ("312", "Sunflower", (255, 240, 80), "braid"),
    ("2122", "Yellow Gold", (255, 220, 50), "braid"),
    ("008", "Green", (0, 128, 0), "braid"),
    ("008HL", "Green Hi Lustre", (30, 145, 30), "braid"),
    ("009", "Emerald", (0, 155, 80), "braid"),
    ("009HL", "Emerald Hi Lustre", (30, 170, 95), "braid"),
    ("015", "Chartreuse", (180, 220, 50), "braid"),
    ("015HL", "Chartreuse Hi Lustre", (195, 230, 70), "braid"),
    ("051", "Peacock", (50, 130, 130), "braid"),
    ("051HL", "Peacock Hi Lustre", (70, 145, 145), "braid"),
    ("053", "Willow", (150, 190, 100), "braid"),
    ("322", "Grass Green", (80, 160, 60), "braid"),
    ("334V", "Vintage Emerald", (40, 120, 70), "braid"),
    ("3215", "Leaf Green", (100, 150, 70), "braid"),
    ("3216", "Pine", (45, 95, 55), "braid"),
    ("5982", "Forest", (30, 80, 45), "braid"),
    ("006B", "Blue", (0, 100, 200), "braid"),
    ("014", "Sky Blue", (135, 206, 235), "braid"),
    ("014HL", "Sky Blue Hi Lustre", (150, 215, 240), "braid"),
    ("022", "Royal Blue", (65, 105, 225), "braid"),
    ("022HL", "Royal Blue Hi Lustre", (80, 120, 235), "braid"),
    ("033", "Confetti Blue", (100, 150, 220), "braid"),
    ("051B", "Sapphire", (30, 70, 160), "braid"),
    ("051BHL", "Sapphire Hi Lustre", (50, 90, 175), "braid"),
    ("052B", "Colonial Blue", (80, 120, 180), "braid"),
    ("085", "Peacock Blue", (0, 100, 140), "braid"),
    ("086", "Midnight", (25, 40, 95), "braid"),
    ("095", "Starburst", (100, 165, 215), "braid"),
    ("3514", "Blue Ice", (180, 210, 240), "braid"),
    ("3515", "Wedgewood", (100, 140, 190), "braid"),
    ("3545", "Navy", (20, 35, 80), "braid"),
    ("012P", "Purple", (128, 0, 128), "braid"),
    ("012PHL", "Purple Hi Lustre", (145, 30, 145), "braid"),
    ("016", "Amethyst", (155, 90, 180), "braid"),
    ("016HL", "Amethyst Hi Lustre", (170, 105, 195), "braid"),
    ("023", "Lilac", (200, 160, 210), "braid"),
    ("023HL", "Lilac Hi Lustre", (210, 175, 220), "braid"),
    ("026", "Violet", (130, 80, 160), "braid"),
    ("026HL", "Violet Hi Lustre", (145, 95, 175), "braid"),
    ("026L", "Violet Light", (175, 130, 195), "braid"),
    ("3225", "Orchid", (185, 110, 175), "braid"),
    ("3226", "Grape", (100, 50, 100), "braid"),
    ("024B", "Brown", (139, 90, 43), "braid"),
    ("024BHL", "Brown Hi Lustre", (155, 105, 60), "braid"),
    ("052V", "Vintage Bronze", (135, 95, 55), "braid"),
    ("022B", "Chestnut", (150, 85, 50), "braid"),
    ("222", "Bronze", (165, 120, 70), "braid"),
    ("222HL", "Bronze Hi Lustre", (180, 135, 85), "braid"),
    ("223", "Antique Bronze", (140, 100, 60), "braid"),
    ("231", "Autumn Brown", (125, 80, 45), "braid"),
    ("232", "Chocolate", (90, 50, 30), "braid"),
    ("5125", "Caramel", (175, 130, 80), "braid"),
    ("5215", "Toffee", (155, 110, 65), "braid"),
    ("052G", "Glow White", (250, 255, 250), "braid"),
    ("054F", "Glow Green", (180, 255, 180), "braid"),
    ("056F", "Glow Orange", (255, 200, 150), "braid"),
    ("048", "Confetti Rainbow", (255, 128, 128), "braid"),
    ("091V", "Vintage Variegated", (200, 175, 130), "braid"),
]


def parse_brand(name: str | None) -> str:
    """Case-insensitive brand decode; unknown names fall back to DMC."""
    key = (name or "").strip().lower()
    for brand in BRANDS:
        if brand.lower() == key:
            return brand
    if name:
        warn(f"unknown thread brand {name!r}; using {DEFAULT_BRAND}")
    return DEFAULT_BRAND


def _check_rgb(values: Sequence[object], where: str) -> RGBTuple:
    if len(values) != 3:
        raise ValueError(f"{where}: rgb needs 3 components, got {len(values)}")
    rgb = tuple(int(v) for v in values)  # type: ignore[arg-type]
    if any(c < 0 or c > 255 for c in rgb):
        raise ValueError(f"{where}: rgb components must be 0..255, got {rgb}")
    return rgb  # type: ignore[return-value]


def bundled_threads(brand: str) -> List[ThreadColor]:
    """Threads shipped with the package. Only Kreinik is bundled."""
    if parse_brand(brand) != "Kreinik":
        return []
    return [
        ThreadColor(code=code, name=name, rgb=rgb, brand="Kreinik", category=kind)
        for code, name, rgb, kind in KREINIK_THREADS
    ]


def get_threads_by_brand(
    brand: str, extra: Optional[Mapping[str, Sequence[ThreadColor]]] = None
) -> List[ThreadColor]:
    """Threads for a brand: user-loaded tables in `extra` first, else bundled data."""
    brand_eff = parse_brand(brand)
    if extra is not None and brand_eff in extra:
        return list(extra[brand_eff])
    return bundled_threads(brand_eff)


def _rows_from_csv(path: Path) -> Iterable[Tuple[int, Dict[str, str]]]:
    with path.open("r", encoding="utf-8", newline="") as f:
        rdr = csv.DictReader(f, skipinitialspace=True)
        for line_no, row in enumerate(rdr, start=2):
            yield line_no, row


def load_threads(path: Path, brand: str) -> List[ThreadColor]:
    """
    Read a thread table from CSV or JSON (chosen by file suffix).

    CSV columns: code, name, r, g, b, optional category.
    JSON: list of objects with code, name, rgb ([r,g,b] or "#rrggbb"), optional category.
    """
    brand_eff = parse_brand(brand)
    threads: List[ThreadColor] = []
    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path.name}: expected a JSON list of threads")
        for i, item in enumerate(data):
            where = f"{path.name}[{i}]"
            try:
                code = str(item["code"])
                name = str(item["name"])
                raw_rgb = item["rgb"]
                if isinstance(raw_rgb, str):
                    rgb = hex_to_rgb(raw_rgb)
                else:
                    rgb = _check_rgb(raw_rgb, where)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{where}: malformed thread entry ({e})") from e
            threads.append(
                ThreadColor(code, name, rgb, brand_eff, item.get("category"))
            )
        return threads

    for line_no, row in _rows_from_csv(path):
        where = f"{path.name}:{line_no}"
        try:
            rgb = _check_rgb([row["r"], row["g"], row["b"]], where)
            code = row["code"].strip()
            name = row["name"].strip()
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"{where}: missing column ({e})") from e
        category = (row.get("category") or "").strip() or None
        threads.append(ThreadColor(code, name, rgb, brand_eff, category))
    return threads


def thread_libraries(
    libraries: Optional[Mapping[str, Sequence[ThreadColor]]] = None,
) -> List[ThreadLibraryInfo]:
    """Metadata per brand. Counts come from `libraries` when given, else bundled data."""
    out: List[ThreadLibraryInfo] = []
    for brand in BRANDS:
        name, description = _BRAND_INFO[brand]
        if libraries is not None and brand in libraries:
            count = len(libraries[brand])
        else:
            count = len(bundled_threads(brand))
        out.append(ThreadLibraryInfo(brand, name, description, count))
    return out


def search_threads(threads: Iterable[ThreadColor], query: str) -> List[ThreadColor]:
    """Case-insensitive substring search over code and name."""
    q = query.lower()
    return [t for t in threads if q in t.code.lower() or q in t.name.lower()]


def get_thread_by_code(
    threads: Iterable[ThreadColor], code: str
) -> Optional[ThreadColor]:
    for t in threads:
        if t.code == code:
            return t
    return None


def threads_to_catalog(threads: Iterable[ThreadColor]) -> List[CatalogEntry]:
    """Catalog rows keyed '<brand>-<code>', named '<brand> <code> - <name>'."""
    return [
        CatalogEntry(
            id=t.catalog_id,
            rgb=t.rgb,
            name=f"{t.brand} {t.code} - {t.name}",
            brand=t.brand,
            code=t.code,
        )
        for t in threads
    ]


__all__ = [
    "ThreadColor",
    "ThreadLibraryInfo",
    "BRANDS",
    "KREINIK_THREADS",
    "parse_brand",
    "bundled_threads",
    "get_threads_by_brand",
    "load_threads",
    "thread_libraries",
    "search_threads",
    "get_thread_by_code",
    "threads_to_catalog",
]
