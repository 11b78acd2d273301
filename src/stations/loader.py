"""
Station CSV ingestion and line-colour lookup.

Expected columns (header names are matched after stripping quotes and
whitespace):
    longitude, latitude      - required
    STATION_NAME_EN          - optional display name
    STATION_LOCATION         - optional free text (line / system name)

Rows whose coordinates do not parse as numbers are dropped here, so a batch
built from a CSV only contains numeric coordinates.  Out-of-range values are
kept and left to the orchestrator's validation.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from src.isochrone_client.config import DEFAULT_CATEGORY, LINE_COLORS, STATION_CATEGORIES
from src.isochrone_client.models import Point

LON_COLUMN = "longitude"
LAT_COLUMN = "latitude"
NAME_COLUMN = "STATION_NAME_EN"
LOCATION_COLUMN = "STATION_LOCATION"


def infer_category(location: str | None, default: str = DEFAULT_CATEGORY) -> str:
    """
    Infer a station category from its location text.

    "monorail" is checked before "tram"; anything else falls back to
    ``default``.
    """
    if location:
        text = location.lower()
        if "monorail" in text:
            return "monorail"
        if "tram" in text:
            return "tram"
    return default


def get_line_color(point: Point) -> str:
    """
    Return the display colour for a point's isochrone.

    Trams and monorails have one colour each; metro stations are split into
    the green and red lines by their location text, defaulting to red.
    """
    if point.category in ("tram", "monorail"):
        return LINE_COLORS[point.category]

    location = (point.location or "").lower()
    if "green" in location or "mgrn" in location:
        return LINE_COLORS["metro_green"]
    return LINE_COLORS["metro_red"]


def _clean_text(value) -> str | None:
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def load_points_from_csv(
    csv_path: Path,
    category: str | None = None,
) -> list[Point]:
    """
    Load station points from a CSV file.

    Args:
        csv_path: Path to the station CSV.
        category: Category for every row.  When omitted, each row's category
                  is inferred from ``STATION_LOCATION``.

    Returns:
        Points in file order.

    Raises:
        FileNotFoundError: ``csv_path`` does not exist.
        ValueError: Longitude or latitude column is missing, or ``category``
                    is not a known station category.
    """
    if category is not None and category not in STATION_CATEGORIES:
        raise ValueError(
            f"Unknown station category '{category}'. "
            f"Expected one of: {', '.join(STATION_CATEGORIES)}"
        )
    if not csv_path.exists():
        raise FileNotFoundError(f"Station CSV not found: {csv_path}")

    df = pd.read_csv(csv_path, dtype=str, skipinitialspace=True)
    df.columns = [str(c).replace('"', "").strip() for c in df.columns]

    if LON_COLUMN not in df.columns or LAT_COLUMN not in df.columns:
        raise ValueError("CSV missing longitude or latitude columns")

    lons = pd.to_numeric(df[LON_COLUMN].str.strip(), errors="coerce")
    lats = pd.to_numeric(df[LAT_COLUMN].str.strip(), errors="coerce")
    usable = lons.notna() & lats.notna()

    dropped = int((~usable).sum())
    if dropped:
        print(f"  Dropped {dropped} row(s) with non-numeric coordinates from {csv_path.name}")

    points: list[Point] = []
    for idx in df.index[usable]:
        name = _clean_text(df.at[idx, NAME_COLUMN]) if NAME_COLUMN in df.columns else None
        location = (
            _clean_text(df.at[idx, LOCATION_COLUMN]) if LOCATION_COLUMN in df.columns else None
        )
        points.append(Point(
            longitude=float(lons[idx]),
            latitude=float(lats[idx]),
            name=name,
            category=category or infer_category(location),
            location=location,
        ))

    print(f"Loaded {len(points)} stations from {csv_path.name}")
    return points


def load_station_sets(sources: dict[str, Path]) -> list[Point]:
    """
    Load several station CSVs, one per category, into a single ordered list.

    Args:
        sources: Mapping of category → CSV path, processed in mapping order.

    Returns:
        Concatenated points, each category's stations in file order.
    """
    points: list[Point] = []
    for category, csv_path in sources.items():
        points.extend(load_points_from_csv(csv_path, category=category))

    counts = {cat: sum(1 for p in points if p.category == cat) for cat in sources}
    print("Station sets loaded:")
    for category, count in counts.items():
        print(f"  {category:<9} {count:>4}")
    return points
