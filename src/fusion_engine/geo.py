"""
Geo Normalizer - canonical coordinates from heterogeneous location shapes.

Upstream analyses describe positions as ``{latitude, longitude}`` objects,
``{lat, lng}`` objects or ``[lat, lng]`` pairs, sometimes wrapped in a
``{coordinates: ...}`` location record. Everything downstream works on
``Coordinates`` produced here.
"""

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from src.fusion_engine.schemas import Coordinates
from src.shared.config import settings

LATITUDE_KEYS = ("latitude", "lat")
LONGITUDE_KEYS = ("longitude", "lng", "lon")

# Theatre window affected by the dropped-leading-digit defect
TRUNCATED_LAT_RANGE = (0.0, 10.0)    # [low, high)
TRUNCATED_LNG_RANGE = (30.0, 41.0)   # (low, high)
TRUNCATED_LAT_OFFSET = 40.0

# Decimal pair in free text, e.g. "spotted at 49.98081, 36.25272"
TEXT_COORDINATE_PATTERN = re.compile(r"(-?\d+\.\d+)\s*,\s*(-?\d+\.\d+)")


def repair_truncated_latitude(latitude: float, longitude: float) -> float:
    """Restore a theatre latitude whose leading digit was dropped upstream.

    Data entry for the operating theatre (latitudes 4x.xxx) sometimes loses
    the leading "4", so 9.92 arrives instead of 49.92. Only the window
    ``0 <= lat < 10`` with ``30 < lng < 41`` is touched; any other latitude is
    returned unchanged. This is a compatibility shim for that defect, not a
    geodetic transform.
    """
    lat_low, lat_high = TRUNCATED_LAT_RANGE
    lng_low, lng_high = TRUNCATED_LNG_RANGE
    if lat_low <= latitude < lat_high and lng_low < longitude < lng_high:
        return latitude + TRUNCATED_LAT_OFFSET
    return latitude


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _resolve_pair(raw: Any) -> tuple[Any, Any] | None:
    """Pull an unvalidated (lat, lng) pair out of any supported shape."""
    if isinstance(raw, Coordinates):
        return raw.latitude, raw.longitude

    if isinstance(raw, Mapping):
        if "coordinates" in raw and not any(k in raw for k in LATITUDE_KEYS):
            return _resolve_pair(raw["coordinates"])
        return _first_present(raw, LATITUDE_KEYS), _first_present(raw, LONGITUDE_KEYS)

    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if len(raw) >= 2:
            return raw[0], raw[1]
        return None

    # Pydantic models and other attribute holders
    latitude = next((getattr(raw, k) for k in LATITUDE_KEYS if getattr(raw, k, None) is not None), None)
    longitude = next((getattr(raw, k) for k in LONGITUDE_KEYS if getattr(raw, k, None) is not None), None)
    if latitude is None and longitude is None:
        return None
    return latitude, longitude


def normalize(raw: Any, repair: bool | None = None) -> Coordinates | None:
    """Canonicalize a raw coordinate value.

    Args:
        raw: ``{latitude, longitude}``, ``{lat, lng}``, ``[lat, lng]``,
            ``{coordinates: ...}`` or an existing ``Coordinates``
        repair: Apply the truncated-latitude repair; defaults to the
            ``latitude_repair_enabled`` setting

    Returns:
        Coordinates, or None if the value cannot be resolved to two finite
        numbers inside the valid latitude/longitude range
    """
    if raw is None:
        return None

    pair = _resolve_pair(raw)
    if pair is None:
        return None

    latitude, longitude = pair
    if not (_is_finite_number(latitude) and _is_finite_number(longitude)):
        return None

    latitude, longitude = float(latitude), float(longitude)
    if repair is None:
        repair = settings.latitude_repair_enabled
    if repair:
        latitude = repair_truncated_latitude(latitude, longitude)

    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        return None

    return Coordinates(latitude=latitude, longitude=longitude)


def coordinates_from_text(text: Any, repair: bool | None = None) -> Coordinates | None:
    """First decimal ``lat, lng`` pair in free text that normalizes.

    Field reports often carry positions only inside their prose. Each match
    goes through ``normalize``, so the truncated-latitude repair and the
    range check apply exactly as for structured coordinates.
    """
    if not isinstance(text, str):
        return None
    for match in TEXT_COORDINATE_PATTERN.finditer(text):
        coordinates = normalize([float(match.group(1)), float(match.group(2))], repair=repair)
        if coordinates:
            return coordinates
    return None


def planar_distance(a: Coordinates, b: Coordinates) -> float:
    """Equirectangular distance in degrees (fine over a few degrees)."""
    return math.hypot(b.latitude - a.latitude, b.longitude - a.longitude)


def centroid(points: Sequence[Coordinates]) -> Coordinates:
    """Arithmetic mean position of a non-empty point set."""
    count = len(points)
    return Coordinates(
        latitude=sum(p.latitude for p in points) / count,
        longitude=sum(p.longitude for p in points) / count,
    )
