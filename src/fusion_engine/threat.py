"""
Threat assessment - areas of interest and overall threat level.
"""

from src.fusion_engine.config import (
    HIGH_CONFIDENCE_STRENGTH,
    METERS_PER_DEGREE,
    MILITARY_TYPE_KEYWORDS,
    THREAT_AREA_MIN_POINTS,
    THREAT_AREA_MIN_RADIUS_M,
)
from src.fusion_engine.extractors import SourceIndex
from src.fusion_engine.geo import centroid, planar_distance
from src.fusion_engine.schemas import (
    Confidence,
    Coordinates,
    FusedEntity,
    ThreatArea,
    ThreatLevel,
)
from src.shared.logger import get_logger

logger = get_logger()


def threat_level_from_counts(high_conf_count: int, military_count: int) -> ThreatLevel:
    """Rule table mapping correlation/entity counts to a threat level."""
    if high_conf_count >= 3 and military_count >= 2:
        return ThreatLevel.HIGH
    if high_conf_count >= 1 or military_count >= 1:
        return ThreatLevel.MEDIUM
    return ThreatLevel.LOW


def is_military_type(entity_type: str) -> bool:
    lowered = entity_type.lower()
    return any(keyword in lowered for keyword in MILITARY_TYPE_KEYWORDS)


def classify_threat_level(entities: list[FusedEntity]) -> ThreatLevel:
    """Score situation severity from correlation quality and entity types.

    Counts correlations stronger than 0.7 and fused entities whose type
    mentions military, force, vehicle or radar, then applies
    ``threat_level_from_counts``.
    """
    high_conf_count = sum(
        1
        for entity in entities
        for correlation in entity.correlations
        if correlation.strength.value > HIGH_CONFIDENCE_STRENGTH
    )
    military_count = sum(1 for entity in entities if is_military_type(entity.type))
    return threat_level_from_counts(high_conf_count, military_count)


def correlated_points(entities: list[FusedEntity], index: SourceIndex) -> list[Coordinates]:
    """Distinct coordinates of the sources referenced by correlations.

    Sources reported at the same position contribute a single point.
    """
    points: list[Coordinates] = []
    for entity in entities:
        for correlation in entity.correlations:
            for leg in correlation.source_ids:
                coordinates = index.coordinates_of(leg)
                if coordinates is not None and coordinates not in points:
                    points.append(coordinates)
    return points


def synthesize_threat_areas(
    entities: list[FusedEntity],
    index: SourceIndex,
    threat_level: ThreatLevel | None = None,
    timestamp: str | None = None,
    min_points: int = THREAT_AREA_MIN_POINTS,
    min_radius_m: float = THREAT_AREA_MIN_RADIUS_M,
) -> list[ThreatArea]:
    """Build the primary area of interest around correlated activity.

    The area is centered on the centroid of all correlated coordinates; its
    radius is the mean planar distance to the centroid converted at
    111 km per degree, floored at ``min_radius_m``. Fewer than
    ``min_points`` coordinates yield no area.

    Args:
        entities: Fused entities whose correlations define the points
        index: Source entities by id, for coordinate lookup
        threat_level: Level to stamp on the area (classified if omitted)
        timestamp: Timestamp to stamp on the area

    Returns:
        An empty list or a single ThreatArea
    """
    points = correlated_points(entities, index)
    if len(points) < min_points:
        logger.debug(f"Only {len(points)} correlated coordinates, no threat area")
        return []

    center = centroid(points)
    mean_distance = sum(planar_distance(center, p) for p in points) / len(points)

    return [
        ThreatArea(
            center=center,
            radius=max(mean_distance * METERS_PER_DEGREE, min_radius_m),
            threat_level=threat_level or classify_threat_level(entities),
            confidence=Confidence.MEDIUM,
            timestamp=timestamp,
        )
    ]
