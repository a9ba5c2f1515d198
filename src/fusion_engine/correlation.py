"""
Correlation Engine - scores HUMINT/SIGINT pairs that describe the same entity.

Two strategies, chosen by what the caller has:

- Authoritative: an upstream fusion analysis already asserts correlations.
  They are trusted and passed through, only filling in missing factors.
- Proximity-derived: without that analysis, co-located HUMINT and SIGINT
  observations are paired by planar distance. This only asserts
  co-location, never corroborated intent, so temporal and semantic factors
  stay at fixed defaults.
"""

import math
from typing import Any

from src.fusion_engine.config import (
    CONFIRMED_ABOVE,
    DEFAULT_FACTOR,
    DISTANCE_TOLERANCE_DEG,
    MIN_PROXIMITY_STRENGTH,
    PROBABLE_ABOVE,
    PROXIMITY_SEMANTIC_FACTOR,
    PROXIMITY_TEMPORAL_FACTOR,
    PROXIMITY_THRESHOLD_DEG,
)
from src.fusion_engine.extractors import SourceIndex
from src.fusion_engine.geo import planar_distance
from src.fusion_engine.payloads import (
    EntityCorrelationPayload,
    FusionAnalysis,
    parse_fusion,
)
from src.fusion_engine.schemas import (
    Coordinates,
    Correlation,
    CorrelationFactors,
    CorrelationMethod,
    CorrelationStrength,
    CorrelationType,
    SourceEntity,
)
from src.shared.logger import get_logger

logger = get_logger()


def bucket_correlation_type(value: float) -> CorrelationType:
    """Bucket a strength value; boundary values fall in the lower bucket."""
    if value > CONFIRMED_ABOVE:
        return CorrelationType.CONFIRMED
    if value > PROBABLE_ABOVE:
        return CorrelationType.PROBABLE
    return CorrelationType.POSSIBLE


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def _unit_or_default(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return default
    return _clamp_unit(float(value))


class CorrelationEngine:
    """Produces Correlation records from extracted source entities."""

    def __init__(
        self,
        threshold_deg: float = PROXIMITY_THRESHOLD_DEG,
        min_strength: float = MIN_PROXIMITY_STRENGTH,
        temporal_factor: float = PROXIMITY_TEMPORAL_FACTOR,
        semantic_factor: float = PROXIMITY_SEMANTIC_FACTOR,
        default_factor: float = DEFAULT_FACTOR,
    ):
        """Initialize the engine.

        Args:
            threshold_deg: Pairs at or beyond this planar distance are not correlated
            min_strength: Floor for proximity-derived strength
            temporal_factor: Fixed temporal factor for proximity correlations
            semantic_factor: Fixed semantic factor for proximity correlations
            default_factor: Fill-in for factors missing from authoritative correlations
        """
        self.threshold_deg = threshold_deg
        self.min_strength = min_strength
        self.temporal_factor = temporal_factor
        self.semantic_factor = semantic_factor
        self.default_factor = default_factor

    def correlate(
        self,
        humint: list[SourceEntity],
        sigint: list[SourceEntity],
        osint: list[SourceEntity] | None = None,
        fusion: FusionAnalysis | dict[str, Any] | None = None,
    ) -> list[Correlation]:
        """Correlate source entities.

        Args:
            humint: HUMINT source entities
            sigint: SIGINT source entities
            osint: Optional OSINT source entities (third leg)
            fusion: Optional fusion analysis with authoritative correlations
                (raises PayloadError if it does not validate)

        Returns:
            List of correlations, in discovery order
        """
        analysis = parse_fusion(fusion)
        if analysis is not None and analysis.fused_entities is not None:
            index = SourceIndex(humint, sigint, osint or [])
            correlations = self.pass_through(analysis, index)
            mode = CorrelationMethod.AUTHORITATIVE
        else:
            correlations = self.derive_from_proximity(humint, sigint, osint)
            mode = CorrelationMethod.PROXIMITY

        logger.info(f"Found {len(correlations)} correlations ({mode.value} mode)")
        return correlations

    # -------------------------------------------------------------------------
    # Authoritative mode
    # -------------------------------------------------------------------------

    def pass_through(self, analysis: FusionAnalysis, index: SourceIndex) -> list[Correlation]:
        """Take correlations asserted by the fusion analysis as they are."""
        correlations = []
        for entity in analysis.fused_entities or []:
            if entity is None:
                continue
            for raw in entity.correlations or []:
                if raw is None:
                    continue
                correlation = self.from_payload(raw, index, fused_entity_id=entity.id)
                if correlation is not None:
                    correlations.append(correlation)
        return correlations

    def from_payload(
        self,
        raw: EntityCorrelationPayload,
        index: SourceIndex,
        fused_entity_id: str | None = None,
    ) -> Correlation | None:
        """Build a Correlation from an upstream record, or None if it is unusable."""
        if not raw.humint_entity_id or not raw.sigint_emitter_id:
            logger.debug("Dropping correlation without both HUMINT and SIGINT ids")
            return None
        if raw.strength is None or raw.strength.value is None:
            logger.debug(
                f"Dropping correlation {raw.humint_entity_id}-{raw.sigint_emitter_id} without strength"
            )
            return None

        legs = [raw.humint_entity_id, raw.sigint_emitter_id]
        if raw.osint_entity_id:
            legs.append(raw.osint_entity_id)
        if not self.legs_are_distinct(legs, index):
            logger.debug(f"Rejecting same-source correlation {'-'.join(legs)}")
            return None

        value = _unit_or_default(raw.strength.value, self.default_factor)
        factors = raw.strength.factors or {}

        try:
            correlation_type = CorrelationType(str(raw.correlation_type).lower())
        except ValueError:
            correlation_type = bucket_correlation_type(value)

        return Correlation(
            humint_entity_id=raw.humint_entity_id,
            sigint_entity_id=raw.sigint_emitter_id,
            osint_entity_id=raw.osint_entity_id,
            strength=CorrelationStrength(
                value=value,
                factors=CorrelationFactors(
                    spatial=_unit_or_default(factors.get("spatial"), self.default_factor),
                    temporal=_unit_or_default(factors.get("temporal"), self.default_factor),
                    semantic=_unit_or_default(factors.get("semantic"), self.default_factor),
                ),
            ),
            correlation_type=correlation_type,
            method=CorrelationMethod.AUTHORITATIVE,
            fused_entity_id=fused_entity_id,
            notes=raw.notes,
        )

    @staticmethod
    def legs_are_distinct(legs: list[str], index: SourceIndex) -> bool:
        """True if no two legs share an id or resolve to the same source type."""
        if len(set(legs)) != len(legs):
            return False
        known = [t for t in (index.source_type_of(leg) for leg in legs) if t is not None]
        return len(set(known)) == len(known)

    # -------------------------------------------------------------------------
    # Proximity-derived mode
    # -------------------------------------------------------------------------

    def derive_from_proximity(
        self,
        humint: list[SourceEntity],
        sigint: list[SourceEntity],
        osint: list[SourceEntity] | None = None,
    ) -> list[Correlation]:
        """Pair every co-located HUMINT and SIGINT entity.

        Pairs closer than the threshold get ``strength = max(floor,
        1 - d / threshold)``. Entities without coordinates are skipped.
        """
        correlations = []
        for h in humint:
            h_coords = h.coordinates
            if h_coords is None:
                continue

            for s in sigint:
                s_coords = s.coordinates
                if s_coords is None or s.source_type == h.source_type:
                    continue

                distance = planar_distance(h_coords, s_coords)
                if not self.within_threshold(distance):
                    continue

                strength = self.proximity_strength(distance)
                nearest = self._nearest_osint(s_coords, osint or [])

                correlations.append(Correlation(
                    humint_entity_id=h.id,
                    sigint_entity_id=s.id,
                    osint_entity_id=nearest.id if nearest else None,
                    strength=CorrelationStrength(
                        value=strength,
                        factors=CorrelationFactors(
                            spatial=strength,
                            temporal=self.temporal_factor,
                            semantic=self.semantic_factor,
                        ),
                    ),
                    correlation_type=bucket_correlation_type(strength),
                    method=CorrelationMethod.PROXIMITY,
                ))

        return correlations

    def within_threshold(self, distance: float) -> bool:
        """True if ``distance`` is strictly inside the threshold.

        Distances within float rounding of the threshold count as at the
        threshold: 49.91 - 49.81 computes as 0.09999999999999432.
        """
        return distance < self.threshold_deg and not math.isclose(
            distance, self.threshold_deg, rel_tol=0.0, abs_tol=DISTANCE_TOLERANCE_DEG
        )

    def proximity_strength(self, distance: float) -> float:
        """Strength for a pair ``distance`` degrees apart."""
        return max(self.min_strength, 1 - distance / self.threshold_deg)

    def _nearest_osint(self, anchor: Coordinates, osint: list[SourceEntity]) -> SourceEntity | None:
        best, best_distance = None, self.threshold_deg
        for candidate in osint:
            coords = candidate.coordinates
            if coords is None:
                continue
            distance = planar_distance(anchor, coords)
            if self.within_threshold(distance) and distance < best_distance:
                best, best_distance = candidate, distance
        return best
