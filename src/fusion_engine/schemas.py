"""
Entity, Correlation and Fusion Result schemas for the Fusion Engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    """Intelligence disciplines feeding the engine."""

    HUMINT = "humint"
    SIGINT = "sigint"
    OSINT = "osint"


class Confidence(str, Enum):
    """Analyst confidence levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    FALLBACK = "fallback"

    @classmethod
    def parse(cls, value: Any, default: "Confidence | None" = None) -> "Confidence":
        """Map a raw confidence value to a level, falling back to medium."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return default or cls.MEDIUM


class CorrelationType(str, Enum):
    """Strength buckets for correlations."""

    CONFIRMED = "confirmed"
    PROBABLE = "probable"
    POSSIBLE = "possible"


class CorrelationMethod(str, Enum):
    """How a correlation was obtained."""

    AUTHORITATIVE = "authoritative"  # Supplied by upstream fusion analysis
    PROXIMITY = "proximity"          # Derived from co-location only


class ThreatLevel(str, Enum):
    """Overall situation severity."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class Coordinates:
    """A normalized WGS84 position in decimal degrees."""

    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class EntityLocation:
    """Resolved position of an observation plus its error radius."""

    coordinates: Coordinates
    accuracy: float | None = None  # meters

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinates": self.coordinates.to_dict(),
            "accuracy": self.accuracy,
        }


@dataclass(frozen=True)
class SourceEntity:
    """One observation extracted from a single source payload."""

    id: str
    source_type: SourceType
    type: str
    timestamp: str | None
    location: EntityLocation | None = None
    confidence: Confidence = Confidence.MEDIUM

    name: str = ""
    description: str = ""
    classification: str | None = None  # SIGINT platform type
    place_name: str | None = None      # Free-text location, not geocoded

    # Subtype-specific extras (category, severity, echelon, range...)
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def coordinates(self) -> Coordinates | None:
        return self.location.coordinates if self.location else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            "id": self.id,
            "sourceType": self.source_type.value,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "classification": self.classification,
            "placeName": self.place_name,
            "location": self.location.to_dict() if self.location else None,
            "confidence": self.confidence.value,
            "timestamp": self.timestamp,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class CorrelationFactors:
    """Per-dimension similarity scores, each in [0, 1]."""

    spatial: float
    temporal: float
    semantic: float

    def to_dict(self) -> dict[str, float]:
        return {
            "spatial": self.spatial,
            "temporal": self.temporal,
            "semantic": self.semantic,
        }


@dataclass(frozen=True)
class CorrelationStrength:
    """Overall correlation score with its contributing factors."""

    value: float
    factors: CorrelationFactors

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "factors": self.factors.to_dict()}


@dataclass(frozen=True)
class Correlation:
    """Scored link between a HUMINT and a SIGINT observation."""

    humint_entity_id: str
    sigint_entity_id: str
    strength: CorrelationStrength
    correlation_type: CorrelationType
    method: CorrelationMethod

    # Optional open-source third leg
    osint_entity_id: str | None = None

    # Owning fused entity (assigned during aggregation)
    fused_entity_id: str | None = None
    notes: str | None = None

    @property
    def id(self) -> str:
        legs = [self.humint_entity_id, self.sigint_entity_id]
        if self.osint_entity_id:
            legs.append(self.osint_entity_id)
        return "-".join(legs)

    @property
    def source_ids(self) -> list[str]:
        ids = [self.humint_entity_id, self.sigint_entity_id]
        if self.osint_entity_id:
            ids.append(self.osint_entity_id)
        return ids

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            "id": self.id,
            "entityId": self.fused_entity_id,
            "humintEntityId": self.humint_entity_id,
            "sigintEmitterId": self.sigint_entity_id,
            "osintEntityId": self.osint_entity_id,
            "correlationType": self.correlation_type.value,
            "method": self.method.value,
            "strength": self.strength.to_dict(),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class FusedEntity:
    """A real-world object inferred from one or more correlated observations."""

    id: str
    type: str
    humint_sources: list[str]
    sigint_sources: list[str]
    osint_sources: list[str]
    combined_confidence: Confidence
    correlations: list[Correlation]
    location: EntityLocation | None = None
    description: str = ""
    timestamp: str | None = None

    @property
    def name(self) -> str:
        return self.type[:1].upper() + self.type[1:]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            "id": self.id,
            "type": self.type,
            "sourceType": "fusion",
            "name": self.name,
            "description": self.description,
            "humintSources": list(self.humint_sources),
            "sigintSources": list(self.sigint_sources),
            "osintSources": list(self.osint_sources),
            "location": self.location.to_dict() if self.location else None,
            "correlations": [c.to_dict() for c in self.correlations],
            "confidence": self.combined_confidence.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ThreatArea:
    """Geographic cluster of correlated activity."""

    center: Coordinates
    radius: float  # meters
    threat_level: ThreatLevel
    confidence: Confidence = Confidence.MEDIUM
    timestamp: str | None = None
    id: str = "primary-threat-area"
    name: str = "Primary Area of Interest"
    description: str = "Significant activity detected in this area"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "threat-area",
            "name": self.name,
            "description": self.description,
            "center": [self.center.latitude, self.center.longitude],
            "radius": self.radius,
            "threatLevel": self.threat_level.value,
            "confidence": self.confidence.value,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Prediction:
    """Upstream predicted event, adapted for display."""

    id: str | None
    name: str
    description: str
    confidence: float | None
    confidence_level: Confidence
    type: str = "event"
    timeframe: str | None = None
    formatted_timeframe: str | None = None
    location: Coordinates | None = None
    evidence_events: list[Any] = field(default_factory=list)
    supporting_evidence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "timeframe": self.timeframe,
            "formattedTimeframe": self.formatted_timeframe,
            "confidence": self.confidence,
            "confidenceLevel": self.confidence_level.value,
            "location": self.location.to_dict() if self.location else None,
            "evidenceEvents": list(self.evidence_events),
            "supportingEvidence": self.supporting_evidence,
        }


@dataclass(frozen=True)
class FusionOverview:
    """Headline assessment of a fusion run."""

    threat_level: ThreatLevel
    confidence_level: Confidence
    correlation_strength: float
    timestamp: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "threatLevel": self.threat_level.value,
            "confidenceLevel": self.confidence_level.value,
            "correlationStrength": self.correlation_strength,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class FusionResult:
    """Everything a fusion run produces."""

    entities: list[FusedEntity]
    correlations: list[Correlation]
    predicted_events: list[Prediction]
    threat_areas: list[ThreatArea]
    overview: FusionOverview
    source_entities: list[SourceEntity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape consumed by visualization and export."""
        return {
            "entities": [e.to_dict() for e in self.entities],
            "correlations": [c.to_dict() for c in self.correlations],
            "predictedEvents": [p.to_dict() for p in self.predicted_events],
            "threatAreas": [a.to_dict() for a in self.threat_areas],
            "overview": self.overview.to_dict(),
            "sourceEntities": [s.to_dict() for s in self.source_entities],
        }
