"""
Source Entity Extractors - turn raw analysis payloads into SourceEntity lists.

Each extractor assigns every observation a stable id once, at extraction
time (``humint-obs-3``, ``sigint-ad-0``, emitter ids...). Later stages refer
to observations only through those ids, resolved with a ``SourceIndex``.
Defaults (confidence, timestamp) are applied here and nowhere else.
"""

import math
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from src.fusion_engine.config import EOB_DEFAULT_ACCURACY_M
from src.fusion_engine.exceptions import PayloadError
from src.fusion_engine.geo import coordinates_from_text, normalize
from src.fusion_engine.payloads import (
    EmitterClassification,
    EmitterLocation,
    EnemyForceReport,
    EobElement,
    LocationReport,
    parse_humint,
    parse_osint,
    parse_sigint,
)
from src.fusion_engine.schemas import (
    Confidence,
    Coordinates,
    EntityLocation,
    SourceEntity,
    SourceType,
)
from src.shared.logger import get_logger

logger = get_logger()


# =============================================================================
# Field helpers
# =============================================================================


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _timestamp(value: Any, fallback: str | None) -> str | None:
    return value if parse_timestamp(value) else fallback


def _accuracy(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _entity_location(*candidates: Any, accuracy: Any = None) -> EntityLocation | None:
    """First candidate that normalizes to coordinates, as an EntityLocation."""
    for raw in candidates:
        if raw is None or isinstance(raw, str):
            continue
        coordinates = normalize(raw)
        if coordinates:
            return EntityLocation(coordinates=coordinates, accuracy=_accuracy(accuracy))
    return None


def _location_or_text(location: EntityLocation | None, *texts: Any) -> EntityLocation | None:
    """Structured location, else the first coordinate pair found in the texts."""
    if location is not None:
        return location
    for text in texts:
        coordinates = coordinates_from_text(text)
        if coordinates:
            return EntityLocation(coordinates=coordinates)
    return None


def _place_name(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw.strip() or None
    if isinstance(raw, Mapping):
        return raw.get("name")
    return None


def _compact(**values: Any) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v not in (None, "", [], {})}


def _safe_parse(parser: Callable[[Any], Any], payload: Any) -> Any:
    try:
        return parser(payload)
    except PayloadError as e:
        logger.warning(f"{e}; no entities extracted")
        return None


# =============================================================================
# HUMINT
# =============================================================================


def _humint_force(index: int, force: str | EnemyForceReport, parent_ts: str | None) -> SourceEntity:
    entity_id = f"humint-force-{index}"
    if isinstance(force, str):
        return SourceEntity(
            id=entity_id,
            source_type=SourceType.HUMINT,
            type="force",
            name=force,
            description=force,
            location=_location_or_text(None, force),
            timestamp=parent_ts,
        )

    description = force.description or " ".join(p for p in (force.size, force.type) if p) or "Enemy force"
    if force.activity and not force.description:
        description = f"{description} - {force.activity}"

    return SourceEntity(
        id=entity_id,
        source_type=SourceType.HUMINT,
        type="force",
        name=force.type or description,
        description=description,
        location=_location_or_text(
            _entity_location(force.coordinates, force.location),
            force.location,
            force.description,
            force.activity,
        ),
        place_name=_place_name(force.location),
        confidence=Confidence.parse(force.confidence),
        timestamp=_timestamp(force.time, parent_ts),
        attributes=_compact(size=force.size, activity=force.activity, forceType=force.type),
    )


def _humint_location(index: int, loc: str | LocationReport, parent_ts: str | None) -> SourceEntity:
    entity_id = f"humint-location-{index}"
    if isinstance(loc, str):
        return SourceEntity(
            id=entity_id,
            source_type=SourceType.HUMINT,
            type="location",
            name=loc,
            description=loc,
            place_name=loc,
            location=_location_or_text(None, loc),
            timestamp=parent_ts,
        )

    return SourceEntity(
        id=entity_id,
        source_type=SourceType.HUMINT,
        type="location",
        name=loc.name or "",
        description=loc.description or loc.name or "",
        location=_location_or_text(_entity_location(loc.coordinates), loc.description),
        place_name=loc.name or None,
        confidence=Confidence.parse(loc.confidence),
        timestamp=parent_ts,
        attributes=_compact(relatedActivity=loc.related_activity),
    )


def extract_humint(payload: Any) -> list[SourceEntity]:
    """Extract entities from a HUMINT analysis.

    Walks enemy forces, tactical observations, threats and locations. Each
    entity id encodes its collection and its position in the original list,
    e.g. ``humint-obs-2`` for the third tactical observation.
    Records without structured coordinates fall back to a coordinate pair
    written in their text (``"... at 49.98081, 36.25272"``).

    Args:
        payload: HUMINT analysis dict or HumintAnalysis model

    Returns:
        List of SourceEntity, in collection order
    """
    analysis = _safe_parse(parse_humint, payload)
    if analysis is None or analysis.intelligence is None:
        return []

    intel = analysis.intelligence
    parent_ts = analysis.timestamp
    entities: list[SourceEntity] = []

    for index, force in enumerate(intel.enemy_forces or []):
        if force is None:
            continue
        entities.append(_humint_force(index, force, parent_ts))

    for index, obs in enumerate(intel.tactical_observations or []):
        if obs is None:
            continue
        entities.append(SourceEntity(
            id=f"humint-obs-{index}",
            source_type=SourceType.HUMINT,
            type="observation",
            name=f"Observation {index + 1}",
            description=obs.text or "",
            location=_location_or_text(_entity_location(obs.location), obs.location, obs.text),
            place_name=_place_name(obs.location),
            confidence=Confidence.parse(obs.confidence),
            timestamp=_timestamp(obs.time, parent_ts),
            attributes=_compact(category=obs.category, entities=obs.entities),
        ))

    for index, threat in enumerate(intel.threats or []):
        if threat is None:
            continue
        entities.append(SourceEntity(
            id=f"humint-threat-{index}",
            source_type=SourceType.HUMINT,
            type="threat",
            name=f"Threat {index + 1}",
            description=threat.description or "",
            location=_location_or_text(_entity_location(threat.location), threat.location, threat.description),
            place_name=_place_name(threat.location),
            confidence=Confidence.parse(threat.confidence),
            timestamp=_timestamp(threat.time, parent_ts),
            attributes=_compact(
                severity=threat.severity,
                category=threat.category,
                immediacy=threat.immediacy,
            ),
        ))

    for index, loc in enumerate(intel.locations or []):
        if loc is None:
            continue
        entities.append(_humint_location(index, loc, parent_ts))

    logger.debug(f"Extracted {len(entities)} HUMINT entities")
    return entities


# =============================================================================
# SIGINT
# =============================================================================


def latest_fix(fixes: Iterable[EmitterLocation]) -> EmitterLocation | None:
    """Most recently timestamped location record.

    Ties keep the earlier record in the list; records whose timestamp does
    not parse rank below any record whose timestamp does.
    """
    best: EmitterLocation | None = None
    best_time: datetime | None = None
    for fix in fixes:
        when = parse_timestamp(fix.timestamp)
        if best is None:
            best, best_time = fix, when
        elif when is not None and (best_time is None or when > best_time):
            best, best_time = fix, when
    return best


def _describe_air_defense(e: EobElement) -> tuple[str, str]:
    return e.name or "Unknown Air Defense", f"{e.name or 'Unknown'} - {e.type or 'SAM'}"


def _describe_ground_force(e: EobElement) -> tuple[str, str]:
    detail = " ".join(p for p in (e.echelon, e.equipment) if p)
    return e.name or "Unknown Ground Unit", f"{e.name or 'Unknown'} - {detail}".rstrip(" -")


def _describe_naval(e: EobElement) -> tuple[str, str]:
    return e.name or "Unknown Naval Vessel", f"{e.name or 'Unknown'} - {e.vessel_class or 'vessel'}"


def _describe_air(e: EobElement) -> tuple[str, str]:
    return e.platform or "Unknown Aircraft", f"{e.platform or 'Unknown'} - {e.mission or 'mission'}"


def _describe_unknown(e: EobElement) -> tuple[str, str]:
    name = e.name or e.platform or "Unknown Element"
    return name, e.type or name


# (payload attribute, entity type, id prefix, describer)
EOB_CLASSES: tuple[tuple[str, str, str, Callable[[EobElement], tuple[str, str]]], ...] = (
    ("air_defense", "air-defense", "ad", _describe_air_defense),
    ("ground_forces", "ground-force", "gf", _describe_ground_force),
    ("naval_forces", "naval", "naval", _describe_naval),
    ("air_forces", "air", "air", _describe_air),
    ("unknown", "unknown", "unknown", _describe_unknown),
)


def extract_sigint(payload: Any) -> list[SourceEntity]:
    """Extract entities from a SIGINT analysis.

    Emitters keep their upstream id and take the position of their most
    recent location fix. Electronic order of battle elements get positional
    ids (``sigint-ad-0``) and a default accuracy for their class.

    Args:
        payload: SIGINT analysis dict or SigintAnalysis model

    Returns:
        List of SourceEntity, emitters first
    """
    analysis = _safe_parse(parse_sigint, payload)
    if analysis is None:
        return []

    parent_ts = analysis.timestamp
    entities: list[SourceEntity] = []

    for index, emitter in enumerate(analysis.emitters or []):
        if emitter is None:
            continue
        classification = emitter.classification or EmitterClassification()
        fix = latest_fix(f for f in emitter.locations or [] if f is not None)
        platform = classification.type

        entities.append(SourceEntity(
            id=emitter.id or f"sigint-emitter-{index}",
            source_type=SourceType.SIGINT,
            type="emitter",
            name=platform or "Unknown Radar",
            description=f"{platform or 'Unknown'} {classification.model or ''}".strip(),
            classification=platform,
            location=_entity_location(fix.coordinates, accuracy=fix.accuracy) if fix else None,
            confidence=Confidence.parse(emitter.confidence),
            timestamp=_timestamp(emitter.last_detected, parent_ts),
            attributes=_compact(
                model=classification.model,
                capabilities=classification.capabilities,
                firstDetected=emitter.first_detected,
                lastDetected=emitter.last_detected,
            ),
        ))

    eob = analysis.electronic_order_of_battle
    if eob is not None:
        for attr, entity_type, prefix, describe in EOB_CLASSES:
            for index, element in enumerate(getattr(eob, attr) or []):
                if element is None:
                    continue
                name, description = describe(element)
                entities.append(SourceEntity(
                    id=f"sigint-{prefix}-{index}",
                    source_type=SourceType.SIGINT,
                    type=entity_type,
                    name=name,
                    description=description,
                    classification=element.type,
                    location=_entity_location(
                        element.coordinates, accuracy=EOB_DEFAULT_ACCURACY_M[entity_type]
                    ),
                    confidence=Confidence.parse(element.confidence),
                    timestamp=parent_ts,
                    attributes=_compact(
                        elementId=element.id,
                        echelon=element.echelon,
                        equipment=element.equipment,
                        vesselClass=element.vessel_class,
                        mission=element.mission,
                        range=element.range,
                    ),
                ))

    logger.debug(f"Extracted {len(entities)} SIGINT entities")
    return entities


# =============================================================================
# OSINT
# =============================================================================


def extract_osint(payload: Any) -> list[SourceEntity]:
    """Extract entities from an OSINT collection."""
    analysis = _safe_parse(parse_osint, payload)
    if analysis is None:
        return []

    entities = []
    for index, item in enumerate(analysis.items or []):
        if item is None:
            continue
        entities.append(SourceEntity(
            id=item.id or f"osint-item-{index}",
            source_type=SourceType.OSINT,
            type=item.type or "report",
            name=item.title or f"Report {index + 1}",
            description=item.description or item.text or item.title or "",
            location=_entity_location(item.coordinates, item.location),
            place_name=_place_name(item.location),
            confidence=Confidence.parse(item.confidence),
            timestamp=_timestamp(item.timestamp, analysis.timestamp),
            attributes=_compact(source=item.source, url=item.url),
        ))

    logger.debug(f"Extracted {len(entities)} OSINT entities")
    return entities


# =============================================================================
# Index
# =============================================================================


class SourceIndex:
    """Lookup of extracted entities by their stable id."""

    def __init__(self, *collections: Iterable[SourceEntity]):
        self._entities: dict[str, SourceEntity] = {}
        for collection in collections:
            for entity in collection:
                if entity.id in self._entities:
                    logger.debug(f"Duplicate source id {entity.id}, keeping first occurrence")
                    continue
                self._entities[entity.id] = entity

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def get(self, entity_id: str | None) -> SourceEntity | None:
        if entity_id is None:
            return None
        return self._entities.get(entity_id)

    def source_type_of(self, entity_id: str | None) -> SourceType | None:
        entity = self.get(entity_id)
        return entity.source_type if entity else None

    def coordinates_of(self, entity_id: str | None) -> Coordinates | None:
        entity = self.get(entity_id)
        return entity.coordinates if entity else None
