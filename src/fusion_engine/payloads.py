"""
Pydantic models for upstream analysis payloads.

The HUMINT, SIGINT, OSINT and fusion analysis services emit camelCase JSON
with many optional parts. These models accept that JSON as-is (unknown keys
are kept, missing collections stay ``None``, numeric ids become strings).

Record lists are validated one record at a time: a record that does not
validate becomes a ``None`` placeholder, so its siblings survive and
positional ids (``humint-obs-3``) still line up with the upstream list.
Only a payload whose own structure is wrong, e.g. a list where an object is
expected, is rejected as a whole.
"""

from typing import Annotated, Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)

from src.fusion_engine.exceptions import PayloadError
from src.shared.logger import get_logger

logger = get_logger()


def _keep_valid_records(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    """Validate list items one by one, replacing invalid ones with None."""
    if not isinstance(value, list):
        return handler(value)

    records: list[Any] = []
    for index, item in enumerate(value):
        try:
            records.extend(handler([item]))
        except ValidationError as e:
            logger.debug(f"Skipping invalid record at index {index}: {e.error_count()} validation error(s)")
            records.append(None)
    return records


SkipInvalid = WrapValidator(_keep_valid_records)


class PayloadModel(BaseModel):
    """Base for all upstream payload models."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)


# =============================================================================
# HUMINT
# =============================================================================


class EnemyForceReport(PayloadModel):
    """Structured enemy force sighting."""
    type: str | None = None
    size: str | None = None
    location: Any = None
    activity: str | None = None
    description: str | None = None
    coordinates: Any = None
    time: str | None = None
    confidence: Any = None


class TacticalObservation(PayloadModel):
    """A tactical observation from a field report."""
    text: str | None = None
    category: str | None = None
    entities: dict[str, Any] | None = None
    location: Any = None
    time: str | None = None
    confidence: Any = None


class ThreatReport(PayloadModel):
    """A threat assessment; ``location`` may be a record or a bare place name."""
    description: str | None = None
    category: str | None = None
    severity: str | None = None
    immediacy: str | None = None
    location: Any = None
    time: str | None = None
    confidence: Any = None


class LocationReport(PayloadModel):
    """A location mentioned in a field report."""
    name: str | None = None
    coordinates: Any = None
    description: str | None = None
    related_activity: str | None = Field(default=None, alias="relatedActivity")
    confidence: Any = None


class IntelligenceData(PayloadModel):
    """Structured intelligence extracted from a HUMINT report."""
    summary: str | None = None
    enemy_forces: Annotated[list[str | EnemyForceReport | None] | None, SkipInvalid] = Field(
        default=None, alias="enemyForces"
    )
    tactical_observations: Annotated[list[TacticalObservation | None] | None, SkipInvalid] = Field(
        default=None, alias="tacticalObservations"
    )
    threats: Annotated[list[ThreatReport | None] | None, SkipInvalid] = None
    locations: Annotated[list[str | LocationReport | None] | None, SkipInvalid] = None


class HumintAnalysis(PayloadModel):
    """HUMINT analysis response."""
    report_id: str | None = Field(default=None, alias="reportId")
    analysis_id: str | None = Field(default=None, alias="analysisId")
    timestamp: str | None = None
    intelligence: IntelligenceData | None = None
    predictions: list[Any] | None = None


# =============================================================================
# SIGINT
# =============================================================================


class EmitterClassification(PayloadModel):
    """Platform classification of a radar emitter."""
    type: str | None = None
    model: str | None = None
    capabilities: list[str] | None = None
    confidence: Any = None


class EmitterLocation(PayloadModel):
    """A timed position fix for an emitter."""
    timestamp: str | None = None
    coordinates: Any = None
    accuracy: float | None = None
    confidence: Any = None


class RadarEmitter(PayloadModel):
    """A tracked radar emitter."""
    id: str | None = None
    classification: EmitterClassification | None = None
    locations: Annotated[list[EmitterLocation | None] | None, SkipInvalid] = None
    confidence: Any = None
    first_detected: str | None = Field(default=None, alias="firstDetected")
    last_detected: str | None = Field(default=None, alias="lastDetected")


class EobElement(PayloadModel):
    """An electronic order of battle element (any class)."""
    id: str | None = None
    name: str | None = None
    platform: str | None = None
    type: str | None = None
    vessel_class: str | None = Field(default=None, alias="class")
    echelon: str | None = None
    equipment: str | None = None
    mission: str | None = None
    range: Any = None
    coordinates: Any = None
    confidence: Any = None


class ElectronicOrderOfBattle(PayloadModel):
    """Electronic order of battle, keyed by element class.

    Accepts both the analysis service keys (``airDefense``) and the
    builder keys (``airDefenseElements``).
    """
    air_defense: Annotated[list[EobElement | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("airDefense", "airDefenseElements", "air_defense")
    )
    ground_forces: Annotated[list[EobElement | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("groundForces", "groundForceElements", "ground_forces")
    )
    naval_forces: Annotated[list[EobElement | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("navalForces", "navalElements", "naval_forces")
    )
    air_forces: Annotated[list[EobElement | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("airForces", "airElements", "air_forces")
    )
    unknown: Annotated[list[EobElement | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("unknown", "unknownElements")
    )


class SigintAnalysis(PayloadModel):
    """SIGINT analysis response."""
    analysis_id: str | None = Field(default=None, alias="analysisId")
    timestamp: str | None = None
    emitters: Annotated[list[RadarEmitter | None] | None, SkipInvalid] = None
    electronic_order_of_battle: ElectronicOrderOfBattle | None = Field(
        default=None, alias="electronicOrderOfBattle"
    )


# =============================================================================
# OSINT
# =============================================================================


class OsintItem(PayloadModel):
    """An open-source item (article, post, imagery note)."""
    id: str | None = None
    type: str | None = None
    title: str | None = None
    text: str | None = None
    description: str | None = None
    source: str | None = None
    url: str | None = None
    location: Any = None
    coordinates: Any = None
    confidence: Any = None
    timestamp: str | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "publishedAt")
    )


class OsintAnalysis(PayloadModel):
    """OSINT collection response."""
    analysis_id: str | None = Field(default=None, alias="analysisId")
    timestamp: str | None = None
    items: Annotated[list[OsintItem | None] | None, SkipInvalid] = Field(
        default=None, validation_alias=AliasChoices("items", "reports")
    )


# =============================================================================
# Fusion
# =============================================================================


class StrengthPayload(PayloadModel):
    """Correlation strength as asserted upstream."""
    value: float | None = None
    factors: dict[str, Any] | None = None


class EntityCorrelationPayload(PayloadModel):
    """Analyst-supplied HUMINT/SIGINT correlation."""
    humint_entity_id: str | None = Field(default=None, alias="humintEntityId")
    sigint_emitter_id: str | None = Field(default=None, alias="sigintEmitterId")
    osint_entity_id: str | None = Field(default=None, alias="osintEntityId")
    strength: StrengthPayload | None = None
    correlation_type: str | None = Field(default=None, alias="correlationType")
    notes: str | None = None


class FusedEntityPayload(PayloadModel):
    """Analyst-supplied fused entity grouping."""
    id: str
    type: str | None = None
    humint_sources: Annotated[list[str | None] | None, SkipInvalid] = Field(
        default=None, alias="humintSources"
    )
    sigint_sources: Annotated[list[str | None] | None, SkipInvalid] = Field(
        default=None, alias="sigintSources"
    )
    osint_sources: Annotated[list[str | None] | None, SkipInvalid] = Field(
        default=None, alias="osintSources"
    )
    combined_confidence: Any = Field(default=None, alias="combinedConfidence")
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    correlations: Annotated[list[EntityCorrelationPayload | None] | None, SkipInvalid] = None


class FusionAnalysis(PayloadModel):
    """Fusion analysis response carrying authoritative correlations."""
    fusion_id: str | None = Field(default=None, alias="fusionId")
    timestamp: str | None = None
    humint_analysis_id: str | None = Field(default=None, alias="humintAnalysisId")
    sigint_analysis_id: str | None = Field(default=None, alias="sigintAnalysisId")
    confidence: Any = None
    fused_entities: Annotated[list[FusedEntityPayload | None] | None, SkipInvalid] = Field(
        default=None, alias="fusedEntities"
    )
    predictions: list[Any] | None = None


# =============================================================================
# Parsing
# =============================================================================

ModelT = TypeVar("ModelT", bound=PayloadModel)


def _parse(model: type[ModelT], payload: Any, source: str) -> ModelT | None:
    if payload is None:
        return None
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise PayloadError(source, f"{e.error_count()} validation error(s)") from e


def parse_humint(payload: Any) -> HumintAnalysis | None:
    """Validate a HUMINT analysis payload (raises PayloadError)."""
    return _parse(HumintAnalysis, payload, "humint")


def parse_sigint(payload: Any) -> SigintAnalysis | None:
    """Validate a SIGINT analysis payload (raises PayloadError)."""
    return _parse(SigintAnalysis, payload, "sigint")


def parse_osint(payload: Any) -> OsintAnalysis | None:
    """Validate an OSINT analysis payload (raises PayloadError)."""
    return _parse(OsintAnalysis, payload, "osint")


def parse_fusion(payload: Any) -> FusionAnalysis | None:
    """Validate a fusion analysis payload (raises PayloadError)."""
    return _parse(FusionAnalysis, payload, "fusion")
