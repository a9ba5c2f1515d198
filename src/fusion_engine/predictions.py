"""
Prediction adapter - reshapes upstream predicted events for display.

No fusion logic is applied; predictions are passed through with a derived
confidence level and normalized location.
"""

import math
from typing import Any

from src.fusion_engine.config import PREDICTION_HIGH_AT, PREDICTION_MEDIUM_AT
from src.fusion_engine.geo import normalize
from src.fusion_engine.schemas import Confidence, Prediction


def confidence_level(value: Any) -> Confidence:
    """Map a 0-1 confidence (or an existing level name) to a level."""
    if isinstance(value, str):
        return Confidence.parse(value, default=Confidence.LOW)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return Confidence.LOW
    if value >= PREDICTION_HIGH_AT:
        return Confidence.HIGH
    if value >= PREDICTION_MEDIUM_AT:
        return Confidence.MEDIUM
    return Confidence.LOW


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def adapt_prediction(raw: dict[str, Any]) -> Prediction:
    supporting = raw.get("supportingEvidence")
    return Prediction(
        id=raw.get("id"),
        type=raw.get("type") or "event",
        name=raw.get("name") or "",
        description=raw.get("description") or "",
        timeframe=raw.get("timeframe"),
        formatted_timeframe=raw.get("formattedTimeframe"),
        confidence=_numeric(raw.get("confidence")),
        confidence_level=confidence_level(raw.get("confidence")),
        location=normalize(raw.get("location")),
        evidence_events=list(raw.get("evidenceEvents") or []),
        supporting_evidence=supporting if isinstance(supporting, int) and not isinstance(supporting, bool) else 0,
    )


def adapt_predictions(raw_predictions: list[dict[str, Any]] | None) -> list[Prediction]:
    """Adapt a list of upstream predictions; None yields an empty list."""
    return [adapt_prediction(p) for p in raw_predictions or [] if isinstance(p, dict)]
