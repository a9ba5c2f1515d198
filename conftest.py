"""
Pytest configuration and shared fixtures for fusion engine tests.
"""

import copy

import pytest

from src.fusion_engine.correlation import bucket_correlation_type
from src.fusion_engine.schemas import (
    Confidence,
    Coordinates,
    Correlation,
    CorrelationFactors,
    CorrelationMethod,
    CorrelationStrength,
    EntityLocation,
    SourceEntity,
    SourceType,
)

HUMINT_ANALYSIS = {
    "reportId": "rep-001",
    "timestamp": "2024-03-01T10:00:00Z",
    "intelligence": {
        "summary": "Enemy air defense and mechanized activity east of Kharkiv.",
        "enemyForces": ["Mechanized company with BMP-2s"],
        "tacticalObservations": [
            {
                "text": "Radar vehicle observed near treeline",
                "category": "equipment",
                "location": {
                    "name": "Treeline east of Kharkiv",
                    "coordinates": {"latitude": 49.90, "longitude": 36.40},
                },
                "confidence": "high",
            },
            {"text": "Artillery fire heard to the north", "category": "engagement"},
        ],
        "threats": [
            {"description": "Possible SAM site", "location": "Vovchansk", "severity": "high"},
        ],
        "locations": [
            {"name": "Derhachi", "coordinates": [50.11, 36.12]},
        ],
    },
    "predictions": [
        {"id": "hp-1", "name": "Artillery strike", "description": "Expected shelling", "confidence": 0.75},
    ],
}

SIGINT_ANALYSIS = {
    "analysisId": "sig-001",
    "timestamp": "2024-03-01T11:00:00Z",
    "emitters": [
        {
            "id": "emitter-1",
            "classification": {"type": "SA-11 Fire Dome", "model": "9S35"},
            "confidence": "high",
            "locations": [
                {
                    "timestamp": "2024-03-01T08:00:00Z",
                    "coordinates": {"latitude": 49.80, "longitude": 36.30},
                    "accuracy": 300,
                },
                {
                    "timestamp": "2024-03-01T09:30:00Z",
                    "coordinates": {"latitude": 49.92, "longitude": 36.42},
                    "accuracy": 150,
                },
            ],
        },
        {"id": "emitter-2", "classification": {"type": "Unknown"}, "locations": []},
    ],
    "electronicOrderOfBattle": {
        "airDefense": [
            {"id": "ad-1", "name": "SA-11 battery", "type": "SAM", "coordinates": {"lat": 50.10, "lng": 36.13}},
        ],
        "groundForces": [
            {"name": "1st Tank Bn", "echelon": "battalion", "equipment": "T-72", "coordinates": {"lat": 50.5, "lng": 37.0}},
        ],
    },
}

FUSION_ANALYSIS = {
    "fusionId": "fus-001",
    "timestamp": "2024-03-01T12:00:00Z",
    "humintAnalysisId": "rep-001",
    "sigintAnalysisId": "sig-001",
    "confidence": "high",
    "fusedEntities": [
        {
            "id": "fe-1",
            "type": "radar",
            "humintSources": ["humint-obs-0"],
            "sigintSources": ["emitter-1"],
            "combinedConfidence": "high",
            "lastUpdated": "2024-03-01T11:45:00Z",
            "correlations": [
                {
                    "humintEntityId": "humint-obs-0",
                    "sigintEmitterId": "emitter-1",
                    "strength": {"value": 0.85, "factors": {"spatial": 0.9, "temporal": 0.8, "semantic": 0.7}},
                    "correlationType": "confirmed",
                    "notes": "Fire Dome radar matches reported vehicle",
                },
            ],
        },
        {
            "id": "fe-2",
            "type": "force",
            "humintSources": ["humint-location-0", "humint-ghost-9"],
            "sigintSources": ["sigint-ad-0"],
            "correlations": [
                {"humintEntityId": "humint-location-0", "sigintEmitterId": "sigint-ad-0", "strength": {"value": 0.9}},
                {"humintEntityId": "humint-ghost-9", "sigintEmitterId": "sigint-ad-0", "strength": {"value": 0.95}},
            ],
        },
        {
            "id": "fe-3",
            "type": "military vehicle",
            "humintSources": ["humint-force-0"],
            "sigintSources": ["sigint-gf-0"],
            "combinedConfidence": "low",
            "correlations": [
                {
                    "humintEntityId": "humint-force-0",
                    "sigintEmitterId": "sigint-gf-0",
                    "strength": {"value": 0.75, "factors": {"spatial": 0.6}},
                },
            ],
        },
    ],
    "predictions": [
        {"id": "fp-1", "name": "Air defense relocation", "confidence": 0.55, "location": {"lat": 50.2, "lng": 36.2}},
    ],
}


@pytest.fixture
def humint_analysis() -> dict:
    """A HUMINT analysis covering all four collections."""
    return copy.deepcopy(HUMINT_ANALYSIS)


@pytest.fixture
def sigint_analysis() -> dict:
    """A SIGINT analysis with emitters and an order of battle."""
    return copy.deepcopy(SIGINT_ANALYSIS)


@pytest.fixture
def fusion_analysis() -> dict:
    """A fusion analysis with authoritative correlations."""
    return copy.deepcopy(FUSION_ANALYSIS)


def make_entity(
    entity_id: str,
    source_type: SourceType,
    lat: float | None = None,
    lng: float | None = None,
    entity_type: str = "observation",
    **kwargs,
) -> SourceEntity:
    """Build a SourceEntity, located when both coordinates are given."""
    location = None
    if lat is not None and lng is not None:
        location = EntityLocation(Coordinates(lat, lng))
    return SourceEntity(
        id=entity_id,
        source_type=source_type,
        type=entity_type,
        timestamp="2024-03-01T10:00:00Z",
        location=location,
        confidence=kwargs.pop("confidence", Confidence.MEDIUM),
        **kwargs,
    )


def make_correlation(humint_id: str, sigint_id: str, value: float, **kwargs) -> Correlation:
    """Build a proximity-style correlation with the given strength."""
    return Correlation(
        humint_entity_id=humint_id,
        sigint_entity_id=sigint_id,
        strength=CorrelationStrength(value, CorrelationFactors(value, 0.5, 0.3)),
        correlation_type=bucket_correlation_type(value),
        method=kwargs.pop("method", CorrelationMethod.PROXIMITY),
        **kwargs,
    )
