"""
Tests for threat level classification and threat area synthesis.
"""

import pytest

from conftest import make_correlation, make_entity
from src.fusion_engine.extractors import SourceIndex
from src.fusion_engine.schemas import (
    Confidence,
    Coordinates,
    FusedEntity,
    SourceType,
    ThreatLevel,
)
from src.fusion_engine.threat import (
    classify_threat_level,
    correlated_points,
    is_military_type,
    synthesize_threat_areas,
    threat_level_from_counts,
)


def fused(entity_id, entity_type, correlations):
    return FusedEntity(
        id=entity_id,
        type=entity_type,
        humint_sources=[c.humint_entity_id for c in correlations],
        sigint_sources=[c.sigint_entity_id for c in correlations],
        osint_sources=[],
        combined_confidence=Confidence.MEDIUM,
        correlations=correlations,
    )


@pytest.mark.parametrize(
    "high_conf,military,expected",
    [
        (3, 2, ThreatLevel.HIGH),
        (5, 4, ThreatLevel.HIGH),
        (3, 1, ThreatLevel.MEDIUM),
        (2, 2, ThreatLevel.MEDIUM),
        (1, 0, ThreatLevel.MEDIUM),
        (0, 1, ThreatLevel.MEDIUM),
        (0, 0, ThreatLevel.LOW),
    ],
)
def test_threat_level_from_counts(high_conf, military, expected):
    assert threat_level_from_counts(high_conf, military) == expected


@pytest.mark.parametrize(
    "entity_type,expected",
    [
        ("radar", True),
        ("Military Vehicle", True),
        ("ground-force", True),
        ("force", True),
        ("emitter", False),
        ("air-defense", False),
        ("other", False),
    ],
)
def test_is_military_type(entity_type, expected):
    assert is_military_type(entity_type) is expected


class TestClassifyThreatLevel:

    def test_high(self):
        entities = [
            fused("f0", "radar", [make_correlation("h0", "s0", 0.8), make_correlation("h1", "s0", 0.75)]),
            fused("f1", "ground-force", [make_correlation("h2", "s1", 0.9)]),
        ]
        assert classify_threat_level(entities) == ThreatLevel.HIGH

    def test_strength_at_boundary_not_counted(self):
        entities = [fused("f0", "emitter", [make_correlation("h0", "s0", 0.7)])]
        assert classify_threat_level(entities) == ThreatLevel.LOW

    def test_single_strong_correlation(self):
        entities = [fused("f0", "emitter", [make_correlation("h0", "s0", 0.71)])]
        assert classify_threat_level(entities) == ThreatLevel.MEDIUM

    def test_empty(self):
        assert classify_threat_level([]) == ThreatLevel.LOW


class TestThreatAreas:

    @pytest.fixture
    def index(self):
        return SourceIndex(
            [
                make_entity("h0", SourceType.HUMINT, 49.0, 36.0),
                make_entity("h1", SourceType.HUMINT, 49.0, 37.0),
                make_entity("h2", SourceType.HUMINT),
                make_entity("h3", SourceType.HUMINT, 49.90, 36.40),
            ],
            [
                make_entity("s0", SourceType.SIGINT, 50.0, 36.0),
                make_entity("s1", SourceType.SIGINT, 50.0, 37.0),
                make_entity("s2", SourceType.SIGINT, 49.92, 36.42),
                make_entity("s3", SourceType.SIGINT, 49.91, 36.41),
            ],
        )

    def test_fewer_than_three_points(self, index):
        entities = [fused("f0", "radar", [make_correlation("h3", "s2", 0.72)])]
        assert synthesize_threat_areas(entities, index) == []

    def test_unlocated_sources_do_not_count(self, index):
        entities = [fused("f0", "radar", [make_correlation("h2", "s2", 0.8), make_correlation("h3", "s2", 0.8)])]
        assert len(correlated_points(entities, index)) == 2
        assert synthesize_threat_areas(entities, index) == []

    def test_shared_sources_counted_once(self, index):
        entities = [fused("f0", "radar", [make_correlation("h3", "s2", 0.8), make_correlation("h3", "s3", 0.8)])]
        assert correlated_points(entities, index) == [
            Coordinates(49.90, 36.40),
            Coordinates(49.92, 36.42),
            Coordinates(49.91, 36.41),
        ]

    def test_colocated_sources_counted_once(self, index):
        colocated = SourceIndex(
            [make_entity("h0", SourceType.HUMINT, 49.90, 36.40), make_entity("h1", SourceType.HUMINT, 49.90, 36.40)],
            [make_entity("s0", SourceType.SIGINT, 49.92, 36.42)],
        )
        entities = [fused("f0", "radar", [make_correlation("h0", "s0", 0.8), make_correlation("h1", "s0", 0.8)])]
        assert correlated_points(entities, colocated) == [Coordinates(49.90, 36.40), Coordinates(49.92, 36.42)]
        assert synthesize_threat_areas(entities, colocated) == []

    def test_small_cluster_gets_minimum_radius(self, index):
        entities = [fused("f0", "radar", [make_correlation("h3", "s2", 0.8), make_correlation("h3", "s3", 0.8)])]
        [area] = synthesize_threat_areas(entities, index, ThreatLevel.MEDIUM, "2024-03-01T12:00:00Z")

        assert area.radius == 5000.0
        assert area.center.latitude == pytest.approx(49.91)
        assert area.center.longitude == pytest.approx(36.41)
        assert area.threat_level == ThreatLevel.MEDIUM
        assert area.timestamp == "2024-03-01T12:00:00Z"
        assert area.id == "primary-threat-area"

    def test_spread_cluster_radius(self, index):
        entities = [
            fused("f0", "radar", [make_correlation("h0", "s0", 0.8)]),
            fused("f1", "radar", [make_correlation("h1", "s1", 0.8)]),
        ]
        [area] = synthesize_threat_areas(entities, index)

        # Square of side 1 degree: every corner is sqrt(0.5) from the center
        assert area.center == Coordinates(49.5, 36.5)
        assert area.radius == pytest.approx(0.5 ** 0.5 * 111000)

    def test_level_classified_when_omitted(self, index):
        entities = [
            fused("f0", "radar", [make_correlation("h0", "s0", 0.8)]),
            fused("f1", "emitter", [make_correlation("h1", "s1", 0.5)]),
        ]
        [area] = synthesize_threat_areas(entities, index)
        assert area.threat_level == ThreatLevel.MEDIUM

    def test_to_dict_center_pair(self, index):
        entities = [
            fused("f0", "radar", [make_correlation("h0", "s0", 0.8)]),
            fused("f1", "radar", [make_correlation("h1", "s1", 0.8)]),
        ]
        [area] = synthesize_threat_areas(entities, index)
        payload = area.to_dict()
        assert payload["center"] == [49.5, 36.5]
        assert payload["type"] == "threat-area"
