"""
Fusion Aggregator - merges correlated observations into fused entities.
"""

from dataclasses import replace
from typing import Any

from src.fusion_engine.extractors import SourceIndex
from src.fusion_engine.payloads import FusedEntityPayload, FusionAnalysis, parse_fusion
from src.fusion_engine.schemas import (
    Confidence,
    Correlation,
    EntityLocation,
    FusedEntity,
    SourceEntity,
    SourceType,
)
from src.shared.logger import get_logger

logger = get_logger()

# SIGINT fixes are usually tighter than HUMINT estimates
LOCATION_PRIORITY = (SourceType.SIGINT, SourceType.HUMINT, SourceType.OSINT)


class _Components:
    """Union-find over source ids."""

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}

    def find(self, item: str) -> str:
        self._parent.setdefault(item, item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a


class FusionAggregator:
    """Groups correlations into FusedEntity records."""

    def aggregate(
        self,
        correlations: list[Correlation],
        index: SourceIndex,
        fusion: FusionAnalysis | dict[str, Any] | None = None,
    ) -> list[FusedEntity]:
        """Aggregate correlations into fused entities.

        With a fusion analysis, its fused entity grouping is kept. Otherwise
        one fused entity is built per connected component of the correlation
        graph: two correlations sharing a source id describe the same entity.

        Args:
            correlations: Output of the correlation engine
            index: Every extracted source entity, by id
            fusion: Optional fusion analysis (raises PayloadError if invalid)

        Returns:
            Fused entities in discovery order
        """
        analysis = parse_fusion(fusion)
        if analysis is not None and analysis.fused_entities is not None:
            entities = self.from_analysis(analysis, correlations, index)
        else:
            entities = self.from_components(correlations, index)

        logger.info(f"Aggregated {len(correlations)} correlations into {len(entities)} fused entities")
        return entities

    def from_analysis(
        self,
        analysis: FusionAnalysis,
        correlations: list[Correlation],
        index: SourceIndex,
    ) -> list[FusedEntity]:
        """Keep the upstream grouping, dropping references to unknown ids."""
        by_entity: dict[str | None, list[Correlation]] = {}
        for correlation in correlations:
            by_entity.setdefault(correlation.fused_entity_id, []).append(correlation)

        payload_confidence = Confidence.parse(analysis.confidence)
        entities = []
        for raw in analysis.fused_entities or []:
            if raw is None:
                continue
            covered = [
                c for c in by_entity.get(raw.id, [])
                if self._references_known_ids(c, index)
            ]
            sources = self._payload_sources(raw, index)
            self._add_correlation_sources(sources, covered, index)

            entities.append(self._build(
                entity_id=raw.id,
                entity_type=raw.type or self.strongest_type(covered, index),
                sources=sources,
                correlations=covered,
                index=index,
                confidence=Confidence.parse(raw.combined_confidence, default=payload_confidence),
                timestamp=raw.last_updated or analysis.timestamp,
            ))
        return entities

    def from_components(self, correlations: list[Correlation], index: SourceIndex) -> list[FusedEntity]:
        """One fused entity per connected component of the correlation graph."""
        components = _Components()
        usable = []
        for correlation in correlations:
            if not self._references_known_ids(correlation, index):
                continue
            legs = correlation.source_ids
            for leg in legs[1:]:
                components.union(legs[0], leg)
            usable.append(correlation)

        grouped: dict[str, list[Correlation]] = {}
        for correlation in usable:
            grouped.setdefault(components.find(correlation.humint_entity_id), []).append(correlation)

        entities = []
        for number, members in enumerate(grouped.values()):
            entity_id = f"fused-{number}"
            members = [replace(c, fused_entity_id=entity_id) for c in members]
            sources: dict[SourceType, list[str]] = {t: [] for t in SourceType}
            self._add_correlation_sources(sources, members, index)
            first = index.get((sources[SourceType.SIGINT] or sources[SourceType.HUMINT])[0])

            entities.append(self._build(
                entity_id=entity_id,
                entity_type=self.strongest_type(members, index),
                sources=sources,
                correlations=members,
                index=index,
                confidence=Confidence.MEDIUM,
                timestamp=first.timestamp if first else None,
            ))
        return entities

    # -------------------------------------------------------------------------
    # Field resolution
    # -------------------------------------------------------------------------

    @staticmethod
    def _references_known_ids(correlation: Correlation, index: SourceIndex) -> bool:
        missing = [leg for leg in correlation.source_ids if leg not in index]
        if missing:
            logger.debug(f"Dropping correlation {correlation.id}: unknown source ids {missing}")
            return False
        return True

    @staticmethod
    def _payload_sources(raw: FusedEntityPayload, index: SourceIndex) -> dict[SourceType, list[str]]:
        listed = {
            SourceType.HUMINT: raw.humint_sources or [],
            SourceType.SIGINT: raw.sigint_sources or [],
            SourceType.OSINT: raw.osint_sources or [],
        }
        sources: dict[SourceType, list[str]] = {t: [] for t in SourceType}
        for source_type, ids in listed.items():
            for source_id in ids:
                if index.source_type_of(source_id) != source_type:
                    logger.debug(f"Dropping unknown {source_type.value} source {source_id} from {raw.id}")
                    continue
                if source_id not in sources[source_type]:
                    sources[source_type].append(source_id)
        return sources

    @staticmethod
    def _add_correlation_sources(
        sources: dict[SourceType, list[str]],
        correlations: list[Correlation],
        index: SourceIndex,
    ) -> None:
        for correlation in correlations:
            for leg in correlation.source_ids:
                source_type = index.source_type_of(leg)
                if source_type is not None and leg not in sources[source_type]:
                    sources[source_type].append(leg)

    @staticmethod
    def strongest_type(correlations: list[Correlation], index: SourceIndex) -> str:
        """Type of the SIGINT leg of the strongest correlation (first on ties)."""
        if not correlations:
            return "other"
        strongest = max(correlations, key=lambda c: c.strength.value)
        for leg in (strongest.sigint_entity_id, strongest.humint_entity_id):
            entity = index.get(leg)
            if entity is not None:
                return entity.type
        return "other"

    @staticmethod
    def resolve_location(
        sources: dict[SourceType, list[str]],
        index: SourceIndex,
    ) -> EntityLocation | None:
        """First located source, SIGINT before HUMINT before OSINT."""
        for source_type in LOCATION_PRIORITY:
            for source_id in sources[source_type]:
                entity = index.get(source_id)
                if entity is not None and entity.location is not None:
                    return entity.location
        return None

    @staticmethod
    def describe(humint: SourceEntity | None, sigint: SourceEntity | None) -> str:
        """HUMINT description with the SIGINT classification in parentheses."""
        humint_text = humint.description if humint else ""
        sigint_text = (sigint.classification or sigint.description) if sigint else ""
        if humint_text and sigint_text:
            return f"{humint_text} ({sigint_text})"
        return humint_text or sigint_text or ""

    def _build(
        self,
        entity_id: str,
        entity_type: str,
        sources: dict[SourceType, list[str]],
        correlations: list[Correlation],
        index: SourceIndex,
        confidence: Confidence,
        timestamp: str | None,
    ) -> FusedEntity:
        humint_ids = sources[SourceType.HUMINT]
        sigint_ids = sources[SourceType.SIGINT]
        return FusedEntity(
            id=entity_id,
            type=entity_type,
            humint_sources=humint_ids,
            sigint_sources=sigint_ids,
            osint_sources=sources[SourceType.OSINT],
            combined_confidence=confidence,
            correlations=correlations,
            location=self.resolve_location(sources, index),
            description=self.describe(
                index.get(humint_ids[0]) if humint_ids else None,
                index.get(sigint_ids[0]) if sigint_ids else None,
            ),
            timestamp=timestamp,
        )
