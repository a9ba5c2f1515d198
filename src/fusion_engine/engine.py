"""
Fusion Engine - the single entry point used by presentation and export.

    extract -> correlate -> aggregate -> synthesize areas -> classify

Every run is a pure function of its inputs: no I/O, no wall clock, no
shared mutable state, so concurrent runs need no coordination.
"""

from collections.abc import Callable
from typing import Any

from src.fusion_engine.correlation import CorrelationEngine
from src.fusion_engine.exceptions import PayloadError
from src.fusion_engine.extractors import (
    SourceIndex,
    extract_humint,
    extract_osint,
    extract_sigint,
)
from src.fusion_engine.fusion import FusionAggregator
from src.fusion_engine.payloads import (
    parse_fusion,
    parse_humint,
    parse_osint,
    parse_sigint,
)
from src.fusion_engine.predictions import adapt_predictions
from src.fusion_engine.schemas import Confidence, FusionOverview, FusionResult
from src.fusion_engine.threat import classify_threat_level, synthesize_threat_areas
from src.shared.config import settings
from src.shared.logger import get_logger, log_fusion_summary

logger = get_logger()


def _parse_or_none(parser: Callable[[Any], Any], payload: Any) -> Any:
    try:
        return parser(payload)
    except PayloadError as e:
        logger.warning(str(e))
        return None


class FusionEngine:
    """Runs the full fusion pipeline over one set of analyses."""

    def __init__(
        self,
        correlation_engine: CorrelationEngine | None = None,
        aggregator: FusionAggregator | None = None,
    ):
        """Initialize the engine.

        Args:
            correlation_engine: Correlation engine (default settings if not provided)
            aggregator: Fusion aggregator (will create if not provided)
        """
        self.correlation_engine = correlation_engine or CorrelationEngine()
        self.aggregator = aggregator or FusionAggregator()

    def fuse(
        self,
        humint: Any,
        sigint: Any,
        fusion: Any = None,
        osint: Any = None,
    ) -> FusionResult | None:
        """Fuse HUMINT, SIGINT and optional OSINT analyses.

        Args:
            humint: HUMINT analysis (dict or HumintAnalysis)
            sigint: SIGINT analysis (dict or SigintAnalysis)
            fusion: Optional fusion analysis with authoritative correlations
            osint: Optional OSINT analysis

        Returns:
            FusionResult, or None when HUMINT or SIGINT is missing
        """
        if humint is None or sigint is None:
            missing = "HUMINT" if humint is None else "SIGINT"
            logger.warning(f"{missing} analysis missing, no fusion performed")
            return None

        humint_analysis = _parse_or_none(parse_humint, humint)
        sigint_analysis = _parse_or_none(parse_sigint, sigint)
        osint_analysis = _parse_or_none(parse_osint, osint)
        fusion_analysis = _parse_or_none(parse_fusion, fusion)
        authoritative = fusion_analysis is not None and fusion_analysis.fused_entities is not None

        humint_entities = extract_humint(humint_analysis)
        sigint_entities = extract_sigint(sigint_analysis)
        osint_entities = extract_osint(osint_analysis)
        index = SourceIndex(humint_entities, sigint_entities, osint_entities)

        correlations = self.correlation_engine.correlate(
            humint_entities, sigint_entities, osint_entities, fusion_analysis
        )
        entities = self.aggregator.aggregate(correlations, index, fusion_analysis)
        fused_correlations = [c for entity in entities for c in entity.correlations]

        timestamp = next(
            (
                a.timestamp
                for a in (fusion_analysis, sigint_analysis, humint_analysis)
                if a is not None and a.timestamp
            ),
            None,
        )
        threat_level = classify_threat_level(entities)

        if authoritative:
            raw_predictions = fusion_analysis.predictions
        else:
            raw_predictions = humint_analysis.predictions if humint_analysis else None

        strength = 0.0
        if fused_correlations:
            strength = sum(c.strength.value for c in fused_correlations) / len(fused_correlations)

        result = FusionResult(
            entities=entities,
            correlations=fused_correlations,
            predicted_events=adapt_predictions(raw_predictions),
            threat_areas=synthesize_threat_areas(entities, index, threat_level, timestamp),
            overview=FusionOverview(
                threat_level=threat_level,
                confidence_level=Confidence.parse(fusion_analysis.confidence if fusion_analysis else None),
                correlation_strength=strength,
                timestamp=timestamp,
            ),
            source_entities=[*humint_entities, *sigint_entities, *osint_entities],
        )

        logger.info(
            f"Fusion complete: {len(entities)} entities, {len(fused_correlations)} correlations, "
            f"threat level {threat_level.value}"
        )
        if settings.log_fusion_summary:
            log_fusion_summary(result)
        return result


_engine: FusionEngine | None = None


def get_engine() -> FusionEngine:
    """Get or create the default engine instance."""
    global _engine
    if _engine is None:
        _engine = FusionEngine()
    return _engine


def fuse(humint: Any, sigint: Any, fusion: Any = None, osint: Any = None) -> FusionResult | None:
    """Fuse analyses with the default engine. See ``FusionEngine.fuse``."""
    return get_engine().fuse(humint, sigint, fusion, osint)
