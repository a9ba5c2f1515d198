"""
Multi-source Intelligence Fusion Engine.

Correlates HUMINT, SIGINT and OSINT observations, merges them into fused
entities and derives threat areas and an overall threat level.
"""

from src.fusion_engine.engine import FusionEngine, fuse
from src.fusion_engine.schemas import FusionResult

__version__ = "0.1.0"

__all__ = ["FusionEngine", "FusionResult", "fuse"]
