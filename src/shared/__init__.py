"""Shared utilities and configuration for the Fusion Engine."""

from src.shared.config import Settings, get_settings, settings
from src.shared.logger import (
    FusionLogger,
    get_logger,
    log_fusion_summary,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",
    # Logger
    "FusionLogger",
    "get_logger",
    "log_fusion_summary",
]
