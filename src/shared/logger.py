"""
Rich Logging Module for the Fusion Engine.

Provides colorful, formatted logging with tables and panels.
"""

import logging
import os
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from src.shared.config import settings

# Custom theme for the Fusion Engine
FUSION_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "data": "dim cyan",
        "highlight": "bold yellow",
        "muted": "dim white",
        "header": "bold cyan",
        "border": "bright_black",
        "humint": "bold green",
        "sigint": "bold magenta",
        "osint": "bold blue",
    }
)

# Initialize Rich console with custom theme
console = Console(theme=FUSION_THEME, stderr=True)

THREAT_STYLES = {
    "HIGH": "error",
    "MEDIUM": "warning",
    "LOW": "success",
}


class FusionLogger:
    """Custom logger with Rich formatting for the Fusion Engine."""

    def __init__(self, name: str = "fusion", level: str | None = None):
        """Initialize the logger with Rich handler."""
        self.console = console
        self.name = name

        # Set up Python logging with Rich handler
        log_level = level or os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(
                    console=self.console,
                    show_time=True,
                    show_path=False,
                    rich_tracebacks=True,
                    markup=True,
                )
            ],
        )
        self._logger = logging.getLogger(name)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with cyan color."""
        self._logger.info(f"[info]{message}[/info]", **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with yellow color."""
        self._logger.warning(f"[warning]⚠️  {message}[/warning]", **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(f"[muted]{message}[/muted]", **kwargs)

    def panel(
        self,
        content: str,
        title: str = "",
        style: str = "border",
        subtitle: str | None = None,
    ) -> None:
        """Display content in a styled panel."""
        self.console.print(
            Panel(
                content,
                title=f"[header]{title}[/header]" if title else None,
                subtitle=f"[muted]{subtitle}[/muted]" if subtitle else None,
                border_style=style,
                padding=(1, 2),
            )
        )

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[Any]],
        show_lines: bool = False,
    ) -> None:
        """Display data in a formatted table."""
        table = Table(
            title=f"[header]{title}[/header]",
            show_header=True,
            header_style="bold cyan",
            border_style="border",
            show_lines=show_lines,
        )

        for col in columns:
            table.add_column(col)

        for row in rows:
            table.add_row(*[str(cell) for cell in row])

        self.console.print(table)


# Global logger instance
_logger: FusionLogger | None = None


def get_logger() -> FusionLogger:
    """Get or create the global logger instance."""
    global _logger
    if _logger is None:
        _logger = FusionLogger(level=settings.log_level)
    return _logger


def log_fusion_summary(result: Any) -> None:
    """Display a fusion result as an overview panel plus an entity table.

    Args:
        result: A FusionResult from the fusion engine
    """
    logger = get_logger()
    overview = result.overview
    level = overview.threat_level.value
    style = THREAT_STYLES.get(level, "info")

    logger.panel(
        "\n".join([
            f"[{style}]Threat level: {level}[/{style}]",
            f"[highlight]Correlation strength: {overview.correlation_strength:.2f}[/highlight]",
            f"Confidence: {overview.confidence_level.value}",
            f"Threat areas: {len(result.threat_areas)}",
        ]),
        title="🛰️ Fusion Overview",
        subtitle=overview.timestamp,
    )

    rows = []
    for entity in result.entities:
        coords = entity.location.coordinates if entity.location else None
        rows.append([
            entity.id,
            entity.type,
            f"[humint]{len(entity.humint_sources)}[/humint]"
            f"/[sigint]{len(entity.sigint_sources)}[/sigint]"
            f"/[osint]{len(entity.osint_sources)}[/osint]",
            entity.combined_confidence.value,
            f"{coords.latitude:.4f}, {coords.longitude:.4f}" if coords else "-",
        ])

    logger.table(
        "Fused Entities",
        ["ID", "Type", "H/S/O", "Confidence", "Location"],
        rows,
    )
