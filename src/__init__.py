"""
Multi-Source Intelligence Fusion.

This package contains:
- fusion_engine: HUMINT/SIGINT/OSINT correlation and fusion
- shared: Shared configuration and logging
"""

__version__ = "0.1.0"
