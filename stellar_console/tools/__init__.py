"""
Stellar Skies Console Tools Package

Available tools:
- weather: Atmospheric readout for a location
- hazardScan: Orbital hazard and space weather scan
- navigationWindows: Departure and arrival windows
- celestialEvents: Sky events worth catching
- whatToWear: Validated gear load-out (1 to 3 items)

Importing this package registers every tool with ``registry``.
"""

from .registry import ToolDefinition, ToolName, ToolRegistry, registry
from . import weather, hazard_scan, navigation, celestial, gear  # noqa: F401

__all__ = [
    "ToolDefinition",
    "ToolName",
    "ToolRegistry",
    "registry",
]
