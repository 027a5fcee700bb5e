"""
Stellar Skies Console - conversation and tool-orchestration engine.

An assistant persona answers travel questions by chaining mock data tools
and streaming the resulting transcript to its consumers.
"""

__version__ = "0.1.0"
