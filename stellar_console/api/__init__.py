"""
FastAPI server module for the Stellar Skies Console.

Streams assistant responses as Server-Sent Events.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
