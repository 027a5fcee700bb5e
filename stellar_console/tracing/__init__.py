"""
Langfuse tracing integration for the Stellar Skies Console.

Provides observability for assistant responses and tool executions.
"""

from .client import (
    TracingClient,
    init_tracing_client,
    get_tracing_client,
    shutdown_tracing,
)
from .context import TracingContext, SpanContext

__all__ = [
    "TracingClient",
    "init_tracing_client",
    "get_tracing_client",
    "shutdown_tracing",
    "TracingContext",
    "SpanContext",
]
