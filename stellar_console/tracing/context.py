"""
Response-scoped tracing context using the Langfuse SDK v3.

One ``TracingContext`` covers one assistant response. The root span wraps
the whole reasoning loop; each tool call gets a child span. Everything
degrades to no-ops when the tracing client is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class TracingContext:
    """Manages the trace for a single assistant response."""

    execution_id: str
    session_id: Optional[str] = None
    _context_manager: Any = field(default=None, repr=False)
    _root_span: Any = field(default=None, repr=False)
    _enabled: bool = field(default=False, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)
    _trace_id: Optional[str] = field(default=None, repr=False)
    _root_span_id: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "chat_response",
        query: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Open the root span for this response."""
        if not self._enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return

        try:
            trace_metadata = {"execution_id": self.execution_id, **(metadata or {})}
            self._context_manager = client.client.start_as_current_observation(
                as_type="span",
                name=name,
                input={"query": query} if query else None,
                metadata=trace_metadata,
            )
            self._root_span = self._context_manager.__enter__()
            self._trace_id = getattr(self._root_span, "trace_id", None)
            self._root_span_id = getattr(self._root_span, "id", None)
            self._root_span.update_trace(session_id=self.session_id)
            self._start_time = time.time()
        except Exception as e:
            logger.warning(f"[{self.execution_id}] Failed to start trace: {e}")
            self._root_span = None

    def end_trace(
        self,
        output: Optional[str] = None,
        status: str = "success",
        metadata: Optional[dict] = None,
    ) -> None:
        """Close the root span."""
        if not self._enabled or not self._root_span:
            return
        try:
            duration_ms = (time.time() - self._start_time) * 1000
            self._root_span.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round(duration_ms, 2),
                    **(metadata or {}),
                },
            )
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"[{self.execution_id}] Failed to end trace: {e}")

    def _trace_context(self) -> Optional[TraceContext]:
        if not self._trace_id or not self._root_span_id:
            return None
        return TraceContext(trace_id=self._trace_id, parent_span_id=self._root_span_id)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[dict] = None,
    ) -> Generator["SpanContext", None, None]:
        """Create a child span of the root span."""
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self._trace_context(),
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()


@dataclass
class SpanContext:
    """A single tracing span."""

    name: str
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[dict] = None
    _context_manager: Any = field(default=None, repr=False)
    _span: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)

    def start(self) -> None:
        if not self.enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return
        try:
            self._start_time = time.time()
            self._context_manager = client.client.start_as_current_observation(
                trace_context=self._trace_context,
                as_type="span",
                name=self.name,
                metadata=self.metadata,
                input=self.input,
            )
            self._span = self._context_manager.__enter__()
        except Exception as e:
            logger.warning(f"Failed to start span '{self.name}': {e}")
            self._span = None

    def end(self) -> None:
        if not self.enabled or not self._span:
            return
        try:
            duration_ms = (time.time() - self._start_time) * 1000
            update_kwargs: dict[str, Any] = {
                "metadata": {"status": self._status, "duration_ms": round(duration_ms, 2)}
            }
            if self._output:
                update_kwargs["output"] = self._output
            self._span.update(**update_kwargs)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end span '{self.name}': {e}")

    def set_output(self, output: dict) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status
