"""
Tests for Langfuse tracing integration with SDK v3.

Tests cover:
- Client disabled states (credentials, auth failure)
- Context manager no-ops when disabled
- Span lifecycle with a mocked Langfuse client
- Orchestrator integration with tracing
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from stellar_console.orchestration import CallTool, EmitText, ScriptedPlanner, TurnOrchestrator
from stellar_console.tracing import client as client_module
from stellar_console.tracing import TracingContext, get_tracing_client, init_tracing_client
from stellar_console.tracing.client import TracingClient
from stellar_console.transcript import Message, TranscriptBuilder


@pytest.fixture(autouse=True)
def reset_tracing_client():
    """Leave no tracing singleton behind."""
    client_module._tracing_client = None
    yield
    client_module._tracing_client = None


def _enabled_client():
    """Install an enabled TracingClient backed by a mocked Langfuse."""
    langfuse = MagicMock()
    langfuse.auth_check.return_value = True
    with patch("stellar_console.tracing.client.Langfuse", return_value=langfuse):
        init_tracing_client(public_key="pk-test", secret_key="sk-test")
    return langfuse


class TestTracingClient:
    """Tests for TracingClient."""

    def test_client_disabled_without_credentials(self):
        """Client is disabled when credentials are not provided."""
        client = TracingClient(public_key="", secret_key="")

        assert client.enabled is False
        assert "credentials not configured" in client.error.lower()

    def test_client_disabled_with_partial_credentials(self):
        """Client is disabled with only a public key."""
        client = TracingClient(public_key="pk-test", secret_key="")

        assert client.enabled is False

    @patch("stellar_console.tracing.client.Langfuse")
    def test_client_disabled_on_auth_failure(self, mock_langfuse):
        """A failed auth check disables tracing."""
        mock_langfuse.return_value.auth_check.return_value = False

        client = TracingClient(public_key="pk", secret_key="sk")

        assert client.enabled is False
        assert client.client is None
        assert "auth_check" in client.error

    @patch("stellar_console.tracing.client.Langfuse")
    def test_client_disabled_on_init_error(self, mock_langfuse):
        """Constructor errors disable tracing instead of raising."""
        mock_langfuse.side_effect = RuntimeError("no route to host")

        client = TracingClient(public_key="pk", secret_key="sk")

        assert client.enabled is False
        assert "no route to host" in client.error

    def test_singleton(self):
        """init_tracing_client installs the global client."""
        _enabled_client()

        assert get_tracing_client() is not None
        assert get_tracing_client().enabled


class TestTracingContextDisabled:
    """Tests for no-op behavior without a client."""

    def test_context_disabled(self):
        ctx = TracingContext(execution_id="exec-test")

        assert ctx.enabled is False
        ctx.start_trace(query="hi")
        with ctx.span(name="tool:weather", input={"location": "Io"}) as span:
            span.set_output({"ok": True})
        ctx.end_trace(output="done")


class TestTracingContextEnabled:
    """Tests for the trace lifecycle against a mocked Langfuse."""

    def test_root_and_child_spans(self):
        """The root span opens first; child spans attach to its trace."""
        langfuse = _enabled_client()
        root = MagicMock(trace_id="trace-1", id="span-1")
        langfuse.start_as_current_observation.return_value.__enter__.return_value = root

        ctx = TracingContext(execution_id="exec-test", session_id="conv-1")
        ctx.start_trace(query="weather in Io")
        with ctx.span(name="tool:weather", input={"location": "Io"}) as span:
            span.set_output({"state": "output-available"})
        ctx.end_trace(output="Cold.", status="success")

        calls = langfuse.start_as_current_observation.call_args_list
        assert calls[0].kwargs["name"] == "chat_response"
        assert calls[1].kwargs["name"] == "tool:weather"
        trace_context = calls[1].kwargs["trace_context"]
        assert trace_context["trace_id"] == "trace-1"
        assert trace_context["parent_span_id"] == "span-1"
        root.update_trace.assert_called_once_with(session_id="conv-1")

    def test_orchestrator_traces_tools(self):
        """A response opens one child span per tool call."""
        langfuse = _enabled_client()
        langfuse.start_as_current_observation.return_value.__enter__.return_value = (
            MagicMock(trace_id="trace-1", id="span-1")
        )
        planner = ScriptedPlanner(
            [
                CallTool("weather", {"location": "Io"}),
                CallTool("hazardScan", {"location": "Io"}),
                EmitText("All set."),
            ]
        )
        orchestrator = TurnOrchestrator(
            planner,
            timeout_seconds=5,
            tracing_context=TracingContext(execution_id="exec-test"),
        )

        asyncio.run(orchestrator.respond([Message.user("Io?")], TranscriptBuilder()))

        names = [
            c.kwargs["name"] for c in langfuse.start_as_current_observation.call_args_list
        ]
        assert names == ["chat_response", "tool:weather", "tool:hazardScan"]
