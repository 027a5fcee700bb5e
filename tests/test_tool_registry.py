"""
Tests for the Tool Registry.

Tests cover tool registration, lookup, argument validation, invocation
and error wrapping.
"""

import asyncio

import pytest

from stellar_console.exceptions import (
    DuplicateToolError,
    InvalidArgumentsError,
    ToolExecutionError,
    UnknownToolError,
)
from stellar_console.tools import ToolDefinition, ToolName, ToolRegistry, registry
from stellar_console.tools.registry import MAX_ERROR_CHARS
from stellar_console.tools.weather import WeatherInput


class TestToolRegistry:
    """Tests for the process-wide registry."""

    def test_registry_has_all_tools(self):
        """All five tools are registered on import."""
        assert registry.names() == [name.value for name in ToolName]

    def test_resolve_existing_tool(self):
        """Resolving a registered tool returns its definition."""
        tool = registry.resolve("weather")

        assert tool.name == "weather"
        assert tool.input_model is WeatherInput

    def test_resolve_unknown_tool_raises(self):
        """Resolving an unregistered name raises UnknownToolError."""
        with pytest.raises(UnknownToolError) as exc_info:
            registry.resolve("teleport")

        assert exc_info.value.tool_name == "teleport"

    def test_get_nonexistent_tool(self):
        """get() returns None for unknown names."""
        assert registry.get("nonexistent_tool") is None
        assert "nonexistent_tool" not in registry
        assert "weather" in registry

    def test_all_tools_returns_copy(self):
        """all_tools returns a copy, not the internal dict."""
        tools1 = registry.all_tools()
        tools2 = registry.all_tools()

        assert tools1 == tools2
        assert tools1 is not tools2

    def test_get_tools_summary(self):
        """Summary lists every tool with its description."""
        summary = registry.get_tools_summary()

        for name in registry.names():
            assert f"- {name}:" in summary

    def test_tool_specs_use_input_schemas(self):
        """Function specs carry the pydantic input schema."""
        specs = {spec["function"]["name"]: spec for spec in registry.tool_specs()}

        weather = specs["weather"]["function"]
        assert specs["weather"]["type"] == "function"
        assert weather["parameters"]["required"] == ["location"]
        assert "title" not in weather["parameters"]

        gear = specs["whatToWear"]["function"]["parameters"]
        assert gear["properties"]["suggestions"]["maxItems"] == 3
        assert gear["properties"]["suggestions"]["minItems"] == 1


class TestRegistration:
    """Tests for registering tools."""

    def _definition(self, name="probe"):
        return ToolDefinition(
            name=name,
            description="Probe tool",
            input_model=WeatherInput,
            handler=lambda params: {"location": params.location},
            formatter=str,
        )

    def test_register_new_tool(self):
        """A fresh registry accepts a new tool."""
        local = ToolRegistry()
        local.register(self._definition())

        assert local.names() == ["probe"]

    def test_duplicate_registration_rejected(self):
        """Registering the same name twice raises DuplicateToolError."""
        local = ToolRegistry()
        local.register(self._definition())

        with pytest.raises(DuplicateToolError):
            local.register(self._definition())


class TestValidation:
    """Tests for argument validation."""

    def test_missing_argument_lists_violation(self):
        """A missing field is reported by path."""
        with pytest.raises(InvalidArgumentsError) as exc_info:
            registry.validate_input("weather", {})

        assert exc_info.value.violations == ["location: Field required"]
        assert "Invalid arguments for 'weather'" in exc_info.value.message

    def test_every_violation_is_listed(self):
        """All violated constraints appear, not just the first."""
        args = {"suggestions": [{"title": "Boots"}, {"description": "Cloak"}]}

        with pytest.raises(InvalidArgumentsError) as exc_info:
            registry.validate_input("whatToWear", args)

        violations = exc_info.value.violations
        assert len(violations) == 2
        assert any("suggestions.0.description" in v for v in violations)
        assert any("suggestions.1.title" in v for v in violations)

    def test_non_object_arguments_rejected(self):
        """Arguments must be a JSON object."""
        with pytest.raises(InvalidArgumentsError):
            registry.validate_input("weather", '{"location": ')

    def test_validate_unknown_tool(self):
        """Validation of an unknown tool raises UnknownToolError."""
        with pytest.raises(UnknownToolError):
            registry.validate_input("teleport", {})


class TestInvocation:
    """Tests for invoke and ainvoke."""

    def test_invoke_returns_output(self):
        """invoke validates then runs the handler."""
        result = registry.invoke("weather", {"location": "Titan"})

        assert result["location"] == "Titan"

    def test_invoke_wraps_handler_failure(self, failing_registry):
        """Handler exceptions become ToolExecutionError with a readable message."""
        with pytest.raises(ToolExecutionError) as exc_info:
            failing_registry.invoke("weather", {"location": "Io"})

        assert "sensor array offline over Io" in exc_info.value.message

    def test_execution_error_is_truncated(self):
        """Very long error messages are cut to a bounded size."""
        local = ToolRegistry()

        def _explode(params):
            raise ValueError("x" * (MAX_ERROR_CHARS * 2))

        local.register(
            ToolDefinition(
                name="weather",
                description="Exploding tool",
                input_model=WeatherInput,
                handler=_explode,
                formatter=str,
            )
        )

        with pytest.raises(ToolExecutionError) as exc_info:
            local.invoke("weather", {"location": "Io"})

        assert exc_info.value.message.endswith("...")
        assert len(exc_info.value.message) < MAX_ERROR_CHARS + 100

    def test_ainvoke_sync_handler(self):
        """ainvoke runs plain handlers off the event loop."""
        result = asyncio.run(registry.ainvoke("hazardScan", {"location": "Europa"}))

        assert result["location"] == "Europa"

    def test_ainvoke_coroutine_handler(self):
        """ainvoke awaits coroutine handlers directly."""
        local = ToolRegistry()

        async def _handle(params):
            await asyncio.sleep(0)
            return {"location": params.location.upper()}

        local.register(
            ToolDefinition(
                name="weather",
                description="Async tool",
                input_model=WeatherInput,
                handler=_handle,
                formatter=str,
            )
        )

        result = asyncio.run(local.ainvoke("weather", {"location": "Io"}))

        assert result == {"location": "IO"}

    def test_ainvoke_validation_error(self):
        """ainvoke surfaces InvalidArgumentsError from the worker thread."""
        with pytest.raises(InvalidArgumentsError):
            asyncio.run(registry.ainvoke("weather", {"place": "Io"}))

    def test_format_output(self):
        """format_output delegates to the tool formatter."""
        output = registry.invoke("weather", {"location": "Titan"})

        summary = registry.format_output("weather", output)

        assert summary.startswith("Weather for Titan:")
