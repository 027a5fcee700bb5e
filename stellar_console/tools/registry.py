"""
Tool Registry - Single source of truth for tool definitions.

Provides a central registry for all tools with their metadata, input
schemas, handlers, and formatters. Tools register themselves once at
import time; the registry holds no per-request state.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from ..exceptions import (
    DuplicateToolError,
    InvalidArgumentsError,
    ToolError,
    ToolExecutionError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

# Longest error message surfaced on a tool part
MAX_ERROR_CHARS = 500


class ToolName(str, Enum):
    """The closed set of tools the console can run."""

    WEATHER = "weather"
    HAZARD_SCAN = "hazardScan"
    NAVIGATION_WINDOWS = "navigationWindows"
    CELESTIAL_EVENTS = "celestialEvents"
    WHAT_TO_WEAR = "whatToWear"


@dataclass(frozen=True)
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[Any], dict]
    formatter: Callable[[dict], str]

    def to_function_spec(self) -> dict:
        """Build an OpenAI function-calling definition for this tool."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }


def _format_violation(error: dict) -> str:
    """Render one pydantic error as ``path: message``."""
    location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
    return f"{location}: {error.get('msg', 'invalid value')}"


def _execution_error(name: str, error: Exception) -> ToolExecutionError:
    """Wrap an internal tool failure with a readable, bounded message."""
    logger.error("Tool '%s' execution failed: %s", name, error)
    error_msg = str(error) or type(error).__name__
    if len(error_msg) > MAX_ERROR_CHARS:
        error_msg = error_msg[:MAX_ERROR_CHARS] + "..."
    return ToolExecutionError(name, f"Tool '{name}' execution error: {error_msg}")


class ToolRegistry:
    """Central registry for all tools."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        """Register a tool; names must be unique."""
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.name] = definition
        logger.debug("Registered tool '%s'", definition.name)

    def resolve(self, name: str) -> ToolDefinition:
        """Get a tool by name, raising ``UnknownToolError`` if missing."""
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def get(self, name: str) -> ToolDefinition | None:
        """Get a tool by name, or None."""
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        """Registered tool names in registration order."""
        return list(self._tools)

    def all_tools(self) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return self._tools.copy()

    def validate_input(self, name: str, raw_args: Any) -> BaseModel:
        """
        Apply a tool's input schema to raw arguments.

        Raises:
            UnknownToolError: The tool is not registered.
            InvalidArgumentsError: One or more constraints were violated;
                every violation is listed.
        """
        tool = self.resolve(name)
        if not isinstance(raw_args, dict):
            raise InvalidArgumentsError(name, ["arguments: must be an object"])
        try:
            return tool.input_model.model_validate(raw_args)
        except ValidationError as e:
            violations = [_format_violation(err) for err in e.errors()]
            raise InvalidArgumentsError(name, violations) from e

    def invoke(self, name: str, raw_args: Any) -> dict:
        """
        Validate arguments, then execute the tool.

        Any failure inside the handler is re-raised as ``ToolExecutionError``
        carrying a human-readable message.

        Returns:
            The tool's structured output.
        """
        validated = self.validate_input(name, raw_args)
        tool = self._tools[name]
        try:
            return tool.handler(validated)
        except ToolError:
            raise
        except Exception as e:
            raise _execution_error(name, e) from e

    async def ainvoke(self, name: str, raw_args: Any) -> dict:
        """
        Awaitable ``invoke``.

        Coroutine handlers are awaited directly; plain handlers run in a
        worker thread so the event loop stays responsive.
        """
        tool = self.resolve(name)
        if not inspect.iscoroutinefunction(tool.handler):
            return await asyncio.to_thread(self.invoke, name, raw_args)

        validated = self.validate_input(name, raw_args)
        try:
            return await tool.handler(validated)
        except ToolError:
            raise
        except Exception as e:
            raise _execution_error(name, e) from e

    def format_output(self, name: str, output: dict) -> str:
        """Summarize a tool output for model context."""
        return self.resolve(name).formatter(output)

    def tool_specs(self) -> list[dict]:
        """OpenAI function-calling definitions for every registered tool."""
        return [tool.to_function_spec() for tool in self._tools.values()]

    def get_tools_summary(self) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for name, tool in self._tools.items():
            lines.append(f"- {name}: {tool.description}")
        return "\n".join(lines)


# Process-wide registry, populated when the tool modules are imported
registry = ToolRegistry()
