"""
Exception hierarchy for the Stellar Skies Console.

Tool-level errors (``InvalidArgumentsError``, ``ToolExecutionError``) are
recovered inside a response and rendered on the affected tool part.
Response-level errors (``UnknownToolError``, ``TransportError``) end the
current response and surface as a global status change.
"""


class ConsoleError(Exception):
    """Base class for all console errors."""


class ToolError(ConsoleError):
    """Base class for tool registry and tool execution errors."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class DuplicateToolError(ToolError):
    """A tool with the same name is already registered."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"Tool '{tool_name}' is already registered")


class UnknownToolError(ToolError):
    """The requested tool name is not in the registry."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"Unknown tool '{tool_name}'")


class InvalidArgumentsError(ToolError):
    """Tool arguments failed schema validation."""

    def __init__(self, tool_name: str, violations: list[str]):
        self.violations = violations
        details = "; ".join(violations) if violations else "invalid arguments"
        super().__init__(
            tool_name, f"Invalid arguments for '{tool_name}': {details}"
        )


class ToolExecutionError(ToolError):
    """A registered tool failed while executing."""


class TransportError(ConsoleError):
    """The planner's model connection failed or was interrupted."""


class IllegalTransitionError(ConsoleError):
    """A part state change would break the tool part state machine."""


class ConversationBusyError(ConsoleError):
    """A new user message arrived while a response is still reasoning."""
