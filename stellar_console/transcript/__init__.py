"""
Transcript model, streaming builder, wire events and consumer contract.
"""

from .models import (
    Message,
    Part,
    PartState,
    Role,
    TextPart,
    ToolPart,
    count_tool_runs,
    validate_user_message,
)
from .builder import TranscriptBuilder
from .events import TranscriptEvent, parse_event, parse_sse, to_sse
from .consumer import Status, TranscriptConsumer, TranscriptView

__all__ = [
    "Message",
    "Part",
    "PartState",
    "Role",
    "TextPart",
    "ToolPart",
    "count_tool_runs",
    "validate_user_message",
    "TranscriptBuilder",
    "TranscriptEvent",
    "parse_event",
    "parse_sse",
    "to_sse",
    "Status",
    "TranscriptConsumer",
    "TranscriptView",
]
