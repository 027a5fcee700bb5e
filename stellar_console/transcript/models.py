"""
Transcript data model.

A transcript is an ordered list of messages; each message is an ordered
list of parts. Parts are either text spans or tool invocation records whose
state only ever moves forward::

    input-streaming -> input-available -> output-available
                                       -> output-error
"""

import copy
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class PartState(str, Enum):
    """Lifecycle states of a tool part."""

    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"


TERMINAL_STATES = frozenset({PartState.OUTPUT_AVAILABLE, PartState.OUTPUT_ERROR})

# The only legal forward moves; anything else is a regression or a skip.
ALLOWED_TRANSITIONS: dict[PartState, frozenset[PartState]] = {
    PartState.INPUT_STREAMING: frozenset({PartState.INPUT_AVAILABLE}),
    PartState.INPUT_AVAILABLE: TERMINAL_STATES,
    PartState.OUTPUT_AVAILABLE: frozenset(),
    PartState.OUTPUT_ERROR: frozenset(),
}

# Text parts have a single state once appended
TEXT_STATE = "available"


def new_message_id() -> str:
    return f"msg-{uuid.uuid4().hex[:16]}"


def new_tool_call_id() -> str:
    return f"call-{uuid.uuid4().hex[:12]}"


def tool_payload_problem(
    state: PartState, output: Optional[dict], error_text: Optional[str]
) -> Optional[str]:
    """Describe why a payload does not fit ``state``, or None when it does."""
    if output is not None and state != PartState.OUTPUT_AVAILABLE:
        return "Output is only allowed in 'output-available'"
    if error_text is not None and state != PartState.OUTPUT_ERROR:
        return "Error text is only allowed in 'output-error'"
    if state == PartState.OUTPUT_ERROR and not error_text:
        return "'output-error' requires non-empty error text"
    if state == PartState.OUTPUT_AVAILABLE and output is None:
        return "'output-available' requires an output"
    return None


@dataclass
class TextPart:
    """A span of text; grows by deltas while streaming."""

    text: str = ""

    type = "text"

    @property
    def state(self) -> str:
        return TEXT_STATE

    @property
    def settled(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text, "state": TEXT_STATE}


@dataclass
class ToolPart:
    """One tool invocation record."""

    tool_name: str
    tool_call_id: str = field(default_factory=new_tool_call_id)
    state: PartState = PartState.INPUT_STREAMING
    input: Optional[dict] = None
    output: Optional[dict] = None
    error_text: Optional[str] = None

    type = "tool"

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "type": self.type,
            "toolCallId": self.tool_call_id,
            "toolName": self.tool_name,
            "state": self.state.value,
        }
        if self.input is not None:
            data["input"] = self.input
        if self.output is not None:
            data["output"] = self.output
        if self.error_text is not None:
            data["errorText"] = self.error_text
        return data


Part = Union[TextPart, ToolPart]


def part_from_dict(data: dict) -> Part:
    """Rebuild a part from its wire form."""
    part_type = data.get("type")
    if part_type == "text":
        return TextPart(text=data.get("text", ""))
    if part_type == "tool":
        return ToolPart(
            tool_name=data["toolName"],
            tool_call_id=data.get("toolCallId") or new_tool_call_id(),
            state=PartState(data.get("state", PartState.INPUT_STREAMING.value)),
            input=data.get("input"),
            output=data.get("output"),
            error_text=data.get("errorText"),
        )
    raise ValueError(f"Unknown part type: {part_type!r}")


@dataclass
class Message:
    """A single participant's contribution to the conversation."""

    role: Role
    parts: list[Part] = field(default_factory=list)
    id: str = field(default_factory=new_message_id)

    @classmethod
    def user(cls, text: str, message_id: Optional[str] = None) -> "Message":
        """Create a user message holding exactly one text part."""
        message = cls(role=Role.USER, parts=[TextPart(text=text)])
        if message_id:
            message.id = message_id
        return message

    @property
    def text(self) -> str:
        """All text parts joined in order."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_parts(self) -> list[ToolPart]:
        return [p for p in self.parts if isinstance(p, ToolPart)]

    def snapshot(self) -> "Message":
        """Deep copy, safe to hand to readers while streaming continues."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "parts": [p.to_dict() for p in self.parts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(
            id=data.get("id") or new_message_id(),
            role=Role(data["role"]),
            parts=[part_from_dict(p) for p in data.get("parts", [])],
        )


def validate_user_message(message: Message) -> None:
    """
    Check the user-message shape: exactly one text part, no tool parts.

    Raises:
        ValueError: The message breaks the shape.
    """
    if message.role != Role.USER:
        return
    if message.tool_parts:
        raise ValueError(f"User message {message.id} must not contain tool parts")
    text_parts = [p for p in message.parts if isinstance(p, TextPart)]
    if len(text_parts) != 1:
        raise ValueError(
            f"User message {message.id} must contain exactly one text part, "
            f"found {len(text_parts)}"
        )


def count_tool_runs(messages) -> int:
    """Number of tool parts whose output is available."""
    return sum(
        1
        for message in messages
        for part in message.parts
        if isinstance(part, ToolPart) and part.state == PartState.OUTPUT_AVAILABLE
    )
