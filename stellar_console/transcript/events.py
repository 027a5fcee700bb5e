"""
Transcript-update events.

Every mutation of an in-progress assistant message is described by one
event. Events are delivered progressively over the transport and, applied
in order to an empty builder, reproduce the same message.
"""

import json
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

FinishReason = Literal["stop", "step-limit", "cancelled", "timeout", "error"]
ToolState = Literal["input-streaming", "input-available", "output-available", "output-error"]


class MessageStartEvent(BaseModel):
    type: Literal["message-start"] = "message-start"
    messageId: str


class PartAppendEvent(BaseModel):
    type: Literal["part-append"] = "part-append"
    index: int = Field(..., ge=0)
    part: dict


class TextDeltaEvent(BaseModel):
    type: Literal["text-delta"] = "text-delta"
    index: int = Field(..., ge=0)
    delta: str


class PartTransitionEvent(BaseModel):
    type: Literal["part-transition"] = "part-transition"
    index: int = Field(..., ge=0)
    state: ToolState
    input: Optional[dict] = None
    output: Optional[dict] = None
    errorText: Optional[str] = None


class StepFinishEvent(BaseModel):
    type: Literal["step-finish"] = "step-finish"
    step: int = Field(..., ge=1)


class MessageFinishEvent(BaseModel):
    type: Literal["message-finish"] = "message-finish"
    finishReason: FinishReason


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    errorText: str


TranscriptEvent = Annotated[
    Union[
        MessageStartEvent,
        PartAppendEvent,
        TextDeltaEvent,
        PartTransitionEvent,
        StepFinishEvent,
        MessageFinishEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter = TypeAdapter(TranscriptEvent)

# Terminates the SSE stream after the last event
SSE_DONE = "data: [DONE]\n\n"


def parse_event(data: Union[dict, str]) -> TranscriptEvent:
    """Parse an event from a dict or a JSON string."""
    if isinstance(data, str):
        data = json.loads(data)
    return _event_adapter.validate_python(data)


def to_sse(event: TranscriptEvent) -> str:
    """Format an event as a Server-Sent Events chunk."""
    return f"data: {event.model_dump_json(exclude_none=True)}\n\n"


def parse_sse(body: str) -> list[TranscriptEvent]:
    """Parse a buffered SSE body back into events, ignoring the done marker."""
    events = []
    for line in body.splitlines():
        if not line.startswith("data: "):
            continue
        payload = line[len("data: "):]
        if payload == "[DONE]":
            break
        events.append(parse_event(payload))
    return events
