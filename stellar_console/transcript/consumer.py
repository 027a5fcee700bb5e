"""
Transcript consumer contract.

``TranscriptView`` is what rendering, input and telemetry layers read:
the transcript, the number of completed tool runs, and a coarse status.
``TranscriptConsumer`` implements it by applying transcript-update events,
whether they come from a local orchestrator or a buffered SSE stream.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Protocol

from .builder import TranscriptBuilder
from .events import (
    ErrorEvent,
    MessageFinishEvent,
    MessageStartEvent,
    PartAppendEvent,
    PartTransitionEvent,
    TextDeltaEvent,
    TranscriptEvent,
)
from .models import Message, Role, count_tool_runs, validate_user_message

logger = logging.getLogger(__name__)


class Status(str, Enum):
    """Coarse display status derived from the orchestrator phase."""

    IDLE = "idle"
    REASONING = "reasoning"
    STREAMING_TEXT = "streaming-text"
    ERROR = "error"


class TranscriptView(Protocol):
    """Read-only access for rendering and telemetry layers."""

    @property
    def messages(self) -> tuple[Message, ...]: ...

    @property
    def status(self) -> Status: ...

    def tool_run_count(self) -> int: ...


class TranscriptConsumer:
    """Applies transcript-update events to a local transcript."""

    def __init__(self, history: Iterable[Message] = ()):
        self._messages: list[Message] = []
        for message in history:
            validate_user_message(message)
            self._messages.append(message.snapshot())
        self._live: Optional[TranscriptBuilder] = None
        self._status = Status.IDLE
        self.last_error: Optional[str] = None

    @property
    def messages(self) -> tuple[Message, ...]:
        """Settled messages plus a snapshot of the one still streaming."""
        if self._live is None:
            return tuple(self._messages)
        return tuple(self._messages) + (self._live.current_message(),)

    @property
    def status(self) -> Status:
        return self._status

    @property
    def streaming(self) -> bool:
        return self._live is not None

    def tool_run_count(self) -> int:
        return count_tool_runs(self.messages)

    def add_user_message(self, message: Message) -> None:
        """Append a user message; the next response starts reasoning on it."""
        if self._live is not None:
            raise RuntimeError("Cannot add a user message while a response is streaming")
        if message.role != Role.USER:
            raise ValueError("Only user messages can be added directly")
        validate_user_message(message)
        self._messages.append(message)
        self.last_error = None
        self._status = Status.REASONING

    def apply(self, event: TranscriptEvent) -> None:
        """Apply one event and update the derived status."""
        if isinstance(event, MessageStartEvent):
            self._live = TranscriptBuilder()
            self._status = Status.REASONING

        if self._live is None:
            raise RuntimeError(f"Event {event.type!r} arrived before message-start")
        self._live.apply(event)

        if isinstance(event, TextDeltaEvent):
            self._status = Status.STREAMING_TEXT
        elif isinstance(event, (PartAppendEvent, PartTransitionEvent)):
            if event.type == "part-append" and event.part.get("type") == "text":
                self._status = Status.STREAMING_TEXT
            else:
                self._status = Status.REASONING
        elif isinstance(event, ErrorEvent):
            self.last_error = event.errorText
            self._status = Status.ERROR
        elif isinstance(event, MessageFinishEvent):
            self._messages.append(self._live.current_message())
            self._live = None
            if self._status != Status.ERROR:
                self._status = Status.IDLE

    def apply_all(self, events: Iterable[TranscriptEvent]) -> None:
        for event in events:
            self.apply(event)

    def clear(self) -> None:
        """Drop the whole transcript."""
        if self._live is not None:
            raise RuntimeError("Cannot clear while a response is streaming")
        self._messages.clear()
        self.last_error = None
        self._status = Status.IDLE
