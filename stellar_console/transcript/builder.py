"""
Streaming transcript builder.

Owns the in-progress assistant message as an ordered arena of parts
addressed by index. The orchestrator mutates it through ``append``,
``append_text`` and ``transition``; readers call ``current_message`` at any
time, including mid-tool-execution, and get a snapshot.

Every mutation is recorded as a ``TranscriptEvent`` and pushed to the
subscribed listeners, so the same message can be rebuilt elsewhere with
``TranscriptBuilder.replay``.
"""

import logging
from typing import Callable, Iterable, Optional

from ..exceptions import IllegalTransitionError
from .events import (
    ErrorEvent,
    MessageFinishEvent,
    MessageStartEvent,
    PartAppendEvent,
    PartTransitionEvent,
    StepFinishEvent,
    TextDeltaEvent,
    TranscriptEvent,
)
from .models import (
    ALLOWED_TRANSITIONS,
    Message,
    Part,
    PartState,
    Role,
    TextPart,
    ToolPart,
    part_from_dict,
    tool_payload_problem,
)

logger = logging.getLogger(__name__)

EventListener = Callable[[TranscriptEvent], None]


class TranscriptBuilder:
    """Incrementally assembles one assistant message."""

    def __init__(self, message_id: Optional[str] = None):
        self._message = Message(role=Role.ASSISTANT)
        if message_id:
            self._message.id = message_id
        self._events: list[TranscriptEvent] = []
        self._listeners: list[EventListener] = []
        self._started = False
        self._finished = False
        self.finish_reason: Optional[str] = None
        self.error_text: Optional[str] = None

    # ---- Read side ----

    @property
    def message_id(self) -> str:
        return self._message.id

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def part_count(self) -> int:
        return len(self._message.parts)

    @property
    def events(self) -> list[TranscriptEvent]:
        """Copy of every event emitted so far, in order."""
        return list(self._events)

    def current_message(self) -> Message:
        """The message with all parts produced so far, in their current states."""
        return self._message.snapshot()

    def subscribe(self, listener: EventListener) -> None:
        """Receive every future event."""
        self._listeners.append(listener)

    # ---- Mutations ----

    def start(self) -> None:
        if self._started:
            raise IllegalTransitionError(f"Message {self.message_id} already started")
        self._started = True
        self._emit(MessageStartEvent(messageId=self.message_id))

    def append(self, part: Part) -> int:
        """Append a new part and return its index."""
        self._check_open()
        if isinstance(part, ToolPart) and part.state != PartState.INPUT_STREAMING:
            raise IllegalTransitionError(
                f"Tool part must be appended in '{PartState.INPUT_STREAMING.value}', "
                f"got '{part.state.value}'"
            )
        self._message.parts.append(part)
        index = len(self._message.parts) - 1
        self._emit(PartAppendEvent(index=index, part=part.to_dict()))
        return index

    def append_text(self, index: int, delta: str) -> None:
        """Grow a text part by ``delta``."""
        self._check_open()
        part = self._part_at(index)
        if not isinstance(part, TextPart):
            raise IllegalTransitionError(f"Part {index} is not a text part")
        if not delta:
            return
        part.text += delta
        self._emit(TextDeltaEvent(index=index, delta=delta))

    def transition(
        self,
        index: int,
        new_state: PartState,
        *,
        input: Optional[dict] = None,
        output: Optional[dict] = None,
        error_text: Optional[str] = None,
    ) -> None:
        """
        Advance a tool part to ``new_state`` with its payload.

        Raises:
            IllegalTransitionError: The part is not a tool part, the move is
                not a legal forward step, or the payload does not fit the
                target state.
        """
        self._check_open()
        part = self._part_at(index)
        if not isinstance(part, ToolPart):
            raise IllegalTransitionError(f"Part {index} is not a tool part")

        new_state = PartState(new_state)
        if new_state not in ALLOWED_TRANSITIONS[part.state]:
            raise IllegalTransitionError(
                f"Part {index} ({part.tool_name}) cannot move from "
                f"'{part.state.value}' to '{new_state.value}'"
            )
        problem = tool_payload_problem(new_state, output, error_text)
        if problem:
            raise IllegalTransitionError(problem)

        part.state = new_state
        if input is not None:
            part.input = input
        part.output = output
        part.error_text = error_text

        self._emit(
            PartTransitionEvent(
                index=index,
                state=new_state.value,
                input=input,
                output=output,
                errorText=error_text,
            )
        )

    def step_finished(self, step: int) -> None:
        self._check_open()
        self._emit(StepFinishEvent(step=step))

    def fail(self, error_text: str) -> None:
        """Record a response-level failure; committed parts stay as they are."""
        self._check_open()
        self.error_text = error_text
        self._emit(ErrorEvent(errorText=error_text))

    def finish(self, reason: str) -> None:
        """Close the message. No mutation is accepted afterwards."""
        self._check_open()
        self._finished = True
        self.finish_reason = reason
        self._emit(MessageFinishEvent(finishReason=reason))

    # ---- Replay ----

    def apply(self, event: TranscriptEvent) -> None:
        """Apply one event as if the orchestrator had produced it."""
        if isinstance(event, MessageStartEvent):
            self._message.id = event.messageId
            self.start()
        elif isinstance(event, PartAppendEvent):
            if event.index != self.part_count:
                raise IllegalTransitionError(
                    f"Out-of-order append: expected index {self.part_count}, "
                    f"got {event.index}"
                )
            self.append(part_from_dict(event.part))
        elif isinstance(event, TextDeltaEvent):
            self.append_text(event.index, event.delta)
        elif isinstance(event, PartTransitionEvent):
            self.transition(
                event.index,
                PartState(event.state),
                input=event.input,
                output=event.output,
                error_text=event.errorText,
            )
        elif isinstance(event, StepFinishEvent):
            self.step_finished(event.step)
        elif isinstance(event, ErrorEvent):
            self.fail(event.errorText)
        elif isinstance(event, MessageFinishEvent):
            self.finish(event.finishReason)
        else:
            raise TypeError(f"Unsupported event: {event!r}")

    @classmethod
    def replay(cls, events: Iterable[TranscriptEvent]) -> "TranscriptBuilder":
        """Rebuild a message from a captured, ordered event stream."""
        builder = cls()
        for event in events:
            builder.apply(event)
        return builder

    # ---- Internals ----

    def _check_open(self) -> None:
        if not self._started:
            raise IllegalTransitionError(f"Message {self.message_id} not started")
        if self._finished:
            raise IllegalTransitionError(f"Message {self.message_id} already finished")

    def _part_at(self, index: int) -> Part:
        if index < 0 or index >= len(self._message.parts):
            raise IllegalTransitionError(f"No part at index {index}")
        return self._message.parts[index]

    def _emit(self, event: TranscriptEvent) -> None:
        self._events.append(event)
        for listener in self._listeners:
            listener(event)
