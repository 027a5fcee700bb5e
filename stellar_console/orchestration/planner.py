"""
Planner capability.

A planner decides what the assistant does next given the transcript so
far (prior messages plus the in-progress assistant message as the last
entry). It answers with exactly one of:

- ``EmitText``: stream a span of text
- ``CallTool``: run one registered tool with the given arguments
- ``Stop``: the answer is complete

The orchestrator is independent of how that decision is made.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from ..transcript.models import Message, Role

logger = logging.getLogger(__name__)

TextChunks = Union[str, Iterable[str], AsyncIterable[str]]


@dataclass(frozen=True)
class EmitText:
    """Produce a text part from one or more chunks."""

    chunks: TextChunks


@dataclass(frozen=True)
class CallTool:
    """Invoke one tool."""

    tool_name: str
    arguments: dict = field(default_factory=dict)
    call_id: Optional[str] = None


@dataclass(frozen=True)
class Stop:
    """Final answer reached."""


PlannerStep = Union[EmitText, CallTool, Stop]


class Planner(ABC):
    """Decides the next step of a response."""

    @abstractmethod
    async def next_step(self, transcript: Sequence[Message]) -> PlannerStep:
        """Return the next step for the in-progress response."""

    async def aclose(self) -> None:
        """Release any resources held for the response."""


def latest_user_text(transcript: Sequence[Message]) -> str:
    """Text of the most recent user message, or an empty string."""
    for message in reversed(transcript):
        if message.role == Role.USER:
            return message.text
    return ""


def current_response(transcript: Sequence[Message]) -> Optional[Message]:
    """The in-progress assistant message, if the transcript ends with one."""
    if transcript and transcript[-1].role == Role.ASSISTANT:
        return transcript[-1]
    return None


ScriptEntry = Union[PlannerStep, Callable[[Sequence[Message]], PlannerStep]]


class ScriptedPlanner(Planner):
    """
    Deterministic planner that replays a fixed script.

    Entries are steps or callables computing a step from the transcript.
    Once the script runs out, every call answers ``Stop``. Each transcript
    passed in is recorded in ``seen`` for inspection.
    """

    def __init__(self, script: Sequence[ScriptEntry]):
        self._script = list(script)
        self._position = 0
        self.seen: list[list[Message]] = []

    async def next_step(self, transcript: Sequence[Message]) -> PlannerStep:
        self.seen.append(list(transcript))
        if self._position >= len(self._script):
            return Stop()
        entry = self._script[self._position]
        self._position += 1
        if callable(entry):
            return entry(transcript)
        return entry
