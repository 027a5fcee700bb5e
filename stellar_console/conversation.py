"""
Conversation - one transcript, at most one response in flight.

``Conversation.submit`` appends a user message and starts a background task
that drives a ``TurnOrchestrator``. Transcript-update events flow to two
places as they are produced: the conversation's own ``TranscriptConsumer``
(the read-only view rendering layers use) and the returned
``ResponseStream``, which the HTTP layer turns into Server-Sent Events.
"""

import asyncio
import logging
import uuid
from typing import AsyncIterator, Callable, Iterable, Optional, Union

from .config import config
from .exceptions import ConversationBusyError
from .orchestration.keyword_planner import KeywordPlanner
from .orchestration.llm_planner import LLMPlanner
from .orchestration.orchestrator import ResponseResult, TurnOrchestrator
from .orchestration.planner import Planner
from .tools.registry import ToolRegistry, registry
from .tracing import TracingContext
from .transcript.builder import TranscriptBuilder
from .transcript.consumer import Status, TranscriptConsumer
from .transcript.events import TranscriptEvent
from .transcript.models import Message

logger = logging.getLogger(__name__)

PlannerFactory = Callable[[], Planner]


def build_planner(name: Optional[str] = None) -> Planner:
    """Create the planner named in configuration (``keyword`` or ``llm``)."""
    name = (name or config.orchestrator.planner).lower()
    if name == "keyword":
        return KeywordPlanner()
    if name == "llm":
        return LLMPlanner()
    raise ValueError(f"Unknown planner '{name}' (expected 'keyword' or 'llm')")


class ResponseStream:
    """Async iterator over the events of a single response."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[TranscriptEvent | None] = asyncio.Queue()
        self._closed = False

    def push(self, event: TranscriptEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        """Signal the stream is complete."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[TranscriptEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                break
            yield event

    def __aiter__(self) -> AsyncIterator[TranscriptEvent]:
        return self.events()


class Conversation:
    """A single conversation and its live transcript."""

    def __init__(
        self,
        planner_factory: Optional[PlannerFactory] = None,
        tool_registry: ToolRegistry = registry,
        max_steps: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        history: Iterable[Message] = (),
        session_id: Optional[str] = None,
    ):
        self._planner_factory = planner_factory or build_planner
        self._registry = tool_registry
        self._max_steps = max_steps
        self._timeout_seconds = timeout_seconds
        self.session_id = session_id or f"conv-{uuid.uuid4().hex[:8]}"
        self._consumer = TranscriptConsumer(history)
        self._task: Optional[asyncio.Task] = None
        self.last_result: Optional[ResponseResult] = None

    # ---- Consumer contract ----

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._consumer.messages

    @property
    def status(self) -> Status:
        return self._consumer.status

    @property
    def last_error(self) -> Optional[str]:
        return self._consumer.last_error

    def tool_run_count(self) -> int:
        return self._consumer.tool_run_count()

    # ---- Control ----

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, message: Union[str, Message]) -> ResponseStream:
        """
        Append a user message and start the assistant response.

        Must be called from a running event loop.

        Raises:
            ConversationBusyError: A response is still in flight.
            ValueError: The message is not a well-formed user message.
        """
        if self.busy:
            raise ConversationBusyError(
                f"Conversation {self.session_id} is still responding"
            )
        if isinstance(message, str):
            message = Message.user(message)
        self._consumer.add_user_message(message)

        history = list(self._consumer.messages)
        builder = TranscriptBuilder()
        stream = ResponseStream()
        builder.subscribe(self._consumer.apply)
        builder.subscribe(stream.push)

        execution_id = f"exec-{uuid.uuid4().hex[:8]}"
        orchestrator = TurnOrchestrator(
            planner=self._planner_factory(),
            tool_registry=self._registry,
            max_steps=self._max_steps,
            timeout_seconds=self._timeout_seconds,
            execution_id=execution_id,
            tracing_context=TracingContext(
                execution_id=execution_id, session_id=self.session_id
            ),
        )
        self._task = asyncio.create_task(self._run(orchestrator, history, builder))
        self._task.add_done_callback(
            lambda task: self._on_done(task, builder, stream)
        )
        return stream

    async def _run(
        self,
        orchestrator: TurnOrchestrator,
        history: list[Message],
        builder: TranscriptBuilder,
    ) -> ResponseResult:
        result = await orchestrator.respond(history, builder)
        self.last_result = result
        return result

    def _on_done(
        self, task: asyncio.Task, builder: TranscriptBuilder, stream: ResponseStream
    ) -> None:
        # A task cancelled before its first step never started the builder
        if not builder.started:
            builder.start()
        if not builder.finished:
            builder.finish("cancelled" if task.cancelled() else "error")
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Response task for %s failed: %s", self.session_id, task.exception()
            )
        stream.close()

    def cancel(self) -> bool:
        """Cancel the in-flight response; returns False when idle."""
        if not self.busy:
            return False
        logger.info("Cancelling response for %s", self.session_id)
        self._task.cancel()
        return True

    async def wait(self) -> Optional[ResponseResult]:
        """Wait for the in-flight response; None if it did not complete."""
        task = self._task
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled() or task.exception() is not None:
            return None
        return task.result()

    async def respond(self, message: Union[str, Message]) -> Optional[ResponseResult]:
        """Submit a message and wait for the full response."""
        self.submit(message)
        return await self.wait()

    def clear(self) -> None:
        """Drop the whole transcript."""
        if self.busy:
            raise ConversationBusyError(
                f"Conversation {self.session_id} is still responding"
            )
        self._consumer.clear()
        self.last_result = None
