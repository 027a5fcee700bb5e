"""
Turn orchestrator.

Drives one assistant response to a user message. Each step the planner
either emits text, calls one tool, or stops; the result is written to a
``TranscriptBuilder`` in exactly the order it was produced.

Per-response state machine::

    Idle -> Reasoning -> (Reasoning)* -> Done

Limits:
    - at most ``max_steps`` planner steps (default 7); hitting the cap ends
      the response gracefully with the parts produced so far
    - a wall-clock ceiling (default 30 s); expiry behaves like cancellation

Tool-level failures (invalid arguments, execution errors) settle the tool
part in ``output-error`` and the loop continues. Response-level failures
(unknown tool, transport errors) end the response with an ``error`` event.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncGenerator, AsyncIterable
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional, Sequence

from ..config import config
from ..exceptions import (
    ConsoleError,
    InvalidArgumentsError,
    ToolExecutionError,
)
from ..tools.registry import ToolRegistry, registry
from ..tracing import TracingContext
from ..transcript.builder import TranscriptBuilder
from ..transcript.models import Message, PartState, TextPart, ToolPart
from .planner import CallTool, EmitText, Planner, Stop, TextChunks, latest_user_text

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    REASONING = "reasoning"
    DONE = "done"


class FinishReason(str, Enum):
    STOP = "stop"
    STEP_LIMIT = "step-limit"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass
class StepRecord:
    """A single step of a response, kept for the trace summary."""

    step_number: int
    action: str
    tool_name: Optional[str] = None
    part_index: Optional[int] = None
    outcome: Optional[str] = None


@dataclass
class ResponseResult:
    """Outcome of one orchestrated response."""

    message: Message
    finish_reason: FinishReason
    steps: list[StepRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def tools_used(self) -> list[str]:
        """Unique tools invoked, in first-use order."""
        seen: list[str] = []
        for step in self.steps:
            if step.tool_name and step.tool_name not in seen:
                seen.append(step.tool_name)
        return seen


async def _iterate_chunks(chunks: TextChunks) -> AsyncIterator[str]:
    """Normalize text chunks, yielding control between synchronous chunks."""
    if isinstance(chunks, str):
        yield chunks
    elif isinstance(chunks, AsyncIterable):
        async for chunk in chunks:
            yield chunk
    else:
        for chunk in chunks:
            yield chunk
            await asyncio.sleep(0)


class TurnOrchestrator:
    """Runs the reasoning loop for one assistant response."""

    def __init__(
        self,
        planner: Planner,
        tool_registry: ToolRegistry = registry,
        max_steps: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        execution_id: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.planner = planner
        self.registry = tool_registry
        self.max_steps = max_steps if max_steps is not None else config.orchestrator.max_steps
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else config.orchestrator.timeout_seconds
        )
        if self.max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.execution_id = execution_id or f"exec-{uuid.uuid4().hex[:8]}"
        self.tracing_context = tracing_context

        self.phase = Phase.IDLE
        self.steps: list[StepRecord] = []

    @property
    def _prefix(self) -> str:
        return f"[{self.execution_id}] "

    async def respond(
        self, history: Sequence[Message], builder: TranscriptBuilder
    ) -> ResponseResult:
        """
        Produce one assistant response into ``builder``.

        Args:
            history: Prior transcript ending with the new user message.
            builder: Fresh builder that receives the response parts.

        Returns:
            ResponseResult with the final message and finish reason.

        Raises:
            asyncio.CancelledError: The response was cancelled; the builder is
                finished with reason ``cancelled`` before re-raising.
        """
        if self.phase != Phase.IDLE:
            raise RuntimeError("An orchestrator drives exactly one response")

        self.phase = Phase.REASONING
        self.steps = []
        builder.start()
        logger.info("%sStarting response %s", self._prefix, builder.message_id)
        if self.tracing_context:
            self.tracing_context.start_trace(
                query=latest_user_text(history),
                metadata={"message_id": builder.message_id, "max_steps": self.max_steps},
            )

        error: Optional[str] = None
        timeout_cm = asyncio.timeout(self.timeout_seconds)
        try:
            async with timeout_cm:
                reason = await self._run_loop(history, builder)
        except TimeoutError:
            if not timeout_cm.expired():
                raise
            logger.warning(
                "%sResponse exceeded %.1fs, stopping", self._prefix, self.timeout_seconds
            )
            reason = FinishReason.TIMEOUT
        except asyncio.CancelledError:
            logger.info("%sResponse cancelled", self._prefix)
            self._close(builder, FinishReason.CANCELLED)
            raise
        except ConsoleError as e:
            logger.error("%sResponse failed: %s", self._prefix, e)
            error = str(e)
            builder.fail(error)
            reason = FinishReason.ERROR
        except Exception as e:
            logger.exception("%sUnexpected failure: %s", self._prefix, e)
            builder.fail(f"Internal error: {e}")
            self._close(builder, FinishReason.ERROR)
            raise
        finally:
            await self.planner.aclose()

        self._close(builder, reason)
        return ResponseResult(
            message=builder.current_message(),
            finish_reason=reason,
            steps=list(self.steps),
            error=error,
        )

    def _close(self, builder: TranscriptBuilder, reason: FinishReason) -> None:
        if not builder.finished:
            builder.finish(reason.value)
        self.phase = Phase.DONE
        self._log_trace_summary(reason)
        if self.tracing_context:
            self.tracing_context.end_trace(
                output=builder.current_message().text,
                status=(
                    "success"
                    if reason in (FinishReason.STOP, FinishReason.STEP_LIMIT)
                    else reason.value
                ),
                metadata={"steps": len(self.steps)},
            )

    async def _run_loop(
        self, history: Sequence[Message], builder: TranscriptBuilder
    ) -> FinishReason:
        """Core reasoning loop."""
        for step_num in range(1, self.max_steps + 1):
            transcript = [*history, builder.current_message()]
            step = await self.planner.next_step(transcript)

            if isinstance(step, Stop):
                self.steps.append(StepRecord(step_number=step_num, action="stop"))
                return FinishReason.STOP

            if isinstance(step, EmitText):
                await self._emit_text(step, builder, step_num)
            elif isinstance(step, CallTool):
                await self._call_tool(step, builder, step_num)
            else:
                raise TypeError(f"Planner returned an unknown step: {step!r}")

            builder.step_finished(step_num)

        logger.warning("%sMax steps (%d) reached", self._prefix, self.max_steps)
        return FinishReason.STEP_LIMIT

    async def _emit_text(
        self, step: EmitText, builder: TranscriptBuilder, step_num: int
    ) -> None:
        index = builder.append(TextPart())
        record = StepRecord(step_number=step_num, action="text", part_index=index)
        self.steps.append(record)
        chunks = _iterate_chunks(step.chunks)
        try:
            async for chunk in chunks:
                builder.append_text(index, chunk)
        finally:
            await chunks.aclose()
            if isinstance(step.chunks, AsyncGenerator):
                await step.chunks.aclose()
        record.outcome = f"{len(builder.current_message().parts[index].text)} chars"

    async def _call_tool(
        self, step: CallTool, builder: TranscriptBuilder, step_num: int
    ) -> None:
        # Unknown tools are a configuration error, not a tool-level one
        self.registry.resolve(step.tool_name)

        part = ToolPart(tool_name=step.tool_name)
        if step.call_id:
            part.tool_call_id = step.call_id
        index = builder.append(part)
        record = StepRecord(
            step_number=step_num,
            action="tool",
            tool_name=step.tool_name,
            part_index=index,
        )
        self.steps.append(record)

        # Let consumers observe input-streaming before the arguments land
        await asyncio.sleep(0)
        arguments = step.arguments if isinstance(step.arguments, dict) else {}
        builder.transition(index, PartState.INPUT_AVAILABLE, input=arguments)

        logger.debug(
            "%sStep %d: executing tool '%s'", self._prefix, step_num, step.tool_name
        )
        if self.tracing_context:
            with self.tracing_context.span(
                name=f"tool:{step.tool_name}", input=arguments
            ) as span:
                await self._execute(step, builder, index, record)
                span.set_output({"state": record.outcome})
                if record.outcome == PartState.OUTPUT_ERROR.value:
                    span.set_status("error")
        else:
            await self._execute(step, builder, index, record)

    async def _execute(
        self,
        step: CallTool,
        builder: TranscriptBuilder,
        index: int,
        record: StepRecord,
    ) -> None:
        try:
            output = await self.registry.ainvoke(step.tool_name, step.arguments)
        except (InvalidArgumentsError, ToolExecutionError) as e:
            logger.warning("%sTool '%s' failed: %s", self._prefix, step.tool_name, e)
            builder.transition(index, PartState.OUTPUT_ERROR, error_text=e.message)
            record.outcome = PartState.OUTPUT_ERROR.value
        else:
            builder.transition(index, PartState.OUTPUT_AVAILABLE, output=output)
            record.outcome = PartState.OUTPUT_AVAILABLE.value

    def _log_trace_summary(self, reason: FinishReason) -> None:
        """Log a compact trace summary."""
        logger.info("%s%s", self._prefix, "─" * 50)
        logger.info("%sTRACE SUMMARY (%s)", self._prefix, reason.value)
        logger.info("%s%s", self._prefix, "─" * 50)
        for step in self.steps:
            if step.action == "tool":
                logger.info(
                    "%sStep %d: %s -> %s",
                    self._prefix,
                    step.step_number,
                    step.tool_name,
                    step.outcome or "unsettled",
                )
            else:
                logger.info(
                    "%sStep %d: %s%s",
                    self._prefix,
                    step.step_number,
                    step.action,
                    f" ({step.outcome})" if step.outcome else "",
                )
