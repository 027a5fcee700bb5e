"""
Language-model planner.

Drives decisions with an OpenAI-compatible chat completions endpoint using
native function calling. One completion may produce text followed by tool
calls; the text is handed to the orchestrator as a live chunk stream and the
tool calls are queued as the following steps. A completion that ends
without tool calls is the final answer.

The transcript is converted to chat messages on every completion, so no
conversation state is held beyond the current completion.
"""

import json
import logging
from collections import deque
from typing import AsyncIterator, Optional, Sequence

from openai import APIError, AsyncOpenAI

from ..config import config
from ..exceptions import TransportError
from ..tools.registry import ToolRegistry, registry
from ..transcript.models import Message, PartState, Role, TextPart, ToolPart
from .planner import CallTool, EmitText, Planner, PlannerStep, Stop
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def build_chat_messages(
    transcript: Sequence[Message], system_prompt: str = SYSTEM_PROMPT
) -> list[dict]:
    """
    Convert a transcript to chat completion messages.

    Assistant parts are grouped into runs: the text before a batch of tool
    calls becomes the assistant ``content``, each settled tool part becomes a
    ``tool_calls`` entry followed by its ``tool`` result message. Tool parts
    that never settled (cancelled responses) are left out because every call
    must be answered.
    """
    messages: list[dict] = [{"role": "system", "content": system_prompt}]

    for message in transcript:
        if message.role == Role.USER:
            messages.append({"role": "user", "content": message.text})
            continue

        text = ""
        calls: list[ToolPart] = []
        for part in message.parts:
            if isinstance(part, TextPart):
                if calls:
                    messages.extend(_assistant_run(text, calls))
                    text, calls = "", []
                text += part.text
            elif part.settled:
                calls.append(part)
        if text or calls:
            messages.extend(_assistant_run(text, calls))

    return messages


def _assistant_run(text: str, calls: list[ToolPart]) -> list[dict]:
    assistant: dict = {"role": "assistant", "content": text or None}
    if calls:
        assistant["tool_calls"] = [
            {
                "id": part.tool_call_id,
                "type": "function",
                "function": {
                    "name": part.tool_name,
                    "arguments": json.dumps(part.input or {}),
                },
            }
            for part in calls
        ]
    run = [assistant]
    for part in calls:
        if part.state == PartState.OUTPUT_AVAILABLE:
            content = json.dumps(part.output)
        else:
            content = f"Error: {part.error_text}"
        run.append({"role": "tool", "tool_call_id": part.tool_call_id, "content": content})
    return run


class LLMPlanner(Planner):
    """Planner backed by an OpenAI-compatible model."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        tool_registry: ToolRegistry = registry,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self._client = client or AsyncOpenAI(
            base_url=config.llm.base_url,
            api_key=config.llm.api_key or "not-needed",
        )
        self._model = model or config.llm.model
        self._temperature = (
            temperature if temperature is not None else config.llm.temperature
        )
        self._registry = tool_registry
        self._system_prompt = system_prompt

        self._pending: deque[PlannerStep] = deque()
        self._final = False
        # tool call index -> {"id", "name", "arguments"}
        self._calls: dict[int, dict] = {}

    async def next_step(self, transcript: Sequence[Message]) -> PlannerStep:
        if self._pending:
            return self._pending.popleft()
        if self._final:
            return Stop()

        stream = await self._open_stream(transcript)
        chunks = self._read(stream)
        first_text = await self._first_text(chunks)
        if first_text is not None:
            return EmitText(chunks=self._continue_text(first_text, chunks))

        if self._pending:
            return self._pending.popleft()
        return Stop()

    async def _open_stream(self, transcript: Sequence[Message]):
        messages = build_chat_messages(transcript, self._system_prompt)
        self._calls = {}
        try:
            logger.debug("Requesting completion from %s", self._model)
            return await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                tools=self._registry.tool_specs(),
                temperature=self._temperature,
                stream=True,
            )
        except APIError as e:
            logger.error("Model request failed: %s", e)
            raise TransportError(f"Model request failed: {e}") from e

    async def _read(self, stream) -> AsyncIterator[str]:
        """Yield text deltas; collect tool call deltas on the side."""
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                for call in delta.tool_calls or []:
                    entry = self._calls.setdefault(
                        call.index, {"id": None, "name": "", "arguments": ""}
                    )
                    if call.id:
                        entry["id"] = call.id
                    if call.function and call.function.name:
                        entry["name"] += call.function.name
                    if call.function and call.function.arguments:
                        entry["arguments"] += call.function.arguments
                if delta.content:
                    yield delta.content
        except APIError as e:
            logger.error("Model stream interrupted: %s", e)
            raise TransportError(f"Model stream interrupted: {e}") from e
        self._finalize()

    async def _first_text(self, chunks: AsyncIterator[str]) -> Optional[str]:
        async for text in chunks:
            return text
        return None

    async def _continue_text(
        self, first: str, chunks: AsyncIterator[str]
    ) -> AsyncIterator[str]:
        yield first
        async for text in chunks:
            yield text

    def _finalize(self) -> None:
        """Queue collected tool calls; no calls means the answer is final."""
        if not self._calls:
            self._final = True
            return
        for index in sorted(self._calls):
            entry = self._calls[index]
            self._pending.append(
                CallTool(
                    tool_name=entry["name"],
                    arguments=self._parse_arguments(entry["arguments"]),
                    call_id=entry["id"],
                )
            )
        self._calls = {}

    @staticmethod
    def _parse_arguments(raw: str):
        """Decode streamed JSON arguments; malformed input is passed through
        so the registry reports it as invalid arguments."""
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to parse tool arguments: %s", raw[:200])
            return raw

    async def aclose(self) -> None:
        await self._client.close()
