"""
Tests for the language-model planner.

The OpenAI client is replaced with mocks that replay canned streaming
chunks, so no network access is needed.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
from openai import APIConnectionError

from stellar_console.orchestration import (
    CallTool,
    EmitText,
    FinishReason,
    LLMPlanner,
    Stop,
    TurnOrchestrator,
)
from stellar_console.orchestration.llm_planner import build_chat_messages
from stellar_console.transcript import (
    Message,
    PartState,
    TextPart,
    ToolPart,
    TranscriptBuilder,
)
from stellar_console.transcript.models import Role


def _chunk(content=None, tool_calls=None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def _call(index, id=None, name=None, arguments=None):
    return SimpleNamespace(
        index=index,
        id=id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


async def _stream(chunks):
    for chunk in chunks:
        yield chunk


def _client(*completions):
    """Mock AsyncOpenAI returning one stream per completion request."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        side_effect=[_stream(chunks) for chunks in completions]
    )
    client.close = AsyncMock()
    return client


class TestBuildChatMessages:
    """Tests for transcript to chat message conversion."""

    def test_user_and_text(self):
        """User and plain assistant text map to chat roles."""
        transcript = [
            Message.user("Hi"),
            Message(role=Role.ASSISTANT, parts=[TextPart(text="Hello, navigator.")]),
        ]

        messages = build_chat_messages(transcript, system_prompt="SYS")

        assert messages == [
            {"role": "system", "content": "SYS"},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello, navigator."},
        ]

    def test_tool_parts_become_calls_and_results(self):
        """Settled tool parts produce tool_calls and tool messages."""
        ok = ToolPart(
            tool_name="weather",
            tool_call_id="call_1",
            state=PartState.OUTPUT_AVAILABLE,
            input={"location": "Io"},
            output={"temperature": 90},
        )
        bad = ToolPart(
            tool_name="whatToWear",
            tool_call_id="call_2",
            state=PartState.OUTPUT_ERROR,
            input={"suggestions": []},
            error_text="too few",
        )
        pending = ToolPart(
            tool_name="hazardScan",
            tool_call_id="call_3",
            state=PartState.INPUT_AVAILABLE,
            input={"location": "Io"},
        )
        transcript = [
            Message.user("Io?"),
            Message(
                role=Role.ASSISTANT,
                parts=[TextPart(text="Checking."), ok, bad, pending],
            ),
        ]

        messages = build_chat_messages(transcript, system_prompt="SYS")

        assistant = messages[2]
        assert assistant["content"] == "Checking."
        assert [c["id"] for c in assistant["tool_calls"]] == ["call_1", "call_2"]
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {
            "location": "Io"
        }
        assert messages[3] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "content": json.dumps({"temperature": 90}),
        }
        assert messages[4]["content"] == "Error: too few"
        assert len(messages) == 5

    def test_text_after_tools_starts_new_run(self):
        """Text following tool calls becomes a separate assistant message."""
        tool = ToolPart(
            tool_name="weather",
            tool_call_id="call_1",
            state=PartState.OUTPUT_AVAILABLE,
            input={"location": "Io"},
            output={},
        )
        transcript = [
            Message.user("Io?"),
            Message(role=Role.ASSISTANT, parts=[tool, TextPart(text="Cold.")]),
        ]

        messages = build_chat_messages(transcript, system_prompt="SYS")

        assert [m["role"] for m in messages] == [
            "system",
            "user",
            "assistant",
            "tool",
            "assistant",
        ]
        assert messages[2]["content"] is None
        assert messages[-1]["content"] == "Cold."


class TestLLMPlanner:
    """Tests for step production from streamed completions."""

    def test_text_then_tool_then_final(self):
        """A full exchange drives text, a tool call and a final answer."""
        client = _client(
            [
                _chunk(content="Checking "),
                _chunk(content="Titan. "),
                _chunk(tool_calls=[_call(0, id="call_1", name="weather", arguments='{"loca')]),
                _chunk(tool_calls=[_call(0, arguments='tion": "Titan"}')]),
            ],
            [_chunk(content="Bundle up.")],
        )
        planner = LLMPlanner(client=client, model="test-model", temperature=0)
        builder = TranscriptBuilder()

        result = asyncio.run(
            TurnOrchestrator(planner, timeout_seconds=5).respond(
                [Message.user("Weather in Titan?")], builder
            )
        )

        assert result.finish_reason == FinishReason.STOP
        text, tool, final = result.message.parts
        assert text.text == "Checking Titan. "
        assert tool.tool_call_id == "call_1"
        assert tool.input == {"location": "Titan"}
        assert tool.state == PartState.OUTPUT_AVAILABLE
        assert final.text == "Bundle up."
        client.close.assert_awaited_once()

        second = client.chat.completions.create.call_args_list[1].kwargs
        assert second["model"] == "test-model"
        assert second["stream"] is True
        assert {t["function"]["name"] for t in second["tools"]} >= {"weather"}
        roles = [m["role"] for m in second["messages"]]
        assert roles == ["system", "user", "assistant", "tool"]

    def test_tool_calls_without_text(self):
        """Parallel tool calls are returned one per step, in index order."""
        client = _client(
            [
                _chunk(
                    tool_calls=[
                        _call(1, id="b", name="hazardScan", arguments='{"location": "Io"}'),
                        _call(0, id="a", name="weather", arguments='{"location": "Io"}'),
                    ]
                )
            ]
        )
        planner = LLMPlanner(client=client, model="m", temperature=0)

        async def steps():
            transcript = [Message.user("Io?")]
            return [await planner.next_step(transcript) for _ in range(2)]

        first, second = asyncio.run(steps())

        assert first == CallTool("weather", {"location": "Io"}, "a")
        assert second == CallTool("hazardScan", {"location": "Io"}, "b")

    def test_final_answer_then_stop(self):
        """A completion without tool calls is final."""
        client = _client([_chunk(content="All clear.")])
        planner = LLMPlanner(client=client, model="m", temperature=0)

        async def steps():
            transcript = [Message.user("Hi")]
            step = await planner.next_step(transcript)
            text = [chunk async for chunk in step.chunks]
            return step, text, await planner.next_step(transcript)

        step, text, after = asyncio.run(steps())

        assert isinstance(step, EmitText)
        assert text == ["All clear."]
        assert after == Stop()

    def test_malformed_arguments_become_tool_error(self):
        """Unparseable arguments reach the registry and fail validation."""
        client = _client(
            [_chunk(tool_calls=[_call(0, id="c", name="weather", arguments='{"loc')])],
            [_chunk(content="Let me retry later.")],
        )
        planner = LLMPlanner(client=client, model="m", temperature=0)

        result = asyncio.run(
            TurnOrchestrator(planner, timeout_seconds=5).respond(
                [Message.user("Weather?")], TranscriptBuilder()
            )
        )

        part = result.message.parts[0]
        assert part.state == PartState.OUTPUT_ERROR
        assert "Invalid arguments for 'weather'" in part.error_text
        assert result.finish_reason == FinishReason.STOP

    def test_connection_failure_is_transport_error(self):
        """API errors end the response as a response-level failure."""
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=APIConnectionError(
                request=httpx.Request("POST", "http://localhost/v1/chat/completions")
            )
        )
        client.close = AsyncMock()
        planner = LLMPlanner(client=client, model="m", temperature=0)
        builder = TranscriptBuilder()

        result = asyncio.run(
            TurnOrchestrator(planner, timeout_seconds=5).respond(
                [Message.user("Weather?")], builder
            )
        )

        assert result.finish_reason == FinishReason.ERROR
        assert builder.error_text.startswith("Model request failed")
