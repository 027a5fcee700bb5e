"""
Tests for Conversation: one run at a time, cancellation and the consumer
contract while a response streams.
"""

import asyncio

import pytest

from stellar_console.conversation import Conversation, build_planner
from stellar_console.exceptions import ConversationBusyError
from stellar_console.orchestration import (
    CallTool,
    EmitText,
    FinishReason,
    KeywordPlanner,
    LLMPlanner,
    ScriptedPlanner,
)
from stellar_console.transcript import Message, PartState, Status
from stellar_console.transcript.events import MessageFinishEvent


class TestBuildPlanner:
    """Tests for the planner factory."""

    def test_keyword(self):
        assert isinstance(build_planner("keyword"), KeywordPlanner)

    def test_llm(self):
        assert isinstance(build_planner("LLM"), LLMPlanner)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_planner("oracle")


class TestConversation:
    """Tests for response lifecycle through a conversation."""

    def test_respond_updates_transcript(self):
        """A finished response is appended after the user message."""
        conversation = Conversation(planner_factory=KeywordPlanner, timeout_seconds=5)

        result = asyncio.run(conversation.respond("What's the weather in Titan?"))

        assert result.finish_reason == FinishReason.STOP
        user, assistant = conversation.messages
        assert user.text == "What's the weather in Titan?"
        assert assistant.id == result.message.id
        assert conversation.status == Status.IDLE
        assert conversation.tool_run_count() == 1
        assert not conversation.busy

    def test_stream_yields_all_events(self):
        """The response stream ends with message-finish."""
        conversation = Conversation(
            planner_factory=lambda: ScriptedPlanner([EmitText(["a", "b"])]),
            timeout_seconds=5,
        )

        async def scenario():
            stream = conversation.submit("hello")
            return [event async for event in stream]

        events = asyncio.run(scenario())

        assert events[0].type == "message-start"
        assert events[-1] == MessageFinishEvent(finishReason="stop")
        assert [e.delta for e in events if e.type == "text-delta"] == ["a", "b"]

    def test_busy_while_reasoning(self, gated_registry):
        """A second submit during a response is rejected."""

        async def scenario():
            registry = gated_registry.make()
            conversation = Conversation(
                planner_factory=lambda: ScriptedPlanner(
                    [CallTool("weather", {"location": "Io"})]
                ),
                tool_registry=registry,
                timeout_seconds=5,
            )
            conversation.submit("weather on Io")
            await gated_registry.started.wait()
            assert conversation.busy
            assert conversation.status == Status.REASONING
            with pytest.raises(ConversationBusyError):
                conversation.submit("again")
            with pytest.raises(ConversationBusyError):
                conversation.clear()
            gated_registry.release.set()
            return await conversation.wait(), conversation

        result, conversation = asyncio.run(scenario())

        assert result.finish_reason == FinishReason.STOP
        assert len(conversation.messages) == 2
        assert conversation.tool_run_count() == 1

    def test_cancel_freezes_part(self, gated_registry):
        """Cancelling leaves the tool part in input-available and returns to idle."""

        async def scenario():
            registry = gated_registry.make()
            conversation = Conversation(
                planner_factory=lambda: ScriptedPlanner(
                    [CallTool("weather", {"location": "Titan"})]
                ),
                tool_registry=registry,
                timeout_seconds=5,
            )
            stream = conversation.submit("weather in Titan")
            await gated_registry.started.wait()
            assert conversation.cancel()
            events = [event async for event in stream]
            result = await conversation.wait()
            return conversation, events, result

        conversation, events, result = asyncio.run(scenario())

        assert result is None
        assert events[-1] == MessageFinishEvent(finishReason="cancelled")
        part = conversation.messages[-1].parts[0]
        assert part.state == PartState.INPUT_AVAILABLE
        assert conversation.status == Status.IDLE
        assert conversation.tool_run_count() == 0
        assert not conversation.cancel()

    def test_cancel_before_first_step(self):
        """A response cancelled before it ran still closes cleanly."""

        async def scenario():
            conversation = Conversation(
                planner_factory=lambda: ScriptedPlanner([EmitText("never")]),
                timeout_seconds=5,
            )
            stream = conversation.submit("hi")
            conversation.cancel()
            events = [event async for event in stream]
            return conversation, events

        conversation, events = asyncio.run(scenario())

        assert [e.type for e in events] == ["message-start", "message-finish"]
        assert events[-1].finishReason == "cancelled"
        assert len(conversation.messages) == 2
        assert conversation.status == Status.IDLE

    def test_error_status_then_resubmit(self):
        """A response-level error sets status error; the next message clears it."""
        planners = iter(
            [
                ScriptedPlanner([CallTool("teleport", {})]),
                ScriptedPlanner([EmitText("Back online.")]),
            ]
        )
        conversation = Conversation(
            planner_factory=lambda: next(planners), timeout_seconds=5
        )

        async def scenario():
            await conversation.respond("teleport me")
            status_after_error = conversation.status
            error = conversation.last_error
            await conversation.respond("weather?")
            return status_after_error, error

        status_after_error, error = asyncio.run(scenario())

        assert status_after_error == Status.ERROR
        assert "teleport" in error
        assert conversation.status == Status.IDLE
        assert len(conversation.messages) == 4
        assert conversation.messages[-1].text == "Back online."

    def test_history_is_kept(self):
        """Prior messages stay in front of the new exchange."""
        history = [Message.user("earlier question")]
        conversation = Conversation(
            planner_factory=lambda: ScriptedPlanner([EmitText("ok")]),
            history=history,
            timeout_seconds=5,
        )

        asyncio.run(conversation.respond("follow-up"))

        assert [m.text for m in conversation.messages] == [
            "earlier question",
            "follow-up",
            "ok",
        ]

    def test_rejects_malformed_user_message(self):
        """A user message without its text part is rejected."""
        conversation = Conversation(planner_factory=KeywordPlanner)
        message = Message.user("hi")
        message.parts = []

        async def scenario():
            conversation.submit(message)

        with pytest.raises(ValueError):
            asyncio.run(scenario())

    def test_clear(self):
        """clear() empties an idle conversation."""
        conversation = Conversation(
            planner_factory=lambda: ScriptedPlanner([EmitText("ok")]),
            timeout_seconds=5,
        )
        asyncio.run(conversation.respond("hi"))

        conversation.clear()

        assert conversation.messages == ()
        assert conversation.last_result is None
