"""
Chat endpoints.

``POST /api/chat`` runs one assistant response and streams every
transcript update as a Server-Sent Event, ending with ``data: [DONE]``.
"""

import logging
import uuid
from typing import AsyncIterator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ...conversation import Conversation, ResponseStream, build_planner
from ...exceptions import ConversationBusyError
from ...tools.registry import registry
from ...transcript.events import SSE_DONE, to_sse
from ...transcript.models import Message, Role, validate_user_message
from ..schemas import (
    CancelResponse,
    ChatRequest,
    ErrorResponse,
    ToolInfo,
    ToolListResponse,
)
from ..sessions import sessions

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_transcript(request: ChatRequest) -> list[Message]:
    """Convert and check the request transcript, raising 400 on bad shape."""
    messages = [m.to_message() for m in request.messages]
    try:
        for message in messages:
            validate_user_message(message)
    except ValueError as e:
        logger.warning(f"Rejected malformed transcript: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid transcript: {e}")

    if messages[-1].role != Role.USER:
        raise HTTPException(
            status_code=400,
            detail="The last message must be a user message.",
        )
    return messages


async def _stream_events(
    conversation: Conversation, stream: ResponseStream
) -> AsyncIterator[str]:
    """Yield SSE chunks; a client disconnect cancels the response."""
    try:
        async for event in stream:
            yield to_sse(event)
        yield SSE_DONE
    finally:
        if conversation.cancel():
            logger.info(f"Client for {conversation.session_id} went away, cancelled")


@router.post(
    "/api/chat",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid transcript"},
        409: {"model": ErrorResponse, "description": "A response is already running"},
    },
    summary="Stream an assistant response",
    description=(
        "Append the last (user) message to the transcript and stream the "
        "assistant response as transcript-update events."
    ),
)
async def chat(request: ChatRequest) -> StreamingResponse:
    messages = _parse_transcript(request)
    chat_id = request.id or f"chat-{uuid.uuid4().hex[:12]}"
    logger.info(f"[{chat_id}] Chat request: {messages[-1].text[:100]}")

    try:
        conversation = sessions.start(
            chat_id, history=messages[:-1], planner_factory=build_planner
        )
        stream = conversation.submit(messages[-1])
    except ConversationBusyError as e:
        logger.warning(f"[{chat_id}] Rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    return StreamingResponse(
        _stream_events(conversation, stream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Chat-Id": chat_id},
    )


@router.post(
    "/api/chat/{chat_id}/cancel",
    response_model=CancelResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown chat"}},
    summary="Cancel a running response",
)
def cancel_chat(chat_id: str) -> CancelResponse:
    if sessions.get(chat_id) is None:
        raise HTTPException(status_code=404, detail=f"Chat '{chat_id}' not found")
    return CancelResponse(id=chat_id, cancelled=sessions.cancel(chat_id))


@router.get(
    "/api/tools",
    response_model=ToolListResponse,
    summary="List tools",
    description="List the tools the assistant can call, with their input schemas.",
)
def list_tools() -> ToolListResponse:
    return ToolListResponse(
        tools=[
            ToolInfo(
                name=tool.name,
                description=tool.description,
                input_schema=tool.input_model.model_json_schema(),
            )
            for tool in registry.all_tools().values()
        ]
    )
