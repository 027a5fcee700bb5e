"""
Pydantic schemas for the HTTP API.

Messages travel in the same shape the transcript uses internally
(``Message.to_dict``): ``{id, role, parts}`` with camelCase part fields.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..tools.registry import registry
from ..transcript.models import (
    Message,
    Part,
    PartState,
    Role,
    TextPart,
    ToolPart,
    new_message_id,
    new_tool_call_id,
    tool_payload_problem,
)


class TextPartModel(BaseModel):
    """A text part."""

    type: Literal["text"]
    text: str

    def to_part(self) -> Part:
        return TextPart(text=self.text)


class ToolPartModel(BaseModel):
    """A tool invocation record; the payload must fit the state."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tool"]
    tool_call_id: Optional[str] = Field(default=None, alias="toolCallId")
    tool_name: str = Field(..., alias="toolName")
    state: Literal[
        "input-streaming", "input-available", "output-available", "output-error"
    ] = "input-streaming"
    input: Optional[dict[str, Any]] = None
    output: Optional[dict[str, Any]] = None
    error_text: Optional[str] = Field(default=None, alias="errorText")

    @field_validator("tool_name")
    @classmethod
    def tool_must_be_registered(cls, value: str) -> str:
        if value not in registry:
            raise ValueError(f"Unknown tool: '{value}'")
        return value

    @model_validator(mode="after")
    def payload_fits_state(self) -> "ToolPartModel":
        problem = tool_payload_problem(
            PartState(self.state), self.output, self.error_text
        )
        if problem:
            raise ValueError(problem)
        return self

    def to_part(self) -> Part:
        return ToolPart(
            tool_name=self.tool_name,
            tool_call_id=self.tool_call_id or new_tool_call_id(),
            state=PartState(self.state),
            input=self.input,
            output=self.output,
            error_text=self.error_text,
        )


MessagePart = Annotated[Union[TextPartModel, ToolPartModel], Field(discriminator="type")]


class ChatMessage(BaseModel):
    """A single message of the transcript."""

    id: Optional[str] = Field(default=None, description="Message identifier")
    role: Literal["user", "assistant"] = Field(
        ..., description="The role of the message author"
    )
    parts: list[MessagePart] = Field(
        default_factory=list, description="Ordered message parts"
    )

    def to_message(self) -> Message:
        return Message(
            id=self.id or new_message_id(),
            role=Role(self.role),
            parts=[part.to_part() for part in self.parts],
        )


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""

    id: Optional[str] = Field(
        default=None,
        description="Conversation identifier; one response at a time per id",
    )
    messages: list[ChatMessage] = Field(
        ...,
        description="Prior transcript with the new user message last",
        min_length=1,
    )


class CancelResponse(BaseModel):
    """Response body for POST /api/chat/{id}/cancel."""

    id: str
    cancelled: bool


class ToolInfo(BaseModel):
    """Public description of a registered tool."""

    name: str
    description: str
    input_schema: dict[str, Any]


class ToolListResponse(BaseModel):
    """Response body for GET /api/tools."""

    tools: list[ToolInfo]


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    planner: str
    tools: int


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
