"""
Gear Suggestions

Echoes a validated load-out of one to three equipment suggestions. The
model composes the suggestions; the tool enforces their shape and count.
"""

from pydantic import BaseModel, Field

from .registry import ToolDefinition, ToolName, registry

MIN_SUGGESTIONS = 1
MAX_SUGGESTIONS = 3


class GearItem(BaseModel):
    title: str = Field(..., description="Title of the equipment")
    description: str = Field(..., description="Description of the equipment")


class GearInput(BaseModel):
    suggestions: list[GearItem] = Field(
        ...,
        min_length=MIN_SUGGESTIONS,
        max_length=MAX_SUGGESTIONS,
        description="List of space equipment suggestions (up to 3 items)",
    )


def _handle_what_to_wear(params: GearInput) -> dict:
    return {"suggestions": [item.model_dump() for item in params.suggestions]}


def format_result_for_llm(result: dict) -> str:
    return "Gear load-out: " + "; ".join(
        f"{item['title']}: {item['description']}" for item in result["suggestions"]
    )


def _register():
    registry.register(
        ToolDefinition(
            name=ToolName.WHAT_TO_WEAR.value,
            description=(
                "List futuristic gear or clothing to wear based on the conditions "
                "(up to 3 items)."
            ),
            input_model=GearInput,
            handler=_handle_what_to_wear,
            formatter=format_result_for_llm,
        )
    )


_register()
