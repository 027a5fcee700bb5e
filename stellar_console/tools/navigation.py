"""
Navigation Windows

Recommends departure or arrival windows for a destination.
"""

import random

from pydantic import BaseModel, Field

from .registry import ToolDefinition, ToolName, registry

MAX_WINDOWS = 3

WINDOW_POOL = [
    {
        "label": "Calm Corridor",
        "window": "21:10 - 22:05 GST",
        "note": "Ion flux dips below 10%; ideal for docking maneuvers.",
    },
    {
        "label": "Polar Drift Lane",
        "window": "04:40 - 05:35 GST",
        "note": "Gravity tides neutralize, opening a smooth northbound path.",
    },
    {
        "label": "Sunrise Slipstream",
        "window": "08:05 - 08:50 GST",
        "note": "Solar sail efficiency peaks thanks to coherent breezes.",
    },
    {
        "label": "Nightglow Passage",
        "window": "16:45 - 17:25 GST",
        "note": "Nebula particulates thin out, boosting sensor clarity.",
    },
    {
        "label": "Crystalline Approach",
        "window": "11:10 - 12:00 GST",
        "note": "Docking pads defrost; minimal plasma sheen expected.",
    },
]


class NavigationInput(BaseModel):
    location: str = Field(
        ..., description="The destination or corridor to plan travel around"
    )


class NavigationWindow(BaseModel):
    label: str
    window: str
    note: str


class NavigationWindowGuide(BaseModel):
    windows: list[NavigationWindow] = Field(..., max_length=MAX_WINDOWS)


def plan_windows(location: str) -> dict:
    """Pick up to three windows, tagging each note with the location."""
    picked = random.sample(WINDOW_POOL, min(MAX_WINDOWS, len(WINDOW_POOL)))
    guide = NavigationWindowGuide(
        windows=[
            NavigationWindow(
                label=w["label"],
                window=w["window"],
                note=f"{w['note']} ({location}).",
            )
            for w in picked
        ]
    )
    return guide.model_dump()


def format_result_for_llm(guide: dict) -> str:
    """Format navigation windows for LLM consumption."""
    if not guide["windows"]:
        return "No navigation windows available."
    return "Navigation windows: " + "; ".join(
        f"{w['label']} at {w['window']}: {w['note']}" for w in guide["windows"]
    )


def _handle_navigation(params: NavigationInput) -> dict:
    return plan_windows(params.location)


def _register():
    registry.register(
        ToolDefinition(
            name=ToolName.NAVIGATION_WINDOWS.value,
            description=(
                "Recommend ideal navigation windows or launch times for a location."
            ),
            input_model=NavigationInput,
            handler=_handle_navigation,
            formatter=format_result_for_llm,
        )
    )


_register()
