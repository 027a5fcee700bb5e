"""
Celestial Events

Surfaces memorable sky events worth catching near a location.
"""

import random

from pydantic import BaseModel, Field

from .registry import ToolDefinition, ToolName, registry

MAX_EVENTS = 3

EVENT_POOL = [
    {
        "title": "Europa Ice Bloom",
        "detail": "Subsurface geysers crystallize mid-arc, refracting cerulean light.",
    },
    {
        "title": "Leviathan Comet Flyby",
        "detail": "A sapphire tail cuts across the sky, ideal for panoramic observation decks.",
    },
    {
        "title": "Titan Dune Choir",
        "detail": "Ion winds whistle across dunes, creating harmonic resonance at dusk.",
    },
    {
        "title": "Rings Bazaar Lightfall",
        "detail": "Saturn's rings cast shimmering patterns over local markets.",
    },
    {
        "title": "Aurora Cascade Pulse",
        "detail": "Aurora curtains ripple in layered waves, best seen at high altitude.",
    },
    {
        "title": "Neptune Halo Mirage",
        "detail": "An atmospheric reflection creates a ghostly second halo for six minutes.",
    },
]

EVENT_TIME_POOL = [
    "Orbit 22.4",
    "GST + 02h",
    "Local dusk cycle",
    "Solar noon",
    "Three pulses past midnight",
    "Blue giant rising",
]


class CelestialInput(BaseModel):
    location: str = Field(
        ..., description="The location or region to surface events for"
    )


class CelestialEvent(BaseModel):
    title: str
    time: str
    detail: str


class CelestialEventFeed(BaseModel):
    events: list[CelestialEvent] = Field(..., max_length=MAX_EVENTS)


def find_events() -> dict:
    """Pick up to three events, each with a sampled time."""
    picked = random.sample(EVENT_POOL, min(MAX_EVENTS, len(EVENT_POOL)))
    feed = CelestialEventFeed(
        events=[
            CelestialEvent(
                title=e["title"], time=random.choice(EVENT_TIME_POOL), detail=e["detail"]
            )
            for e in picked
        ]
    )
    return feed.model_dump()


def format_result_for_llm(feed: dict) -> str:
    if not feed["events"]:
        return "No celestial events scheduled."
    return "Celestial events: " + "; ".join(
        f"{e['title']} ({e['time']}): {e['detail']}" for e in feed["events"]
    )


def _handle_celestial(params: CelestialInput) -> dict:
    # Location scopes the request; the event tables are not location-specific
    return find_events()


def _register():
    registry.register(
        ToolDefinition(
            name=ToolName.CELESTIAL_EVENTS.value,
            description="Share memorable celestial events to catch near a location.",
            input_model=CelestialInput,
            handler=_handle_celestial,
            formatter=format_result_for_llm,
        )
    )


_register()
