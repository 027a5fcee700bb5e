"""
Weather Readout

Mock atmospheric telemetry for any location: temperature, conditions,
wind, radiation, and a travel advisory sampled from fixed tables.
"""

import logging
import random

from pydantic import BaseModel, Field

from .registry import ToolDefinition, ToolName, registry

logger = logging.getLogger(__name__)

MIN_TEMPERATURE = 42
MAX_TEMPERATURE = 261

CONDITION_POOL = [
    "radiant auroras with sporadic ion gusts",
    "levitating mist and crystalline snowfall",
    "glittering micro-meteor drizzle",
    "calm plasma tide with soft starlight",
    "low-gravity fog banks swirling over the horizon",
    "polar light storms tracing the skyline",
    "nebula haze with intermittent gamma sparkles",
]

WIND_POOL = [
    "solar breeze at 18 mph",
    "ion drift steady at 9 mph",
    "crosswind bursts peaking at 24 mph",
    "mag-lev gusts oscillating at 12 mph",
    "vacuum pockets causing gentle downdrafts",
    "orbit-synced zephyrs circling at 15 mph",
]

RADIATION_POOL = [
    "radiation index 3 (shielded comfort)",
    "radiation index 5 (medium flare activity)",
    "radiation index 7 (reinforce hull plating)",
    "trace cosmic rays; recommend polarized lenses",
    "gamma sparkle showers (short exposure advised)",
]

ADVISORY_POOL = [
    "Visibility remains crystalline within 20 klicks.",
    "Flux monitors stable; optimal for sightseeing.",
    "Expect static buildup on exposed alloys.",
    "Great time for sub-orbital glides and photo ops.",
    "Solar sails may flutter, so tighten your rigging.",
    "Recommended to enable adaptive gravity boots.",
]


class WeatherInput(BaseModel):
    location: str = Field(..., description="The location to get the weather for")


class WeatherResult(BaseModel):
    location: str
    temperature: int
    conditions: str
    wind: str
    radiation: str
    advisory: str


def get_weather(location: str) -> dict:
    """
    Sample a weather readout for a location.

    Args:
        location: Where the traveler is headed

    Returns:
        Dictionary matching ``WeatherResult``
    """
    result = WeatherResult(
        location=location,
        temperature=random.randint(MIN_TEMPERATURE, MAX_TEMPERATURE),
        conditions=random.choice(CONDITION_POOL),
        wind=random.choice(WIND_POOL),
        radiation=random.choice(RADIATION_POOL),
        advisory=random.choice(ADVISORY_POOL),
    )
    return result.model_dump()


def format_result_for_llm(result: dict) -> str:
    """Format a weather readout for LLM consumption."""
    return (
        f"Weather for {result['location']}: {result['temperature']} degrees, "
        f"{result['conditions']}; wind {result['wind']}; {result['radiation']}. "
        f"{result['advisory']}"
    )


def _handle_weather(params: WeatherInput) -> dict:
    return get_weather(params.location)


# Register tool with the registry
def _register():
    registry.register(
        ToolDefinition(
            name=ToolName.WEATHER.value,
            description=(
                "Get conditions, temperature, wind, and radiation details for a location."
            ),
            input_model=WeatherInput,
            handler=_handle_weather,
            formatter=format_result_for_llm,
        )
    )


_register()
