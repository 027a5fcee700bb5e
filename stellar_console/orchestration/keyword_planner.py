"""
Offline rule-based planner.

Reads the latest user message, picks tools by keyword, runs them in a fixed
order and closes with a short in-character briefing built from the results.
It is stateless: the next step is derived from the parts already present in
the in-progress assistant message, so the same transcript always yields the
same step.
"""

import logging
import re
from typing import Optional, Sequence

from ..tools.registry import ToolName
from ..transcript.models import Message, PartState, TextPart, ToolPart
from .planner import (
    CallTool,
    EmitText,
    Planner,
    PlannerStep,
    Stop,
    current_response,
    latest_user_text,
)
from .prompts import PERSONA_NAME

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Low Orbit"

INTENT_KEYWORDS: list[tuple[ToolName, tuple[str, ...]]] = [
    (ToolName.WEATHER, ("weather", "forecast", "conditions", "temperature", "climate")),
    (ToolName.HAZARD_SCAN, ("hazard", "safe", "safety", "danger", "risk", "threat")),
    (
        ToolName.NAVIGATION_WINDOWS,
        ("window", "launch", "depart", "arrival", "arrive", "route", "timing", "when"),
    ),
    (ToolName.CELESTIAL_EVENTS, ("event", "celestial", "spectacle", "sky", "catch", "see")),
    (ToolName.WHAT_TO_WEAR, ("wear", "gear", "outfit", "pack", "clothing", "suit")),
]

# "weather in Titan", "dive on Europa", "cruise near Neptune's halo"
LOCATION_PATTERN = re.compile(
    r"\b(?:in|on|at|near|around|to|for|over)\s+"
    r"((?:the\s+)?[A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*)"
)

GEAR_TABLE = {
    "radiation": {
        "title": "Photon-Weave Mantle",
        "description": "Layered reflective cloak that scatters flare radiation.",
    },
    "wind": {
        "title": "Mag-Lev Anchor Boots",
        "description": "Adaptive gravity soles that hold steady through ion gusts.",
    },
    "cold": {
        "title": "Thermal Lattice Suit",
        "description": "Self-heating mesh rated for crystalline snowfall.",
    },
    "visor": {
        "title": "Polarized Nebula Visor",
        "description": "Glare-cutting lenses tuned for aurora and gamma sparkle.",
    },
}


def detect_intents(text: str) -> list[str]:
    """Tool names requested by the text, in canonical order."""
    lowered = text.lower()
    words = set(re.findall(r"[a-z]+", lowered))
    intents = []
    for tool, keywords in INTENT_KEYWORDS:
        if any(keyword in words or keyword + "s" in words for keyword in keywords):
            intents.append(tool.value)
    return intents


def extract_location(text: str) -> Optional[str]:
    """First capitalized place name after a locative preposition."""
    match = LOCATION_PATTERN.search(text)
    if not match:
        return None
    location = match.group(1).strip()
    location = re.sub(r"^the\s+", "", location, flags=re.IGNORECASE)
    return re.sub(r"'s$", "", location)


def suggest_gear(weather: Optional[dict]) -> list[dict]:
    """Pick one to three gear items, keyed off a weather readout if present."""
    if weather is None:
        return [GEAR_TABLE["visor"], GEAR_TABLE["wind"]]
    picks = []
    if "radiation index 7" in weather.get("radiation", "") or "gamma" in weather.get(
        "radiation", ""
    ):
        picks.append(GEAR_TABLE["radiation"])
    if "gust" in weather.get("wind", "") or "burst" in weather.get("wind", ""):
        picks.append(GEAR_TABLE["wind"])
    if weather.get("temperature", 100) < 100 or "snow" in weather.get("conditions", ""):
        picks.append(GEAR_TABLE["cold"])
    if not picks:
        picks.append(GEAR_TABLE["visor"])
    return picks[:3]


class KeywordPlanner(Planner):
    """Deterministic planner for offline use and demos."""

    def __init__(self, default_location: str = DEFAULT_LOCATION):
        self.default_location = default_location

    def plan(self, user_text: str) -> tuple[list[str], Optional[str]]:
        """Tools to run and the location they target."""
        location = extract_location(user_text)
        intents = detect_intents(user_text)
        if not intents and location:
            intents = [ToolName.WEATHER.value]
        return intents, location

    async def next_step(self, transcript: Sequence[Message]) -> PlannerStep:
        user_text = latest_user_text(transcript)
        response = current_response(transcript)
        parts = response.parts if response else []

        if any(isinstance(p, TextPart) for p in parts):
            return Stop()

        tools, location = self.plan(user_text)
        tool_parts = [p for p in parts if isinstance(p, ToolPart)]
        if len(tool_parts) < len(tools):
            tool_name = tools[len(tool_parts)]
            return CallTool(
                tool_name=tool_name,
                arguments=self._arguments(tool_name, location, tool_parts),
            )

        return EmitText(chunks=self._briefing(tool_parts, location))

    def _arguments(
        self, tool_name: str, location: Optional[str], done: list[ToolPart]
    ) -> dict:
        if tool_name == ToolName.WHAT_TO_WEAR.value:
            weather = next(
                (
                    p.output
                    for p in done
                    if p.tool_name == ToolName.WEATHER.value
                    and p.state == PartState.OUTPUT_AVAILABLE
                ),
                None,
            )
            return {"suggestions": suggest_gear(weather)}
        return {"location": location or self.default_location}

    def _briefing(self, tool_parts: list[ToolPart], location: Optional[str]) -> list[str]:
        """Sentence-sized chunks summarizing every tool result."""
        if not tool_parts:
            return [
                f"{PERSONA_NAME} here, standing by on the console. ",
                "Name a destination and I'll pull weather, hazards, windows, ",
                "sky events, and a gear load-out for it.",
            ]

        chunks = [f"{PERSONA_NAME} reporting from {location or self.default_location}! "]
        for part in tool_parts:
            if part.state == PartState.OUTPUT_ERROR:
                chunks.append(f"The {part.tool_name} module glitched: {part.error_text} ")
            elif part.state == PartState.OUTPUT_AVAILABLE:
                chunks.append(self._describe(part.tool_name, part.output) + " ")
        chunks.append("Safe travels, navigator.")
        return chunks

    @staticmethod
    def _describe(tool_name: str, output: dict) -> str:
        if tool_name == ToolName.WEATHER.value:
            return (
                f"Expect {output['conditions']} at {output['temperature']} degrees, "
                f"with {output['wind']} and {output['radiation']}. {output['advisory']}"
            )
        if tool_name == ToolName.HAZARD_SCAN.value:
            names = ", ".join(h["name"] for h in output["hazards"]) or "nothing notable"
            return f"Hazard level reads {output['riskLevel']}; watch for {names}."
        if tool_name == ToolName.NAVIGATION_WINDOWS.value:
            windows = ", ".join(f"{w['label']} ({w['window']})" for w in output["windows"])
            return f"Best windows: {windows}."
        if tool_name == ToolName.CELESTIAL_EVENTS.value:
            events = ", ".join(f"{e['title']} at {e['time']}" for e in output["events"])
            return f"Don't miss {events}."
        if tool_name == ToolName.WHAT_TO_WEAR.value:
            gear = ", ".join(item["title"] for item in output["suggestions"])
            return f"Suit up with {gear}."
        return f"{tool_name} returned fresh telemetry."
