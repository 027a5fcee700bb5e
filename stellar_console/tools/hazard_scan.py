"""
Hazard Scan

Spots orbital hazards and space weather risks for a location or travel
corridor. Returns an overall risk level and up to three hazards.
"""

import random
from typing import Literal

from pydantic import BaseModel, Field

from .registry import ToolDefinition, ToolName, registry

MAX_HAZARDS = 3

HazardSeverity = Literal["Low", "Elevated", "Critical"]
RISK_LEVELS: list[HazardSeverity] = ["Low", "Elevated", "Critical"]

HAZARD_POOL = [
    {
        "name": "Ion Storm Corridor",
        "severity": "Critical",
        "guidance": "Delay travel or increase shield harmonics by 30%.",
    },
    {
        "name": "Rogue Micro-Meteor Swarm",
        "severity": "Elevated",
        "guidance": "Activate kinetic deflectors; reduce speed under 300 knots.",
    },
    {
        "name": "Solar Flare Echo",
        "severity": "Elevated",
        "guidance": "Switch to reflective plating and route through the dusk-side.",
    },
    {
        "name": "Gravity Tide Surge",
        "severity": "Critical",
        "guidance": "Anchor vessels and reschedule landings two cycles later.",
    },
    {
        "name": "Frozen Plasma Sheen",
        "severity": "Low",
        "guidance": "Engage traction fields; watch for slick docking pads.",
    },
    {
        "name": "Resonant Aurora Current",
        "severity": "Low",
        "guidance": "Tune communicators to backup spectrum to avoid drift.",
    },
]


class HazardScanInput(BaseModel):
    location: str = Field(
        ..., description="The target location or travel corridor to scan"
    )


class HazardScanItem(BaseModel):
    name: str
    severity: HazardSeverity
    guidance: str


class HazardScanReport(BaseModel):
    location: str
    riskLevel: HazardSeverity
    hazards: list[HazardScanItem] = Field(..., max_length=MAX_HAZARDS)


def scan_hazards(location: str) -> dict:
    """Sample a hazard report with at most three hazards."""
    picked = random.sample(HAZARD_POOL, min(MAX_HAZARDS, len(HAZARD_POOL)))
    report = HazardScanReport(
        location=location,
        riskLevel=random.choice(RISK_LEVELS),
        hazards=[HazardScanItem(**hazard) for hazard in picked],
    )
    return report.model_dump()


def format_result_for_llm(report: dict) -> str:
    """Format a hazard report for LLM consumption."""
    if not report["hazards"]:
        return f"Hazard scan for {report['location']}: risk {report['riskLevel']}, no hazards found."
    hazards = "; ".join(
        f"{h['name']} ({h['severity']}): {h['guidance']}" for h in report["hazards"]
    )
    return f"Hazard scan for {report['location']}: risk {report['riskLevel']}. {hazards}"


def _handle_hazard_scan(params: HazardScanInput) -> dict:
    return scan_hazards(params.location)


def _register():
    registry.register(
        ToolDefinition(
            name=ToolName.HAZARD_SCAN.value,
            description=(
                "Scan for orbital hazards and space weather risks impacting a location."
            ),
            input_model=HazardScanInput,
            handler=_handle_hazard_scan,
            formatter=format_result_for_llm,
        )
    )


_register()
