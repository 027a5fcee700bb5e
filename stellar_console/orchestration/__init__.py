"""
Reasoning loop and planners.
"""

from .planner import (
    CallTool,
    EmitText,
    Planner,
    PlannerStep,
    ScriptedPlanner,
    Stop,
)
from .keyword_planner import KeywordPlanner
from .llm_planner import LLMPlanner
from .orchestrator import FinishReason, Phase, ResponseResult, TurnOrchestrator

__all__ = [
    "CallTool",
    "EmitText",
    "Planner",
    "PlannerStep",
    "ScriptedPlanner",
    "Stop",
    "KeywordPlanner",
    "LLMPlanner",
    "FinishReason",
    "Phase",
    "ResponseResult",
    "TurnOrchestrator",
]
