"""Conversion planning and execution."""

from convertsave.executor.models import (
    ConversionPlan,
    ExecutionResult,
    HeicTilePlan,
    PostRename,
)
from convertsave.executor.planner import plan_conversion, prepare_plan
from convertsave.executor.runner import execute

__all__ = [
    "ConversionPlan",
    "ExecutionResult",
    "HeicTilePlan",
    "PostRename",
    "execute",
    "plan_conversion",
    "prepare_plan",
]
