"""Optimization and planning interfaces."""

from passive_planner.optimizer.allocator import PlanWarning
from passive_planner.optimizer.planner import optimize
from passive_planner.optimizer.results import AllocatedNode, PlanResult, result_payload
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig

__all__ = [
    "AllocatedNode",
    "BuildConfig",
    "OptimizerSettings",
    "PlanResult",
    "PlanWarning",
    "optimize",
    "result_payload",
]
