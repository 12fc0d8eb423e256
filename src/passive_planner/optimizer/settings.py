"""Tuning knobs for the allocator and result aggregation.

Callers may loosen or tighten these per run; nothing here is stored in
the tree definition.
"""

from dataclasses import dataclass


@dataclass(slots=True)
class OptimizerSettings:
    """Tuneable parameters that aren't part of a BuildConfig."""

    relevance_floor: float = 0.3       # candidates below this are never picked
    relevance_gap: float = 0.3         # a lead larger than this wins outright
    iteration_cap_factor: int = 10     # greedy loop cap = factor * budget
    calibration_constant: float = 5.0  # per-point score counted as 100% efficient
    score_epsilon: float = 0.001       # floor for node totals
    refine_swaps: int = 0              # bounded leaf-swap passes after greedy
    swap_margin: float = 1.1           # replacement must beat the leaf by this factor

    def __post_init__(self) -> None:
        if self.iteration_cap_factor < 1:
            raise ValueError("iteration_cap_factor must be >= 1")
        if self.calibration_constant <= 0:
            raise ValueError("calibration_constant must be > 0")
        if self.score_epsilon <= 0:
            raise ValueError("score_epsilon must be > 0")
        if self.refine_swaps < 0:
            raise ValueError("refine_swaps must be >= 0")
