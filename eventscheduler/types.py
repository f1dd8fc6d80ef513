"""
Type definitions shared by the solver, its configuration and its callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SearchStrategy(Enum):
    """Branching heuristics offered by the solver.

    Each one maps to a z3 phase selection policy. DOM_OVER_WDEG uses
    conflict-driven phase caching. MIN_DOM_LB tries to leave slots free first;
    MIN_DOM_UB tries to fill them first. z3 picks which variable to branch
    on by itself, so variable order (``prioritize_timeslots``) is only a hint.
    """

    DOM_OVER_WDEG = "dom_over_wdeg"
    MIN_DOM_UB = "min_dom_ub"
    MIN_DOM_LB = "min_dom_lb"


class OptimizationMode(Enum):
    """Whether (and how) solutions are ranked by how early matches start."""

    NONE = "none"
    OPTIMAL = "optimal"  # every solution is the best among those remaining
    STEP = "step"  # each solution scores at least as well as the previous one
    STEP_STRICT = "step_strict"  # each solution scores strictly better


class SolverState(Enum):
    UNBUILT = "unbuilt"
    MODEL_BUILT = "model_built"
    SOLUTION_FOUND = "solution_found"
    NO_MORE_SOLUTIONS = "no_more_solutions"
    INFEASIBLE = "infeasible"
    INCOMPLETE = "incomplete"  # the time limit ran out before an answer


@dataclass(frozen=True)
class ResolutionData:
    """Snapshot of a solver run, taken after every solve attempt."""

    tournament_name: str
    search_strategy: SearchStrategy
    prioritize_timeslots: bool
    optimization_mode: OptimizationMode
    time_limit_ms: int
    state: SolverState
    variables: int
    constraints: int
    solutions: int
    build_time: float  # seconds
    resolution_time: float  # seconds
    score: int | None = None
    statistics: dict[str, Any] = field(default_factory=dict)

    @property
    def decisions(self) -> int:
        return int(self.statistics.get("decisions", 0))

    @property
    def conflicts(self) -> int:
        return int(self.statistics.get("conflicts", 0))

    @property
    def restarts(self) -> int:
        return int(self.statistics.get("restarts", 0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "tournament": self.tournament_name,
            "search_strategy": self.search_strategy.value,
            "prioritize_timeslots": self.prioritize_timeslots,
            "optimization_mode": self.optimization_mode.value,
            "time_limit_ms": self.time_limit_ms,
            "state": self.state.value,
            "variables": self.variables,
            "constraints": self.constraints,
            "solutions": self.solutions,
            "build_time": round(self.build_time, 3),
            "resolution_time": round(self.resolution_time, 3),
            "score": self.score,
            "decisions": self.decisions,
            "conflicts": self.conflicts,
            "restarts": self.restarts,
        }
