"""Configuration for the tournament solver."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError
from .types import OptimizationMode, SearchStrategy

# Load .env file if present
load_dotenv()


@dataclass
class SolverConfig:
    """Options that drive the constraint solver."""

    search_strategy: SearchStrategy = SearchStrategy.DOM_OVER_WDEG
    prioritize_timeslots: bool = False  # declare variables timeslot-major; a branching hint only
    time_limit_ms: int = 0  # 0 means no limit
    random_seed: int = 0
    optimization_mode: OptimizationMode = OptimizationMode.NONE

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject negative limits, including ones assigned after construction."""
        if self.time_limit_ms < 0:
            raise ConfigurationError("Resolution time limit cannot be less than zero")
        if self.random_seed < 0:
            raise ConfigurationError("Random seed cannot be less than zero")

    @classmethod
    def from_env(cls) -> "SolverConfig":
        """Load configuration from environment variables."""
        strategy = os.getenv("EVENTSCHEDULER_SEARCH_STRATEGY", SearchStrategy.DOM_OVER_WDEG.value)
        optimization = os.getenv("EVENTSCHEDULER_OPTIMIZATION", OptimizationMode.NONE.value)

        try:
            search_strategy = SearchStrategy(strategy.lower())
        except ValueError:
            raise ConfigurationError(f"Unknown search strategy: {strategy}")
        try:
            optimization_mode = OptimizationMode(optimization.lower())
        except ValueError:
            raise ConfigurationError(f"Unknown optimization mode: {optimization}")

        return cls(
            search_strategy=search_strategy,
            prioritize_timeslots=os.getenv("EVENTSCHEDULER_PRIORITIZE_TIMESLOTS", "false").lower() == "true",
            time_limit_ms=int(os.getenv("EVENTSCHEDULER_TIME_LIMIT_MS", "0")),
            random_seed=int(os.getenv("EVENTSCHEDULER_RANDOM_SEED", "0")),
            optimization_mode=optimization_mode,
        )
