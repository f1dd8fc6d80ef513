"""
Solver core: builds the z3 model of a tournament and enumerates its solutions.

The solver owns one z3 context, so independent tournaments can be solved from
separate threads. Every solution is read back as one occupation grid per
event, ``grid[player][court][timeslot]`` holding 0 or 1, which the schedule
classes turn into matches.
"""

import logging
import time
from typing import TYPE_CHECKING, Any

import z3  # type: ignore

from .config import SolverConfig
from .constraints import SolverModel, add_all_constraints, build_score, create_solver_model
from .errors import ConfigurationError, SolverStateError
from .types import OptimizationMode, ResolutionData, SearchStrategy, SolverState

if TYPE_CHECKING:
    from .schedule import EventSchedule
    from .tournament import Tournament

logger = logging.getLogger(__name__)

Grid = list[list[list[int]]]

# z3 smt phase_selection values: 0 = always false, 1 = always true,
# 3 = conservative phase caching (z3 default)
PHASE_SELECTION = {
    SearchStrategy.DOM_OVER_WDEG: 3,
    SearchStrategy.MIN_DOM_LB: 0,
    SearchStrategy.MIN_DOM_UB: 1,
}


class TournamentSolver:
    """Finds schedules for every event of a tournament at once.

    Usage::

        solver = TournamentSolver(tournament, SolverConfig(time_limit_ms=5000))
        if solver.solve():
            schedules = solver.event_schedules
            while solver.next_solution():
                ...
    """

    def __init__(self, tournament: "Tournament", config: SolverConfig | None = None):
        self.tournament = tournament
        self.events = tuple(tournament.events)
        self.config = config or SolverConfig()
        self.config.validate()

        self.state = SolverState.UNBUILT
        self.found_solutions = 0
        self.score: int | None = None
        self.resolution_data: ResolutionData | None = None

        self._ctx: Any = None
        self._model: SolverModel | None = None
        self._score_expr: Any = None
        self._grids: list[Grid] | None = None
        self._schedules: "list[EventSchedule] | None" = None

        self._build_time = 0.0
        self._resolution_time = 0.0

    @property
    def time_limit_ms(self) -> int:
        return self.config.time_limit_ms

    @time_limit_ms.setter
    def time_limit_ms(self, value: int) -> None:
        if value < 0:
            raise ConfigurationError("Resolution time limit cannot be less than zero")
        self.config.time_limit_ms = value

    @property
    def search_strategy(self) -> SearchStrategy:
        return self.config.search_strategy

    @property
    def grids(self) -> list[Grid] | None:
        """Occupation grids of the current solution, one per event."""
        return self._grids

    def build(self) -> None:
        """Create the z3 session, declare the variables and post every constraint."""
        start = time.time()
        self._ctx = z3.Context()

        if self.config.optimization_mode == OptimizationMode.OPTIMAL:
            backend = z3.Optimize(ctx=self._ctx)
        else:
            backend = z3.Solver(ctx=self._ctx)
            backend.set("random_seed", self.config.random_seed)
            backend.set("phase_selection", PHASE_SELECTION[self.config.search_strategy])

        self._model = create_solver_model(
            self.events, backend, self._ctx, self.config.prioritize_timeslots
        )
        constraints = add_all_constraints(self._model)

        if self.config.optimization_mode != OptimizationMode.NONE:
            self._score_expr = build_score(self._model)
            if self._score_expr is not None and self.config.optimization_mode == OptimizationMode.OPTIMAL:
                backend.maximize(self._score_expr)

        self._build_time = time.time() - start
        self.state = SolverState.MODEL_BUILT
        logger.info(
            "Built model for %s: %d variables, %d constraints in %.2fs",
            self.tournament.name,
            len(self._model.live_variables()),
            constraints,
            self._build_time,
        )

    def solve(self) -> bool:
        """Build the model if needed and look for the first solution."""
        if self.state != SolverState.MODEL_BUILT:
            self._reset()
            self.build()
        return self._check()

    def next_solution(self) -> bool:
        """Exclude the current solution and look for another one.

        Returns False (and clears the grids) once there are no more solutions,
        the problem turned out infeasible or the time limit was reached.
        """
        if self.state in (SolverState.UNBUILT, SolverState.MODEL_BUILT):
            raise SolverStateError("solve() must be called before next_solution()")

        if self.state != SolverState.SOLUTION_FOUND:
            self._clear_solution()
            return False

        assert self._model is not None and self._grids is not None
        self._block_current_solution()

        if self._score_expr is not None and self.score is not None:
            if self.config.optimization_mode == OptimizationMode.STEP:
                self._model.add(self._score_expr >= self.score)
            elif self.config.optimization_mode == OptimizationMode.STEP_STRICT:
                self._model.add(self._score_expr > self.score)

        return self._check()

    def stop(self) -> None:
        """Interrupt a running search from another thread."""
        if self._ctx is not None:
            logger.info("Interrupting the search for %s", self.tournament.name)
            self._ctx.interrupt()

    @property
    def event_schedules(self) -> "list[EventSchedule] | None":
        if self._grids is None:
            return None
        if self._schedules is None:
            from .schedule import EventSchedule

            self._schedules = [
                EventSchedule(event, grid) for event, grid in zip(self.events, self._grids)
            ]
        return self._schedules

    def _reset(self) -> None:
        self.found_solutions = 0
        self.score = None
        self._score_expr = None
        self._resolution_time = 0.0
        self._clear_solution()

    def _clear_solution(self) -> None:
        self._grids = None
        self._schedules = None

    def _remaining_ms(self) -> int | None:
        if self.config.time_limit_ms == 0:
            return None
        return self.config.time_limit_ms - int(self._resolution_time * 1000)

    def _check(self) -> bool:
        assert self._model is not None
        self.config.validate()
        backend = self._model.solver

        remaining = self._remaining_ms()
        if remaining is not None:
            if remaining <= 0:
                self._clear_solution()
                self._finish(SolverState.INCOMPLETE)
                return False
            backend.set("timeout", remaining)

        start = time.time()
        result = backend.check()
        self._resolution_time += time.time() - start

        if result == z3.sat:
            self.found_solutions += 1
            self._read_solution(backend.model())
            self._finish(SolverState.SOLUTION_FOUND)
            return True

        self._clear_solution()
        if result == z3.unknown:
            logger.info("Solver gave up: %s", backend.reason_unknown())
            self._finish(SolverState.INCOMPLETE)
        elif self.found_solutions == 0:
            self._finish(SolverState.INFEASIBLE)
        else:
            self._finish(SolverState.NO_MORE_SOLUTIONS)
        return False

    def _read_solution(self, model: Any) -> None:
        assert self._model is not None
        grids = []
        for event_grid in self._model.occupies:
            grids.append(
                [
                    [
                        [1 if z3.is_true(model.eval(v, model_completion=True)) else 0 for v in column]
                        for column in row
                    ]
                    for row in event_grid
                ]
            )
        self._grids = grids
        self._schedules = None

        if self._score_expr is not None:
            self.score = model.eval(self._score_expr, model_completion=True).as_long()

    def _block_current_solution(self) -> None:
        assert self._model is not None and self._grids is not None
        literals = []
        for e, event_grid in enumerate(self._model.occupies):
            for p, row in enumerate(event_grid):
                for c, column in enumerate(row):
                    for t, variable in enumerate(column):
                        if z3.is_false(variable):
                            continue
                        if self._grids[e][p][c][t]:
                            literals.append(z3.Not(variable))
                        else:
                            literals.append(variable)
        self._model.add(z3.Or(literals) if literals else z3.BoolVal(False, self._ctx))

    def _finish(self, state: SolverState) -> None:
        self.state = state
        logger.info(
            "%s: %s after %d solution(s), %.2fs",
            self.tournament.name,
            state.value,
            self.found_solutions,
            self._resolution_time,
        )
        self.resolution_data = self._snapshot()

    def _snapshot(self) -> ResolutionData:
        assert self._model is not None
        statistics: dict[str, Any] = {}
        stats = self._model.solver.statistics()
        for key in stats.keys():
            statistics[key] = stats.get_key_value(key)

        return ResolutionData(
            tournament_name=self.tournament.name,
            search_strategy=self.config.search_strategy,
            prioritize_timeslots=self.config.prioritize_timeslots,
            optimization_mode=self.config.optimization_mode,
            time_limit_ms=self.config.time_limit_ms,
            state=self.state,
            variables=len(self._model.live_variables()),
            constraints=self._model.constraint_count,
            solutions=self.found_solutions,
            build_time=self._build_time,
            resolution_time=self._resolution_time,
            score=self.score,
            statistics=statistics,
        )
