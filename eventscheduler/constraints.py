"""
Z3 constraint builders for the tournament scheduling problem.

Every event gets two parallel boolean arrays indexed [player][court][timeslot]:
``occupies`` marks every timeslot a match spans and ``starts`` marks only the
first one. Each builder below encodes one family of rules over those arrays and
returns the number of constraints it added, in the same functional style as the
rest of the solver: all state lives in the SolverModel passed in.

Cells that can never be used (breaks, unavailable players or courts, forced
affinities) are not constrained to false: their variable is replaced by the
constant False before any other builder runs, so the rest of the model is built
over the reduced domain.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

import z3  # type: ignore

from .models import Event, MatchupMode

logger = logging.getLogger(__name__)

# grid[e][p][c][t] = z3 Bool (or the constant False for a fixed cell)
VariableGrid = list[list[list[list[Any]]]]


@dataclass
class SolverModel:
    """Z3 session, events and variables shared by the constraint builders."""

    ctx: Any  # z3.Context
    solver: Any  # z3.Solver or z3.Optimize
    events: tuple[Event, ...]
    occupies: VariableGrid
    starts: VariableGrid
    constraint_count: int = 0
    fixed_cells: int = 0
    family_counts: dict[str, int] = field(default_factory=dict)

    def add(self, *constraints: Any) -> int:
        self.solver.add(*constraints)
        self.constraint_count += len(constraints)
        return len(constraints)

    def false(self) -> Any:
        return z3.BoolVal(False, self.ctx)

    def fix_occupies(self, e: int, p: int, c: int, t: int) -> int:
        if z3.is_false(self.occupies[e][p][c][t]):
            return 0
        self.occupies[e][p][c][t] = self.false()
        self.fixed_cells += 1
        return 1

    def fix_starts(self, e: int, p: int, c: int, t: int) -> int:
        if z3.is_false(self.starts[e][p][c][t]):
            return 0
        self.starts[e][p][c][t] = self.false()
        self.fixed_cells += 1
        return 1

    def live_variables(self) -> list[Any]:
        """All variables that were not fixed, occupies first."""
        variables = []
        for grid in (self.occupies, self.starts):
            for event_grid in grid:
                for row in event_grid:
                    for column in row:
                        variables.extend(v for v in column if not z3.is_false(v))
        return variables

    def live_occupies(self) -> list[Any]:
        return [
            v
            for event_grid in self.occupies
            for row in event_grid
            for column in row
            for v in column
            if not z3.is_false(v)
        ]


def create_solver_model(
    events: tuple[Event, ...], solver: Any, ctx: Any, prioritize_timeslots: bool = False
) -> SolverModel:
    """Declare the occupies/starts variables of every event.

    With ``prioritize_timeslots`` the variables are declared timeslot by
    timeslot, otherwise court by court; the declaration order is the order in
    which the backend first sees them.
    """
    occupies: VariableGrid = []
    starts: VariableGrid = []

    for e, event in enumerate(events):
        n_players = len(event.players)
        n_localizations = len(event.localizations)
        n_timeslots = len(event.timeslots)

        occupies.append(
            [[[None] * n_timeslots for _ in range(n_localizations)] for _ in range(n_players)]
        )
        starts.append(
            [[[None] * n_timeslots for _ in range(n_localizations)] for _ in range(n_players)]
        )

        if prioritize_timeslots:
            order = (
                (p, c, t)
                for t in range(n_timeslots)
                for p in range(n_players)
                for c in range(n_localizations)
            )
        else:
            order = (
                (p, c, t)
                for p in range(n_players)
                for c in range(n_localizations)
                for t in range(n_timeslots)
            )

        for p, c, t in order:
            occupies[e][p][c][t] = z3.Bool(f"x_{e}_{p}_{c}_{t}", ctx)
            starts[e][p][c][t] = z3.Bool(f"g_{e}_{p}_{c}_{t}", ctx)

    return SolverModel(ctx=ctx, solver=solver, events=events, occupies=occupies, starts=starts)


def _live(variables: list[Any]) -> list[Any]:
    return [v for v in variables if not z3.is_false(v)]


def exactly(model: SolverModel, variables: list[Any], k: int) -> Any:
    live = _live(variables)
    if not live:
        return z3.BoolVal(k == 0, model.ctx)
    return z3.PbEq([(v, 1) for v in live], k)


def at_most(model: SolverModel, variables: list[Any], k: int) -> Any:
    live = _live(variables)
    if len(live) <= k:
        return z3.BoolVal(True, model.ctx)
    return z3.PbLe([(v, 1) for v in live], k)


def at_least(model: SolverModel, variables: list[Any], k: int) -> Any:
    live = _live(variables)
    if k <= 0:
        return z3.BoolVal(True, model.ctx)
    if len(live) < k:
        return z3.BoolVal(False, model.ctx)
    return z3.PbGe([(v, 1) for v in live], k)


def any_of(model: SolverModel, variables: list[Any]) -> Any:
    live = _live(variables)
    if not live:
        return model.false()
    if len(live) == 1:
        return live[0]
    return z3.Or(live)


def all_of(model: SolverModel, variables: list[Any]) -> Any:
    if not variables or any(z3.is_false(v) for v in variables):
        return model.false()
    if len(variables) == 1:
        return variables[0]
    return z3.And(variables)


def add_availability_constraints(model: SolverModel) -> int:
    """Fix the cells no match can use.

    - an unavailable player cannot occupy the timeslot, nor start a match that
      would still be running at it
    - an unavailable court, or a break, cannot be occupied or started
    - a player restricted to some courts cannot use the others
    - a player restricted to some timeslots cannot start at the others
    """
    fixed = 0

    for e, event in enumerate(model.events):
        duration = event.timeslots_per_match
        n_players = len(event.players)
        n_localizations = len(event.localizations)
        n_timeslots = len(event.timeslots)

        for p, player in enumerate(event.players):
            unavailable = event.unavailable_players.get(player, set())
            for t, timeslot in enumerate(event.timeslots):
                if timeslot not in unavailable:
                    continue
                for c in range(n_localizations):
                    fixed += model.fix_occupies(e, p, c, t)
                    for first in range(max(0, t - duration + 1), t + 1):
                        fixed += model.fix_starts(e, p, c, first)

        for c, localization in enumerate(event.localizations):
            unavailable = event.unavailable_localizations.get(localization, set())
            for t, timeslot in enumerate(event.timeslots):
                if timeslot not in unavailable:
                    continue
                for p in range(n_players):
                    fixed += model.fix_occupies(e, p, c, t)
                    fixed += model.fix_starts(e, p, c, t)

        for p, player in enumerate(event.players):
            allowed = event.players_in_localizations.get(player)
            if allowed is None:
                continue
            for c, localization in enumerate(event.localizations):
                if localization in allowed:
                    continue
                for t in range(n_timeslots):
                    fixed += model.fix_occupies(e, p, c, t)
                    fixed += model.fix_starts(e, p, c, t)

        for p, player in enumerate(event.players):
            allowed = event.players_at_timeslots.get(player)
            if allowed is None:
                continue
            for t, timeslot in enumerate(event.timeslots):
                if timeslot in allowed:
                    continue
                for c in range(n_localizations):
                    fixed += model.fix_starts(e, p, c, t)

        for t, timeslot in enumerate(event.timeslots):
            if not event.is_break(timeslot):
                continue
            for p in range(n_players):
                for c in range(n_localizations):
                    fixed += model.fix_occupies(e, p, c, t)
                    fixed += model.fix_starts(e, p, c, t)

    return fixed


def add_match_mapping_constraints(model: SolverModel, e: int) -> int:
    """Link ``starts`` and ``occupies`` for one event.

    A start at t holds exactly when t..t+duration-1 are all occupied, no
    start fits in the last duration-1 timeslots, and every occupied cell is
    covered by exactly one start in its window.
    """
    event = model.events[e]
    duration = event.timeslots_per_match
    n_timeslots = len(event.timeslots)
    count = 0

    for p in range(len(event.players)):
        for c in range(len(event.localizations)):
            occupies = model.occupies[e][p][c]
            starts = model.starts[e][p][c]

            if duration == 1:
                for t in range(n_timeslots):
                    if z3.is_false(occupies[t]) and z3.is_false(starts[t]):
                        continue
                    count += model.add(occupies[t] == starts[t])
                continue

            for t in range(max(0, n_timeslots - duration + 1), n_timeslots):
                model.fix_starts(e, p, c, t)

            for t in range(n_timeslots - duration + 1):
                window = all_of(model, occupies[t:t + duration])
                if z3.is_false(starts[t]) and z3.is_false(window):
                    continue
                count += model.add(starts[t] == window)

            for t in range(n_timeslots):
                window = starts[max(0, t - duration + 1):t + 1]
                live = _live(window)
                if z3.is_false(occupies[t]) and not live:
                    continue
                count += model.add(occupies[t] == any_of(model, window))
                if len(live) > 1:
                    count += model.add(at_most(model, live, 1))

    return count


def add_total_matches_constraints(model: SolverModel, e: int) -> int:
    """Every player starts ``matches_per_player`` matches in total."""
    event = model.events[e]
    starts = [v for row in model.starts[e] for column in row for v in column]
    occupies = [v for row in model.occupies[e] for column in row for v in column]

    total_starts = len(event.players) * event.matches_per_player
    count = model.add(exactly(model, starts, total_starts))
    count += model.add(exactly(model, occupies, total_starts * event.timeslots_per_match))
    return count


def add_matches_per_player_constraints(model: SolverModel, e: int) -> int:
    event = model.events[e]
    count = 0

    for p in range(len(event.players)):
        starts = [v for column in model.starts[e][p] for v in column]
        occupies = [v for column in model.occupies[e][p] for v in column]
        count += model.add(exactly(model, starts, event.matches_per_player))
        count += model.add(
            exactly(model, occupies, event.matches_per_player * event.timeslots_per_match)
        )

    return count


def add_teams_constraints(model: SolverModel, e: int) -> int:
    """Team members occupy exactly the same courts at the same timeslots."""
    event = model.events[e]
    count = 0

    for team in event.teams:
        members = [event.players.index(player) for player in team.players]
        for first, second in zip(members, members[1:]):
            for c in range(len(event.localizations)):
                for t in range(len(event.timeslots)):
                    a = model.occupies[e][first][c][t]
                    b = model.occupies[e][second][c][t]
                    if z3.is_false(a) and z3.is_false(b):
                        continue
                    count += model.add(a == b)

    return count


def add_localization_occupation_constraints(model: SolverModel, e: int) -> int:
    """A court hosts either nobody or exactly one full match at a time.

    Applied to both arrays, so the players of a match also start together.
    """
    event = model.events[e]
    players_per_match = event.players_per_match
    count = 0

    for c in range(len(event.localizations)):
        for t, timeslot in enumerate(event.timeslots):
            if event.is_break(timeslot):
                continue
            for grid in (model.occupies, model.starts):
                column = _live([grid[e][p][c][t] for p in range(len(event.players))])
                if not column:
                    continue
                count += model.add(
                    z3.Or(
                        exactly(model, column, 0),
                        exactly(model, column, players_per_match),
                    )
                )

    return count


def _matchup_indicators(
    model: SolverModel, e: int, members: list[int], localizations: list[int], timeslots: list[int]
) -> list[Any]:
    indicators = []
    for c in localizations:
        for t in timeslots:
            indicator = all_of(model, [model.starts[e][p][c][t] for p in members])
            if not z3.is_false(indicator):
                indicators.append(indicator)
    return indicators


def add_predefined_matchups_constraints(model: SolverModel, e: int) -> int:
    """Predefined matchups take place as many times as the matchup mode says."""
    event = model.events[e]
    count = 0

    for matchup in event.matchups:
        members = [p for p, player in enumerate(event.players) if player in matchup.players]
        localizations = [
            c for c, loc in enumerate(event.localizations) if loc in matchup.localizations
        ]
        timeslots = [t for t, ts in enumerate(event.timeslots) if ts in matchup.timeslots]

        indicators = _matchup_indicators(model, e, members, localizations, timeslots)

        mode = event.matchup_mode
        if mode == MatchupMode.ALL_DIFFERENT:
            count += model.add(exactly(model, indicators, 1))
        elif mode == MatchupMode.ALL_EQUAL:
            count += model.add(exactly(model, indicators, event.matches_per_player))
        elif mode == MatchupMode.CUSTOM:
            count += model.add(exactly(model, indicators, matchup.occurrences))
        else:
            count += model.add(at_least(model, indicators, 1))
            count += model.add(at_most(model, indicators, event.matches_per_player))

    return count


def add_matchup_mode_constraints(model: SolverModel, e: int) -> int:
    """Apply the matchup mode to every possible group of players.

    ALL_DIFFERENT: any group meets at most once.
    ALL_EQUAL: any group meets either never or in every match of its players.
    """
    event = model.events[e]
    mode = event.matchup_mode

    if event.matches_per_player <= 1 or event.players_per_match <= 1:
        return 0
    if mode not in (MatchupMode.ALL_DIFFERENT, MatchupMode.ALL_EQUAL):
        return 0

    localizations = list(range(len(event.localizations)))
    timeslots = list(range(len(event.timeslots) - event.timeslots_per_match + 1))
    count = 0

    for group in itertools.combinations(range(len(event.players)), event.players_per_match):
        indicators = _matchup_indicators(model, e, list(group), localizations, timeslots)
        if not indicators:
            continue

        if mode == MatchupMode.ALL_DIFFERENT:
            if len(indicators) > 1:
                count += model.add(at_most(model, indicators, 1))
        else:
            count += model.add(
                z3.Or(
                    exactly(model, indicators, 0),
                    exactly(model, indicators, event.matches_per_player),
                )
            )

    return count


def _index_map(items) -> dict[Any, int]:
    return {item: i for i, item in enumerate(items)}


def add_localization_collision_constraints(model: SolverModel) -> int:
    """Two events cannot use the same court at the same timeslot."""
    localization_indices = [_index_map(event.localizations) for event in model.events]
    timeslot_indices = [_index_map(event.timeslots) for event in model.events]

    localizations: list = []
    timeslots: list = []
    for event in model.events:
        localizations.extend(loc for loc in event.localizations if loc not in localizations)
        timeslots.extend(ts for ts in event.timeslots if ts not in timeslots)

    count = 0
    for localization in localizations:
        for timeslot in timeslots:
            busy = []
            for e, event in enumerate(model.events):
                c = localization_indices[e].get(localization)
                t = timeslot_indices[e].get(timeslot)
                if c is None or t is None:
                    continue
                used = any_of(model, [model.occupies[e][p][c][t] for p in range(len(event.players))])
                if not z3.is_false(used):
                    busy.append(used)

            if len(busy) > 1:
                count += model.add(at_most(model, busy, 1))

    return count


def add_player_not_simultaneous_constraints(model: SolverModel) -> int:
    """A player occupies at most one court at a time, across every event."""
    player_indices = [_index_map(event.players) for event in model.events]
    timeslot_indices = [_index_map(event.timeslots) for event in model.events]

    players: list = []
    timeslots: list = []
    for event in model.events:
        players.extend(player for player in event.players if player not in players)
        timeslots.extend(ts for ts in event.timeslots if ts not in timeslots)

    count = 0
    for player in players:
        for timeslot in timeslots:
            cells = []
            for e, event in enumerate(model.events):
                p = player_indices[e].get(player)
                t = timeslot_indices[e].get(timeslot)
                if p is None or t is None:
                    continue
                cells.extend(
                    model.occupies[e][p][c][t] for c in range(len(event.localizations))
                )

            cells = _live(cells)
            if len(cells) > 1:
                count += model.add(at_most(model, cells, 1))

    return count


def build_score(model: SolverModel) -> Any | None:
    """Objective rewarding early starts: each start at t weighs (timeslots - t)."""
    terms = []
    for e, event in enumerate(model.events):
        n_timeslots = len(event.timeslots)
        for row in model.starts[e]:
            for column in row:
                for t, variable in enumerate(column):
                    if z3.is_false(variable):
                        continue
                    terms.append(
                        z3.If(
                            variable,
                            z3.IntVal(n_timeslots - t, model.ctx),
                            z3.IntVal(0, model.ctx),
                        )
                    )
    if not terms:
        return None
    return z3.Sum(terms)


def _record(model: SolverModel, family: str, count: int) -> None:
    model.family_counts[family] = model.family_counts.get(family, 0) + count


def add_all_constraints(model: SolverModel) -> int:
    """Add every constraint family to the model, in a fixed order.

    Returns the total number of constraints posted (fixed cells excluded).
    """
    fixed = add_availability_constraints(model)
    logger.debug("Fixed %d cells from breaks, unavailability and affinities", fixed)

    for e, event in enumerate(model.events):
        logger.debug("Adding constraints for event %s", event.name)

        if event.has_teams():
            _record(model, "teams", add_teams_constraints(model, e))

        _record(model, "matchup_mode", add_matchup_mode_constraints(model, e))
        _record(model, "match_mapping", add_match_mapping_constraints(model, e))
        _record(model, "total_matches", add_total_matches_constraints(model, e))

        if event.has_matchups():
            _record(model, "predefined_matchups", add_predefined_matchups_constraints(model, e))

        _record(model, "matches_per_player", add_matches_per_player_constraints(model, e))
        _record(
            model, "localization_occupation", add_localization_occupation_constraints(model, e)
        )

    _record(model, "localization_collision", add_localization_collision_constraints(model))
    _record(model, "player_not_simultaneous", add_player_not_simultaneous_constraints(model))

    for family, count in model.family_counts.items():
        logger.debug("  %s: %d constraints", family, count)

    return model.constraint_count
