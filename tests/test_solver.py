"""
Solver tests: real z3 searches on small tournaments.

Every solved schedule is checked against the rules the model must enforce:
match count, duration, no double booking, team co-location and the
restrictions of each event.
"""
import pytest

from eventscheduler.config import SolverConfig
from eventscheduler.errors import ConfigurationError, SolverStateError
from eventscheduler.models import Event, MatchupMode
from eventscheduler.samples import (
    build_doubles_tournament,
    build_generic_localizations,
    build_generic_players,
    build_league_tournament,
    build_shared_players_tournament,
    build_simple_timeslots,
    build_single_court_tournament,
)
from eventscheduler.tournament import Tournament
from eventscheduler import tournament_solver
from eventscheduler.tournament_solver import PHASE_SELECTION, TournamentSolver
from eventscheduler.types import OptimizationMode, SearchStrategy, SolverState


def assert_schedule_consistent(tournament):
    """Check every event schedule of the current solution."""
    for event, schedule in tournament.current_schedules.items():
        assert len(schedule.matches) == event.number_of_matches

        for match in schedule.matches:
            assert len(match.players) == event.players_per_match
            start = event.timeslots.index(match.start)
            end = event.timeslots.index(match.end)
            assert end == start + event.timeslots_per_match - 1
            c = event.localizations.index(match.localization)
            for player in match.players:
                p = event.players.index(player)
                for t in range(start, end + 1):
                    assert schedule.grid[p][t].localization == c

        for row in schedule.grid:
            occupied = sum(1 for cell in row if cell.is_occupied)
            assert occupied == event.matches_per_player * event.timeslots_per_match

    # a player never plays twice at the same time, across events
    for player in tournament.players:
        for timeslot in tournament.timeslots:
            playing = [
                m
                for schedule in tournament.current_schedules.values()
                for m in schedule.filter_matches_by_player(player)
                if m.during(timeslot)
            ]
            assert len(playing) <= 1


def simple_event(players=4, courts=1, timeslots=4, **kwargs):
    return Event(
        "E",
        build_generic_players(players),
        build_generic_localizations(courts),
        build_simple_timeslots(timeslots),
        **kwargs,
    )


class TestScenarios:
    def test_single_court_fills_every_slot(self):
        tournament = build_single_court_tournament()
        assert tournament.solve()

        schedule = tournament.schedule_for(tournament.events[0])
        assert len(schedule.matches) == 4
        for match in schedule.matches:
            assert len(set(match.players)) == 2
        assert tournament.localization_schedule.occupation_ratio == 1.0
        assert_schedule_consistent(tournament)

    def test_single_court_with_seven_timeslots_is_infeasible(self):
        tournament = build_single_court_tournament(timeslots=7)
        assert not tournament.solve()
        assert tournament.solver.state == SolverState.INFEASIBLE
        assert tournament.current_schedules is None

    def test_doubles(self):
        tournament = build_doubles_tournament()
        assert tournament.solve()

        schedule = tournament.schedule
        assert len(schedule.matches) == 6
        assert all(len(m.players) == 4 for m in schedule.matches)
        assert tournament.localization_schedule.occupation_ratio == 1.0
        assert_schedule_consistent(tournament)

    def test_shared_players(self):
        tournament = build_shared_players_tournament()
        assert tournament.solve()
        assert_schedule_consistent(tournament)

        # no court hosts two events at once
        for localization in tournament.localizations:
            for timeslot in tournament.timeslots:
                busy = [
                    m
                    for m in tournament.schedule.filter_matches_by_localization(localization)
                    if m.during(timeslot)
                ]
                assert len(busy) <= 1

    def test_league_keeps_teams_together(self):
        tournament = build_league_tournament()
        assert tournament.solve()
        assert_schedule_consistent(tournament)

        event = tournament.events[0]
        schedule = tournament.schedule_for(event)
        for match in schedule.matches:
            assert len(match.teams) == 2
            assert not event.is_break(match.start)
        for team in event.teams:
            rows = [schedule.grid[event.players.index(p)] for p in team.players]
            assert rows[0] == rows[1]

        groups = [frozenset(m.players) for m in schedule.matches]
        assert len(groups) == len(set(groups))


    def test_back_to_back_on_one_court_is_infeasible(self):
        event = simple_event(players=2, timeslots=4, matches_per_player=2)
        tournament = Tournament("T", [event])
        assert not tournament.solve()
        assert tournament.solver.state == SolverState.INFEASIBLE

    def test_repeated_matches_need_a_gap(self):
        event = simple_event(players=2, timeslots=5, matches_per_player=2)
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert [m.start.rank for m in tournament.schedule.matches] == [0, 3]
        assert_schedule_consistent(tournament)


class TestRestrictions:
    def test_unavailable_player(self):
        event = simple_event(players=2, timeslots=3)
        event.add_unavailable_player_at_timeslot(event.players[0], event.timeslots[1])
        tournament = Tournament("T", [event])
        # a two-slot match needs t1 whichever way it starts
        assert not tournament.solve()

    def test_break_moves_the_match(self):
        event = simple_event(players=2, timeslots=3)
        event.add_break(event.timeslots[0])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert tournament.schedule.matches[0].start == event.timeslots[1]

    def test_unavailable_localization(self):
        event = simple_event(players=2, courts=2, timeslots=2)
        event.add_unavailable_localization_at_timeslot(event.localizations[0], event.timeslots[1])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert tournament.schedule.matches[0].localization == event.localizations[1]

    def test_player_in_localization(self):
        event = simple_event(players=4, courts=2, timeslots=2)
        event.add_player_in_localization(event.players[0], event.localizations[1])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        (match,) = tournament.schedule.filter_matches_by_player(event.players[0])
        assert match.localization == event.localizations[1]

    def test_player_at_timeslot(self):
        event = simple_event(players=2, timeslots=4, timeslots_per_match=1)
        event.add_player_at_timeslot(event.players[0], event.timeslots[2])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert tournament.schedule.matches[0].start == event.timeslots[2]

    def test_tournament_wide_break(self):
        players = build_generic_players(4)
        courts = build_generic_localizations(2)
        timeslots = build_simple_timeslots(3)
        first = Event("A", players[:2], courts[:1], timeslots)
        second = Event("B", players[2:], courts[1:], timeslots)
        tournament = Tournament("T", [first, second])

        tournament.add_break(timeslots[0])
        assert first.is_break(timeslots[0]) and second.is_break(timeslots[0])
        assert tournament.solve()
        assert [m.start for m in tournament.schedule.matches] == [timeslots[1], timeslots[1]]

    def test_player_in_two_events_never_overlaps(self):
        players = build_generic_players(3)
        courts = build_generic_localizations(2)
        timeslots = build_simple_timeslots(2)
        first = Event("A", [players[0], players[1]], courts[:1], timeslots, timeslots_per_match=1)
        second = Event("B", [players[0], players[2]], courts[1:], timeslots, timeslots_per_match=1)
        tournament = Tournament("T", [first, second])
        assert tournament.solve()

        (a,) = tournament.schedule_for(first).matches
        (b,) = tournament.schedule_for(second).matches
        assert a.start != b.start

    def test_events_share_a_court(self):
        players = build_generic_players(4)
        court = build_generic_localizations(1)
        timeslots = build_simple_timeslots(4)
        first = Event("A", players[:2], court, timeslots)
        second = Event("B", players[2:], court, timeslots)
        tournament = Tournament("T", [first, second])
        assert tournament.solve()
        assert {m.start.rank for m in tournament.schedule.matches} == {0, 2}


class TestMatchups:
    @pytest.mark.parametrize(
        "mode, expected",
        [
            (MatchupMode.ALL_DIFFERENT, {1}),
            (MatchupMode.ALL_EQUAL, {2}),
            (MatchupMode.ANY, {1, 2}),
        ],
    )
    def test_predefined_matchup_occurrences(self, mode, expected):
        event = simple_event(players=4, timeslots=4, matches_per_player=2, timeslots_per_match=1)
        event.matchup_mode = mode
        event.add_matchup(event.players[:2])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert_schedule_consistent(tournament)

        schedule = tournament.schedule
        together = schedule.filter_matches_by_players(event.players[:2])
        assert len(together) in expected

    def test_all_different_over_every_pairing(self):
        event = simple_event(players=4, timeslots=4, matches_per_player=2, timeslots_per_match=1)
        event.matchup_mode = MatchupMode.ALL_DIFFERENT
        tournament = Tournament("T", [event])
        assert tournament.solve()
        groups = [frozenset(m.players) for m in tournament.schedule.matches]
        assert len(groups) == len(set(groups))

    def test_all_equal_over_every_pairing(self):
        event = simple_event(players=4, timeslots=4, matches_per_player=2, timeslots_per_match=1)
        event.matchup_mode = MatchupMode.ALL_EQUAL
        tournament = Tournament("T", [event])
        assert tournament.solve()
        groups = [frozenset(m.players) for m in tournament.schedule.matches]
        assert len(set(groups)) == 2

    def test_custom_occurrences(self):
        event = simple_event(players=4, timeslots=6, matches_per_player=3, timeslots_per_match=1)
        event.matchup_mode = MatchupMode.CUSTOM
        event.add_matchup(event.players[:2], occurrences=2)
        tournament = Tournament("T", [event])
        assert tournament.solve()
        assert len(tournament.schedule.filter_matches_by_players(event.players[:2])) == 2

    def test_matchup_restricted_to_timeslots(self):
        event = simple_event(players=4, timeslots=4, timeslots_per_match=1)
        event.add_matchup(event.players[:2], timeslots=[event.timeslots[3]])
        tournament = Tournament("T", [event])
        assert tournament.solve()
        (match,) = tournament.schedule.filter_matches_by_player(event.players[0])
        assert match.start == event.timeslots[3]
        assert set(match.players) == set(event.players[:2])


class TestEnumeration:
    def test_next_solution_before_solve(self):
        solver = TournamentSolver(build_single_court_tournament())
        with pytest.raises(SolverStateError):
            solver.next_solution()

    def test_next_schedules_before_solve(self):
        with pytest.raises(SolverStateError):
            build_single_court_tournament().next_schedules()

    def test_all_solutions_are_distinct(self):
        event = simple_event(players=2, timeslots=3)
        tournament = Tournament("T", [event])

        starts = []
        found = tournament.solve()
        while found:
            starts.append(tournament.schedule.matches[0].start.rank)
            found = tournament.next_schedules()

        assert sorted(starts) == [0, 1]
        solver = tournament.solver
        assert solver.state == SolverState.NO_MORE_SOLUTIONS
        assert solver.found_solutions == 2
        assert tournament.current_schedules is None
        assert not tournament.next_schedules()

    def test_same_seed_same_solution(self):
        config = SolverConfig(random_seed=7)
        first = build_doubles_tournament()
        second = build_doubles_tournament()
        assert first.solve(config)
        assert second.solve(SolverConfig(random_seed=7))
        assert first.solver.grids == second.solver.grids

    def test_every_strategy_has_a_phase_policy(self):
        assert set(PHASE_SELECTION) == set(SearchStrategy)

    @pytest.mark.parametrize("strategy", list(SearchStrategy))
    def test_search_strategies(self, strategy):
        tournament = build_single_court_tournament()
        assert tournament.solve(SolverConfig(search_strategy=strategy, prioritize_timeslots=True))
        assert_schedule_consistent(tournament)


class TestOptimization:
    def test_optimal_starts_early(self):
        event = simple_event(players=2, timeslots=4, timeslots_per_match=1)
        tournament = Tournament("T", [event])
        assert tournament.solve(SolverConfig(optimization_mode=OptimizationMode.OPTIMAL))
        assert tournament.schedule.matches[0].start == event.timeslots[0]
        assert tournament.solver.score == 8

    def test_step_strict_scores_increase(self):
        event = simple_event(players=2, timeslots=4, timeslots_per_match=1)
        tournament = Tournament("T", [event])
        scores = []
        found = tournament.solve(SolverConfig(optimization_mode=OptimizationMode.STEP_STRICT))
        while found:
            scores.append(tournament.solver.score)
            found = tournament.next_schedules()
        assert scores == sorted(set(scores))
        assert scores[-1] == 8


class TestResolutionData:
    def test_snapshot_after_solve(self):
        tournament = build_single_court_tournament()
        tournament.solve(SolverConfig(time_limit_ms=60000))
        data = tournament.solver.resolution_data

        assert data.state == SolverState.SOLUTION_FOUND
        assert data.solutions == 1
        assert data.variables > 0
        assert data.constraints > 0
        assert data.tournament_name == "Single court"
        assert data.to_dict()["state"] == "solution_found"

    def test_negative_time_limit(self):
        solver = TournamentSolver(build_single_court_tournament())
        with pytest.raises(ConfigurationError):
            solver.time_limit_ms = -1

    def test_negative_time_limit_assigned_to_config(self):
        config = SolverConfig()
        config.time_limit_ms = -1
        with pytest.raises(ConfigurationError):
            TournamentSolver(build_single_court_tournament(), config)

    def test_config_mutated_after_solver_creation(self):
        config = SolverConfig()
        tournament = build_single_court_tournament()
        solver = TournamentSolver(tournament, config)
        config.time_limit_ms = -1
        with pytest.raises(ConfigurationError):
            solver.solve()

    def test_stop_before_build_is_harmless(self):
        solver = TournamentSolver(build_single_court_tournament())
        solver.stop()
        assert solver.state == SolverState.UNBUILT


class SteppingClock:
    """Stands in for the time module: every read advances one second."""

    def __init__(self):
        self.now = 0.0

    def time(self):
        self.now += 1.0
        return self.now


class TestTimeLimit:
    def test_first_search_runs_out_of_time(self):
        event = Event(
            "E",
            build_generic_players(24),
            build_generic_localizations(6),
            build_simple_timeslots(24),
            matches_per_player=4,
        )
        event.matchup_mode = MatchupMode.ALL_DIFFERENT
        tournament = Tournament("T", [event])

        assert not tournament.solve(SolverConfig(time_limit_ms=1))
        assert tournament.solver.state == SolverState.INCOMPLETE
        assert tournament.current_schedules is None
        assert tournament.solver.resolution_data.state == SolverState.INCOMPLETE

    def test_budget_is_shared_with_next_solution(self, monkeypatch):
        monkeypatch.setattr(tournament_solver, "time", SteppingClock())
        event = simple_event(players=2, timeslots=4, timeslots_per_match=1)
        tournament = Tournament("T", [event])

        # each search reads the clock twice, so it costs 1000 ms of the budget
        assert tournament.solve(SolverConfig(time_limit_ms=1500))
        assert tournament.next_schedules()
        assert not tournament.next_schedules()

        solver = tournament.solver
        assert solver.state == SolverState.INCOMPLETE
        assert solver.found_solutions == 2
        assert tournament.current_schedules is None
        assert not tournament.next_schedules()
