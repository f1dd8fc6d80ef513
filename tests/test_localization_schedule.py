"""
Tests for the court x timeslot view and occupation metrics.
"""
from conftest import occupation_grid
from eventscheduler.localization_schedule import LocalizationSchedule
from eventscheduler.models import Event
from eventscheduler.samples import build_generic_localizations, build_generic_players, build_simple_timeslots
from eventscheduler.schedule import CellKind, EventSchedule, ScheduleValue, TournamentSchedule
from eventscheduler.tournament import Tournament


class TestLocalizationScheduleForEvent:
    def test_start_and_continuation(self, event):
        schedule = EventSchedule(event, occupation_grid(event, {0: [(1, 2)], 1: [(1, 2)]}))
        view = LocalizationSchedule.for_event(schedule)

        assert view.grid[1][2] == ScheduleValue.occupied_by([0, 1])
        assert view.grid[1][3].kind == CellKind.CONTINUATION
        assert view.grid[1][4].kind == CellKind.FREE
        assert view.players_by_start[event.localizations[1]][event.timeslots[2]] == list(event.players[:2])

    def test_metrics(self, event):
        schedule = EventSchedule(event, occupation_grid(event, {0: [(0, 0)], 1: [(0, 0)]}))
        view = LocalizationSchedule.for_event(schedule)
        assert view.occupied_count == 2
        assert view.available_timeslots == 12
        assert view.occupation_ratio == 2 / 12

    def test_breaks_and_unavailable_courts(self, event, courts, timeslots):
        event.add_break(timeslots[0])
        event.add_unavailable_localization_at_timeslot(courts[1], timeslots[1])
        view = LocalizationSchedule.for_event(EventSchedule(event, occupation_grid(event, {})))

        assert view.grid[0][0].kind == CellKind.BREAK
        assert view.grid[1][1].kind == CellKind.UNAVAILABLE
        assert view.available_timeslots == 9
        assert view.occupation_ratio == 0

    def test_nothing_available(self, players, courts):
        timeslots = build_simple_timeslots(1)
        event = Event("E", players, courts, timeslots)
        event.add_break(timeslots[0])
        view = LocalizationSchedule.for_event(EventSchedule(event, occupation_grid(event, {})))
        assert view.available_timeslots == 0
        assert view.occupation_ratio == 0.0


class TestLocalizationScheduleForTournament:
    def test_cells_shared_by_events(self):
        players = build_generic_players(4)
        courts = build_generic_localizations(2)
        timeslots = build_simple_timeslots(2)
        first = Event("A", players[:2], courts, timeslots)
        second = Event("B", players[2:], courts[:1], timeslots)
        first.add_unavailable_localization_at_timeslot(courts[0], timeslots[0])
        second.add_break(timeslots[1])
        tournament = Tournament("T", [first, second])

        schedule = TournamentSchedule(
            tournament,
            [
                EventSchedule(first, occupation_grid(first, {})),
                EventSchedule(second, occupation_grid(second, {})),
            ],
        )
        view = LocalizationSchedule.for_schedule(schedule)

        # blocked for A, usable by B
        assert view.grid[0][0].kind == CellKind.LIMITED
        # a break for B, usable by A
        assert view.grid[0][1].kind == CellKind.LIMITED
        assert view.grid[1][0].kind == CellKind.FREE
        assert view.available_timeslots == 4

    def test_round_trip_with_occupied_count(self):
        players = build_generic_players(4)
        courts = build_generic_localizations(1)
        timeslots = build_simple_timeslots(4)
        first = Event("A", players[:2], courts, timeslots)
        second = Event("B", players[2:], courts, timeslots)
        tournament = Tournament("T", [first, second])
        schedule = TournamentSchedule(
            tournament,
            [
                EventSchedule(first, occupation_grid(first, {0: [(0, 0)], 1: [(0, 0)]})),
                EventSchedule(second, occupation_grid(second, {0: [(0, 2)], 1: [(0, 2)]})),
            ],
        )
        view = LocalizationSchedule.for_tournament(schedule)

        occupied = sum(
            1
            for row in view.grid
            for cell in row
            if cell.kind in (CellKind.OCCUPIED, CellKind.CONTINUATION)
        )
        assert occupied == view.occupied_count == 4
        assert view.occupation_ratio == 1.0
        assert view.grid[0][2] == ScheduleValue.occupied_by([2, 3])
