"""
Tests for event and tournament validation reports.
"""
import pytest

from eventscheduler.errors import ValidationError
from eventscheduler.models import Event, Timeslot
from eventscheduler.samples import build_generic_localizations, build_generic_players, build_simple_timeslots
from eventscheduler.tournament import Tournament
from eventscheduler.validation import ValidationReport, validate_event, validate_tournament


class TestValidationReport:
    def test_empty_report_is_valid(self):
        assert ValidationReport().is_valid

    def test_extend_with_prefix(self):
        report = ValidationReport()
        report.extend(["a", "b"], prefix="x: ")
        assert report.messages == ["x: a", "x: b"]
        assert not report.is_valid


class TestValidateEvent:
    def test_valid_event(self, event):
        assert validate_event(event).is_valid

    def test_empty_name(self, players, courts, timeslots):
        event = Event("", players, courts, timeslots)
        assert "Name cannot be empty" in validate_event(event).messages

    def test_not_enough_timeslots(self, players, courts):
        event = Event("E", players, courts, build_simple_timeslots(3), matches_per_player=2)
        messages = validate_event(event).messages
        assert any("minimum needed amount (4)" in m for m in messages)

    def test_too_many_predefined_matchups(self, event, players):
        event.add_matchup(players[:2])
        event.matchups.append(event.matchups[0])
        messages = validate_event(event).messages
        assert any("exceeds the limit (1)" in m for m in messages)

    def test_restrictions_outside_domain(self, event, players):
        event.breaks.append(Timeslot(42))
        event.unavailable_players[players[0]] = {Timeslot(43)}
        messages = validate_event(event).messages
        assert any("Break (t42)" in m for m in messages)
        assert any("Unavailable timeslots of player (Player 1)" in m for m in messages)


class TestValidateTournament:
    def test_valid(self, tournament):
        assert validate_tournament(tournament).is_valid

    def test_duplicated_event(self, event):
        tournament = Tournament("T", [event, event])
        messages = validate_tournament(tournament).messages
        assert any("is duplicated" in m for m in messages)

    def test_event_messages_are_prefixed(self, players, courts):
        event = Event("Short", players, courts, build_simple_timeslots(1))
        messages = validate_tournament(Tournament("T", [event])).messages
        assert messages
        assert all(m.startswith("Validation error in event (Short): ") for m in messages)

    def test_solve_refuses_invalid_tournament(self, players, courts):
        event = Event("Short", players, courts, build_simple_timeslots(1))
        tournament = Tournament("T", [event])
        with pytest.raises(ValidationError) as exc_info:
            tournament.solve()
        assert exc_info.value.report.messages
        assert tournament.solver is None

    def test_union_pools(self):
        players = build_generic_players(6)
        courts = build_generic_localizations(2)
        first = Event("A", players[:4], courts[:1], build_simple_timeslots(4))
        second = Event("B", players[2:], courts, build_simple_timeslots(6))
        tournament = Tournament("T", [first, second])
        assert tournament.players == players
        assert tournament.localizations == courts
        assert len(tournament.timeslots) == 6
