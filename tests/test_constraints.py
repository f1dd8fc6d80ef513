"""
Tests for the constraint builders, inspected before any search runs.
"""
import z3

from eventscheduler.constraints import (
    add_all_constraints,
    add_availability_constraints,
    add_match_mapping_constraints,
    add_matchup_mode_constraints,
    at_least,
    at_most,
    build_score,
    create_solver_model,
    exactly,
)
from eventscheduler.models import MatchupMode


def new_model(*events, prioritize_timeslots=False):
    ctx = z3.Context()
    return create_solver_model(tuple(events), z3.Solver(ctx=ctx), ctx, prioritize_timeslots)


class TestCreateModel:
    def test_shape_and_names(self, event):
        model = new_model(event)
        assert len(model.occupies[0]) == 8
        assert len(model.occupies[0][0]) == 2
        assert len(model.occupies[0][0][0]) == 6
        assert str(model.occupies[0][3][1][5]) == "x_0_3_1_5"
        assert str(model.starts[0][3][1][5]) == "g_0_3_1_5"

    def test_every_variable_is_live_before_constraints(self, event):
        model = new_model(event)
        assert len(model.live_variables()) == 2 * 8 * 2 * 6


class TestAvailability:
    def test_unavailable_player_blocks_earlier_starts(self, event, players, timeslots):
        event.add_unavailable_player_at_timeslot(players[0], timeslots[3])
        model = new_model(event)
        add_availability_constraints(model)

        for c in range(2):
            assert z3.is_false(model.occupies[0][0][c][3])
            assert z3.is_false(model.starts[0][0][c][3])
            assert z3.is_false(model.starts[0][0][c][2])
            assert not z3.is_false(model.starts[0][0][c][1])
            assert not z3.is_false(model.occupies[0][0][c][2])

    def test_break_blocks_every_player(self, event, timeslots):
        event.add_break(timeslots[0])
        model = new_model(event)
        fixed = add_availability_constraints(model)
        assert fixed == 8 * 2 * 2

    def test_player_at_timeslot_only_restricts_starts(self, event, players, timeslots):
        event.add_player_at_timeslot(players[0], timeslots[1])
        model = new_model(event)
        add_availability_constraints(model)
        assert z3.is_false(model.starts[0][0][0][0])
        assert not z3.is_false(model.starts[0][0][0][1])
        assert not z3.is_false(model.occupies[0][0][0][0])

    def test_player_in_localization(self, event, players, courts):
        event.add_player_in_localization(players[0], courts[1])
        model = new_model(event)
        add_availability_constraints(model)
        assert all(z3.is_false(v) for v in model.occupies[0][0][0])
        assert not any(z3.is_false(v) for v in model.occupies[0][0][1])


class TestMatchMapping:
    def test_no_start_in_the_last_slots(self, event):
        event.timeslots_per_match = 3
        model = new_model(event)
        add_match_mapping_constraints(model, 0)
        for row in model.starts[0]:
            for column in row:
                assert z3.is_false(column[4]) and z3.is_false(column[5])
                assert not z3.is_false(column[3])

    def test_single_slot_matches_link_both_arrays(self, event):
        event.timeslots_per_match = 1
        model = new_model(event)
        count = add_match_mapping_constraints(model, 0)
        assert count == 8 * 2 * 6


class TestMatchupMode:
    def test_skipped_for_any(self, event):
        event.matches_per_player = 2
        model = new_model(event)
        assert add_matchup_mode_constraints(model, 0) == 0

    def test_one_constraint_per_group(self, event):
        event.matches_per_player = 2
        event.matchup_mode = MatchupMode.ALL_EQUAL
        model = new_model(event)
        # 8 players in pairs
        assert add_matchup_mode_constraints(model, 0) == 28


class TestPseudoBooleanHelpers:
    def test_constants_when_nothing_is_live(self, event):
        model = new_model(event)
        false = model.false()
        assert z3.is_true(exactly(model, [false], 0))
        assert z3.is_false(exactly(model, [false], 1))
        assert z3.is_true(at_most(model, [false, false], 1))
        assert z3.is_false(at_least(model, [false], 1))
        assert z3.is_true(at_least(model, [], 0))


class TestAddAll:
    def test_counts_are_recorded(self, event):
        model = new_model(event)
        total = add_all_constraints(model)
        assert total == model.constraint_count
        assert total == sum(model.family_counts.values())
        assert model.family_counts["total_matches"] == 2
        assert model.family_counts["matches_per_player"] == 16

    def test_score_is_none_without_live_starts(self, event, timeslots):
        for timeslot in timeslots:
            event.add_break(timeslot)
        model = new_model(event)
        add_availability_constraints(model)
        assert build_score(model) is None
