"""
Shared pytest fixtures for event scheduler tests.

Running tests:
    pytest tests/                 - full suite, solver tests run real z3 searches
    pytest tests/ -k "not Solver" - model, schedule and DTO tests only
"""
import pytest

from eventscheduler.models import Event
from eventscheduler.samples import (
    build_generic_localizations,
    build_generic_players,
    build_simple_timeslots,
)
from eventscheduler.tournament import Tournament


@pytest.fixture
def players():
    return build_generic_players(8)


@pytest.fixture
def courts():
    return build_generic_localizations(2)


@pytest.fixture
def timeslots():
    return build_simple_timeslots(6)


@pytest.fixture
def event(players, courts, timeslots):
    """8 players, 2 courts, 6 timeslots, default match shape (1 match, 2 slots, 2 players)."""
    return Event("Singles", players, courts, timeslots)


@pytest.fixture
def tournament(event):
    return Tournament("Open", [event])


def occupation_grid(event, assignments):
    """Build an occupies[player][court][timeslot] grid.

    ``assignments`` maps a player index to (court index, start index) pairs;
    every match lasts the event's timeslots per match.
    """
    grid = [
        [[0] * len(event.timeslots) for _ in event.localizations] for _ in event.players
    ]
    for p, matches in assignments.items():
        for c, start in matches:
            for t in range(start, start + event.timeslots_per_match):
                grid[p][c][t] = 1
    return grid
