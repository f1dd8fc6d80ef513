"""
Factory functions for players, courts, timeslots and sample tournaments.

Every call builds fresh objects; nothing is cached between calls.
"""

from datetime import datetime, time, timedelta

from .models import DayOfWeek, Event, Localization, MatchupMode, Player, Timeslot
from .tournament import Tournament


def build_generic_players(count: int, placeholder: str = "Player") -> list[Player]:
    return [Player(f"{placeholder} {i + 1}") for i in range(count)]


def build_generic_localizations(count: int, placeholder: str = "Court") -> list[Localization]:
    return [Localization(f"{placeholder} {i + 1}") for i in range(count)]


def build_simple_timeslots(count: int) -> list[Timeslot]:
    """Timeslots with only a rank: t0, t1, ..."""
    return [Timeslot(rank=i) for i in range(count)]


def build_day_of_week_timeslots(count: int) -> list[Timeslot]:
    """One timeslot per day starting on Monday; the week wraps after Sunday."""
    return [Timeslot(rank=i, start=DayOfWeek(i % 7 + 1)) for i in range(count)]


def build_local_time_timeslots(count: int, first: time = time(10, 0)) -> list[Timeslot]:
    """Hourly times of day without a duration, starting at ``first``."""
    base = datetime.combine(datetime.today(), first)
    return [Timeslot(rank=i, start=(base + timedelta(hours=i)).time()) for i in range(count)]


def build_one_hour_timeslots(count: int, first: datetime | None = None) -> list[Timeslot]:
    """Consecutive one-hour timeslots starting at ``first`` (today at 10:00 by default)."""
    if first is None:
        first = datetime.combine(datetime.today(), time(10, 0))
    return [
        Timeslot(rank=i, start=first + timedelta(hours=i), duration=timedelta(hours=1))
        for i in range(count)
    ]


def build_single_court_tournament(timeslots: int = 8) -> Tournament:
    """8 players on one court, 1 match each, 2 timeslots per match.

    Needs 8 timeslots, so anything less is infeasible.
    """
    event = Event(
        "Singles",
        build_generic_players(8),
        build_generic_localizations(1),
        build_day_of_week_timeslots(timeslots),
        matches_per_player=1,
        timeslots_per_match=2,
        players_per_match=2,
    )
    return Tournament("Single court", [event])


def build_doubles_tournament() -> Tournament:
    """24 players on two courts, 4 players per match, fills every cell."""
    event = Event(
        "Doubles",
        build_generic_players(24),
        build_generic_localizations(2),
        build_simple_timeslots(6),
        matches_per_player=1,
        timeslots_per_match=2,
        players_per_match=4,
    )
    return Tournament("Doubles", [event])


def build_shared_players_tournament() -> Tournament:
    """Two events sharing four players and every court."""
    players = build_generic_players(16)
    courts = build_generic_localizations(4)
    timeslots = build_simple_timeslots(6)

    first = Event("Event 1", players[:10], courts, timeslots)
    second = Event("Event 2", players[6:], courts, timeslots)
    return Tournament("Tournament", [first, second])


def build_league_tournament() -> Tournament:
    """A small round of a league: teams, a break and an all-different matchup mode."""
    players = build_generic_players(8)
    courts = build_generic_localizations(2)
    timeslots = build_one_hour_timeslots(8)

    event = Event(
        "Doubles league",
        players,
        courts,
        timeslots,
        matches_per_player=2,
        timeslots_per_match=1,
        players_per_match=4,
    )
    for i in range(0, len(players), 2):
        event.add_team(players[i], players[i + 1])
    event.matchup_mode = MatchupMode.ALL_DIFFERENT
    event.add_break(timeslots[3])
    event.add_unavailable_localization_at_timeslot(courts[1], timeslots[0])

    return Tournament("League", [event])
