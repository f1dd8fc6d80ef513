"""
Court x timeslot view of a schedule and its occupation metrics.
"""

from typing import Iterable

from .models import Event, Localization, Player, Timeslot
from .schedule import (
    BREAK,
    CONTINUATION,
    FREE,
    LIMITED,
    NOT_IN_DOMAIN,
    UNAVAILABLE,
    CellKind,
    EventSchedule,
    Match,
    Schedule,
    ScheduleValue,
    TournamentSchedule,
)

_AVAILABLE = (CellKind.FREE, CellKind.OCCUPIED, CellKind.CONTINUATION, CellKind.LIMITED)


class LocalizationSchedule:
    """Which players use each court at each timeslot.

    A match start is recorded as OCCUPIED with the indices (into
    ``players``) of its players; the remaining timeslots of the match are
    CONTINUATION. Cells without a match say whether the events sharing the
    cell can use it.
    """

    def __init__(
        self,
        players: Iterable[Player],
        localizations: Iterable[Localization],
        timeslots: Iterable[Timeslot],
        events: Iterable[Event],
        matches: Iterable[Match],
    ):
        self.players = tuple(players)
        self.localizations = tuple(localizations)
        self.timeslots = tuple(timeslots)
        self.events = tuple(events)
        self.matches = list(matches)

        self.grid = [
            [self._domain_cell(loc, ts) for ts in self.timeslots] for loc in self.localizations
        ]
        self.players_by_start: dict[Localization, dict[Timeslot, list[Player]]] = {
            loc: {} for loc in self.localizations
        }
        self._place_matches()

    @classmethod
    def for_event(cls, schedule: EventSchedule) -> "LocalizationSchedule":
        return cls(
            schedule.players,
            schedule.localizations,
            schedule.timeslots,
            [schedule.event],
            schedule.matches,
        )

    @classmethod
    def for_tournament(cls, schedule: TournamentSchedule) -> "LocalizationSchedule":
        return cls(
            schedule.players,
            schedule.localizations,
            schedule.timeslots,
            schedule.tournament.events,
            schedule.matches,
        )

    @classmethod
    def for_schedule(cls, schedule: Schedule) -> "LocalizationSchedule":
        if isinstance(schedule, TournamentSchedule):
            return cls.for_tournament(schedule)
        if isinstance(schedule, EventSchedule):
            return cls.for_event(schedule)
        raise TypeError(f"Unsupported schedule type: {type(schedule).__name__}")

    def _domain_cell(self, localization: Localization, timeslot: Timeslot) -> ScheduleValue:
        sharing = [
            e for e in self.events if localization in e.localizations and timeslot in e.timeslots
        ]
        if not sharing:
            return NOT_IN_DOMAIN

        breaks = [e for e in sharing if e.is_break(timeslot)]
        blocked = [
            e
            for e in sharing
            if e.is_break(timeslot) or e.is_localization_unavailable(localization, timeslot)
        ]

        if len(breaks) == len(sharing):
            return BREAK
        if len(blocked) == len(sharing):
            return UNAVAILABLE
        if blocked:
            return LIMITED
        return FREE

    def _place_matches(self) -> None:
        localization_index = {loc: i for i, loc in enumerate(self.localizations)}
        timeslot_index = {ts: i for i, ts in enumerate(self.timeslots)}
        player_index = {player: i for i, player in enumerate(self.players)}

        for match in self.matches:
            row = self.grid[localization_index[match.localization]]
            start = timeslot_index[match.start]

            row[start] = ScheduleValue.occupied_by(player_index[p] for p in match.players)
            for t in range(start + 1, min(start + match.duration, len(self.timeslots))):
                row[t] = CONTINUATION

            self.players_by_start[match.localization][match.start] = list(match.players)

    @property
    def occupied_count(self) -> int:
        """Cells used by a match, continuation cells included."""
        return sum(
            1
            for row in self.grid
            for value in row
            if value.kind in (CellKind.OCCUPIED, CellKind.CONTINUATION)
        )

    @property
    def available_timeslots(self) -> int:
        """Cells usable by at least one of the events sharing them."""
        return sum(1 for row in self.grid for value in row if value.kind in _AVAILABLE)

    @property
    def occupation_ratio(self) -> float:
        available = self.available_timeslots
        if available == 0:
            return 0.0
        return self.occupied_count / available

    def __str__(self) -> str:
        from .schedule_printer import format_localization_schedule

        return format_localization_schedule(self)
