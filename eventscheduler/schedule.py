"""
Schedules: the player x timeslot view of a solution and the matches in it.

EventSchedule turns one event's solved occupation grid into matches.
TournamentSchedule merges the event schedules over the tournament-wide player,
court and timeslot lists.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import TYPE_CHECKING, Iterable

from .errors import ConfigurationError
from .models import Event, Localization, Player, Team, Timeslot

if TYPE_CHECKING:
    from .tournament import Tournament

logger = logging.getLogger(__name__)


class CellKind(Enum):
    FREE = "free"
    OCCUPIED = "occupied"
    CONTINUATION = "continuation"  # court grid only: a match started earlier
    UNAVAILABLE = "unavailable"
    BREAK = "break"
    LIMITED = "limited"  # usable, but with restrictions
    NOT_IN_DOMAIN = "not_in_domain"


_SYMBOLS = {
    CellKind.FREE: "-",
    CellKind.CONTINUATION: "<",
    CellKind.UNAVAILABLE: "*",
    CellKind.BREAK: "~",
    CellKind.LIMITED: "¬",
    CellKind.NOT_IN_DOMAIN: "x",
}


@dataclass(frozen=True)
class ScheduleValue:
    """One grid cell.

    In a player grid an OCCUPIED cell carries the court index; in a court grid
    it carries the indices of the players starting a match there.
    """

    kind: CellKind
    localization: int | None = None
    players: tuple[int, ...] = ()

    @classmethod
    def occupied(cls, localization: int) -> "ScheduleValue":
        return cls(CellKind.OCCUPIED, localization=localization)

    @classmethod
    def occupied_by(cls, players: Iterable[int]) -> "ScheduleValue":
        return cls(CellKind.OCCUPIED, players=tuple(players))

    @property
    def is_occupied(self) -> bool:
        return self.kind == CellKind.OCCUPIED

    def __str__(self) -> str:
        if self.kind != CellKind.OCCUPIED:
            return _SYMBOLS[self.kind]
        if self.localization is not None:
            return str(self.localization)
        return ",".join(str(p) for p in self.players)


FREE = ScheduleValue(CellKind.FREE)
CONTINUATION = ScheduleValue(CellKind.CONTINUATION)
UNAVAILABLE = ScheduleValue(CellKind.UNAVAILABLE)
BREAK = ScheduleValue(CellKind.BREAK)
LIMITED = ScheduleValue(CellKind.LIMITED)
NOT_IN_DOMAIN = ScheduleValue(CellKind.NOT_IN_DOMAIN)


@dataclass(frozen=True)
class Match:
    players: tuple[Player, ...]
    localization: Localization
    start: Timeslot
    end: Timeslot
    duration: int
    teams: tuple[Team, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "players", tuple(self.players))
        object.__setattr__(self, "teams", tuple(self.teams))

        if not self.players:
            raise ConfigurationError("A match must have at least one player")
        if len(set(self.players)) != len(self.players):
            raise ConfigurationError("Players in a match must be unique")
        if self.duration < 1:
            raise ConfigurationError("Match duration cannot be less than 1")
        if self.end.compare_to(self.start) > 0:
            raise ConfigurationError(f"Match end ({self.end}) precedes its start ({self.start})")
        if self.teams:
            team_players = [p for team in self.teams for p in team.players]
            if sorted(team_players, key=str) != sorted(self.players, key=str):
                raise ConfigurationError("Match teams must cover exactly the match players")

    def during(self, timeslot: Timeslot) -> bool:
        """Whether the match is being played at ``timeslot``."""
        return timeslot.within(self.start, self.end)

    def within(self, t1: Timeslot, t2: Timeslot) -> bool:
        """Whether the whole match fits between t1 and t2."""
        return self.start.within(t1, t2) and self.end.within(t1, t2)

    def __str__(self) -> str:
        if self.teams:
            who = " vs ".join(str(team) for team in self.teams)
        else:
            who = " vs ".join(str(player) for player in self.players)
        return f"{self.start}-{self.end} at {self.localization}: {who}"


def _compare_matches(a: Match, b: Match) -> int:
    return -a.start.compare_to(b.start)


class Schedule:
    """Grid and matches shared by event and tournament schedules."""

    name: str
    players: tuple[Player, ...]
    localizations: tuple[Localization, ...]
    timeslots: tuple[Timeslot, ...]
    grid: list[list[ScheduleValue]]
    matches: list[Match]

    def filter_matches_by_player(self, player: Player) -> list[Match]:
        return [m for m in self.matches if player in m.players]

    def filter_matches_by_players(self, players: Iterable[Player]) -> list[Match]:
        """Matches in which every one of ``players`` takes part."""
        players = list(players)
        return [m for m in self.matches if all(p in m.players for p in players)]

    def filter_matches_by_localization(self, localization: Localization) -> list[Match]:
        return [m for m in self.matches if m.localization == localization]

    def filter_matches_by_start_timeslot(self, timeslot: Timeslot) -> list[Match]:
        return [m for m in self.matches if m.start == timeslot]

    def filter_matches_by_end_timeslot(self, timeslot: Timeslot) -> list[Match]:
        return [m for m in self.matches if m.end == timeslot]

    def filter_matches_in_timeslot_range(self, start: Timeslot, end: Timeslot) -> list[Match]:
        """Matches starting exactly at ``start`` and ending exactly at ``end``."""
        return [m for m in self.matches if m.start == start and m.end == end]

    def filter_matches_during_timeslot(self, timeslot: Timeslot) -> list[Match]:
        return [m for m in self.matches if m.during(timeslot)]

    def filter_matches_during_timeslots(self, timeslots: Iterable[Timeslot]) -> list[Match]:
        timeslots = list(timeslots)
        return [m for m in self.matches if any(m.during(t) for t in timeslots)]

    def filter_matches_during_timeslot_range(self, t1: Timeslot, t2: Timeslot) -> list[Match]:
        """Matches being played at any timeslot between t1 and t2, in either order."""
        if t1 not in self.timeslots or t2 not in self.timeslots:
            return []
        return self.filter_matches_during_timeslots(
            t for t in self.timeslots if t.within(t1, t2)
        )

    def __str__(self) -> str:
        from .schedule_printer import format_schedule

        return format_schedule(self)


class EventSchedule(Schedule):
    """Schedule of a single event, read from its solved occupation grid.

    ``occupies`` is indexed [player][court][timeslot] and holds 0 or 1.
    """

    def __init__(self, event: Event, occupies: list[list[list[int]]]):
        self.event = event
        self.name = event.name
        self.players = event.players
        self.localizations = event.localizations
        self.timeslots = event.timeslots

        self.grid = self._build_grid(occupies)
        self.matches = self._build_matches()

    def _cell(self, p: int, t: int, occupies: list[list[list[int]]]) -> ScheduleValue:
        event = self.event
        player = event.players[p]
        timeslot = event.timeslots[t]

        if event.is_break(timeslot):
            return BREAK
        if event.is_player_unavailable(player, timeslot):
            return UNAVAILABLE
        for c in range(len(event.localizations)):
            if occupies[p][c][t]:
                return ScheduleValue.occupied(c)

        allowed = event.players_at_timeslots.get(player)
        if allowed is not None and timeslot not in allowed:
            return LIMITED
        if any(event.is_localization_unavailable(loc, timeslot) for loc in event.localizations):
            return LIMITED
        return FREE

    def _build_grid(self, occupies: list[list[list[int]]]) -> list[list[ScheduleValue]]:
        return [
            [self._cell(p, t, occupies) for t in range(len(self.timeslots))]
            for p in range(len(self.players))
        ]

    def _starts(self) -> list[list[int | None]]:
        """Court index of each match start per player; None elsewhere."""
        duration = self.event.timeslots_per_match
        starts: list[list[int | None]] = []

        for row in self.grid:
            player_starts: list[int | None] = [None] * len(row)
            t = 0
            while t < len(row):
                if row[t].is_occupied:
                    player_starts[t] = row[t].localization
                    t += duration
                else:
                    t += 1
            starts.append(player_starts)

        return starts

    def _teams_for(self, players: list[Player]) -> tuple[Team, ...]:
        teams: list[Team] = []
        for player in players:
            team = self.event.filter_team_by_player(player)
            if team is None:
                return ()
            if team not in teams:
                teams.append(team)

        covered = {p for team in teams for p in team.players}
        if covered != set(players) or len(teams) < 2:
            return ()
        return tuple(teams)

    def _build_matches(self) -> list[Match]:
        event = self.event
        duration = event.timeslots_per_match
        players_per_match = event.players_per_match
        last = len(self.timeslots) - 1

        starts = self._starts()
        matches: list[Match] = []

        for t in range(len(self.timeslots)):
            grouped: set[int] = set()
            for p in range(len(self.players)):
                c = starts[p][t]
                if c is None or p in grouped:
                    continue

                group = [p]
                for q in range(p + 1, len(self.players)):
                    if len(group) == players_per_match:
                        break
                    if q not in grouped and starts[q][t] == c:
                        group.append(q)

                if len(group) < players_per_match:
                    logger.debug(
                        "Incomplete group at %s on %s in %s",
                        self.timeslots[t],
                        self.localizations[c],
                        event.name,
                    )
                    continue

                grouped.update(group)
                players = [self.players[i] for i in group]
                matches.append(
                    Match(
                        players=tuple(players),
                        localization=self.localizations[c],
                        start=self.timeslots[t],
                        end=self.timeslots[min(t + duration - 1, last)],
                        duration=duration,
                        teams=self._teams_for(players) if event.has_teams() else (),
                    )
                )

        return matches


class TournamentSchedule(Schedule):
    """All event schedules merged over the tournament's players, courts and timeslots.

    A player cell claimed by one event keeps its court: later events can only
    refine cells that are not occupied (and cannot overwrite a limited cell
    with anything but an occupied one).
    """

    def __init__(self, tournament: "Tournament", event_schedules: Iterable[EventSchedule]):
        self.tournament = tournament
        self.name = tournament.name
        self.players = tuple(tournament.players)
        self.localizations = tuple(tournament.localizations)
        self.timeslots = tuple(tournament.timeslots)
        self.event_schedules = list(event_schedules)

        self.grid = [[NOT_IN_DOMAIN] * len(self.timeslots) for _ in self.players]
        for schedule in self.event_schedules:
            self._merge(schedule)

        self.matches = sorted(
            (m for schedule in self.event_schedules for m in schedule.matches),
            key=cmp_to_key(_compare_matches),
        )

    def _merge(self, schedule: EventSchedule) -> None:
        player_index = {player: i for i, player in enumerate(self.players)}
        timeslot_index = {timeslot: i for i, timeslot in enumerate(self.timeslots)}
        localization_index = {loc: i for i, loc in enumerate(self.localizations)}

        for p, player in enumerate(schedule.players):
            row = self.grid[player_index[player]]
            for t, timeslot in enumerate(schedule.timeslots):
                column = timeslot_index[timeslot]
                current = row[column]
                value = schedule.grid[p][t]

                if current.is_occupied:
                    continue
                if value.is_occupied:
                    assert value.localization is not None
                    localization = schedule.localizations[value.localization]
                    row[column] = ScheduleValue.occupied(localization_index[localization])
                elif current.kind != CellKind.LIMITED:
                    row[column] = value
