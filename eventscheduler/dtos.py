"""
Pydantic DTOs for tournament definition files and exported schedules.

A definition file lists the tournament's players, localizations and timeslots
once; events and their restrictions refer to them by position in those lists.
"""

from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import DayOfWeek, Event, Localization, MatchupMode, Player, Timeslot
from .schedule import Match
from .tournament import Tournament


def parse_start(value: str) -> DayOfWeek | time | date | datetime:
    """Parse a timeslot start: a weekday name, HH:MM, YYYY-MM-DD or an ISO datetime."""
    text = value.strip()
    if text.upper() in DayOfWeek.__members__:
        return DayOfWeek[text.upper()]
    if "-" not in text:
        return time.fromisoformat(text)
    if "T" in text or " " in text:
        return datetime.fromisoformat(text)
    return date.fromisoformat(text)


def format_start(start: Any) -> str | None:
    if start is None:
        return None
    if isinstance(start, DayOfWeek):
        return start.name.lower()
    if isinstance(start, time):
        return start.strftime("%H:%M")
    if isinstance(start, (date, datetime)):
        return start.isoformat()
    raise ValueError(f"Unsupported timeslot start: {start!r}")


class TimeslotDefinition(BaseModel):
    rank: int = Field(description="Chronological rank, 0 is the earliest", ge=0)
    start: str | None = Field(
        default=None,
        description="Weekday name, time of day (HH:MM), date or ISO datetime",
    )
    duration_minutes: int | None = Field(default=None, description="Length of the timeslot", ge=1)

    @field_validator("start", mode="before")
    @classmethod
    def validate_start(cls, v: Any) -> Any:
        """Reject starts that cannot be parsed."""
        if v is None:
            return v
        if not isinstance(v, str):
            return format_start(v)
        try:
            parse_start(v)
        except ValueError:
            raise ValueError(f"Invalid timeslot start: {v}")
        return v.strip()

    def to_timeslot(self) -> Timeslot:
        return Timeslot(
            rank=self.rank,
            start=parse_start(self.start) if self.start is not None else None,
            duration=timedelta(minutes=self.duration_minutes) if self.duration_minutes else None,
        )

    @classmethod
    def from_timeslot(cls, timeslot: Timeslot) -> "TimeslotDefinition":
        minutes = None
        if timeslot.duration is not None:
            minutes = int(timeslot.duration.total_seconds() // 60)
        return cls(rank=timeslot.rank, start=format_start(timeslot.start), duration_minutes=minutes)


class MatchupDefinition(BaseModel):
    players: list[int] = Field(description="Player indices")
    localizations: list[int] | None = Field(default=None, description="Allowed localization indices")
    timeslots: list[int] | None = Field(default=None, description="Allowed start timeslot indices")
    occurrences: int = Field(default=1, ge=1)


class EventDefinition(BaseModel):
    """
    One event of a definition file.

    Every index refers to the tournament-level players, localizations or
    timeslots lists.
    """

    name: str = Field(description="Event name", min_length=1)
    players: list[int]
    localizations: list[int]
    timeslots: list[int]
    matches_per_player: int = Field(default=1, ge=1)
    timeslots_per_match: int = Field(default=2, ge=1)
    players_per_match: int = Field(default=2, ge=1)
    matchup_mode: MatchupMode = MatchupMode.ANY

    breaks: list[int] = Field(default_factory=list)
    unavailable_players: dict[int, list[int]] = Field(
        default_factory=dict, description="Player index to unavailable timeslot indices"
    )
    unavailable_localizations: dict[int, list[int]] = Field(
        default_factory=dict, description="Localization index to unavailable timeslot indices"
    )
    players_in_localizations: dict[int, list[int]] = Field(default_factory=dict)
    players_at_timeslots: dict[int, list[int]] = Field(default_factory=dict)
    teams: list[list[int]] = Field(default_factory=list)
    matchups: list[MatchupDefinition] = Field(default_factory=list)

    def player_indices(self) -> set[int]:
        indices = set(self.players) | set(self.unavailable_players) | set(self.players_in_localizations)
        indices |= set(self.players_at_timeslots)
        for team in self.teams:
            indices |= set(team)
        for matchup in self.matchups:
            indices |= set(matchup.players)
        return indices

    def localization_indices(self) -> set[int]:
        indices = set(self.localizations) | set(self.unavailable_localizations)
        for localizations in self.players_in_localizations.values():
            indices |= set(localizations)
        for matchup in self.matchups:
            indices |= set(matchup.localizations or ())
        return indices

    def timeslot_indices(self) -> set[int]:
        indices = set(self.timeslots) | set(self.breaks)
        for timeslots in list(self.unavailable_players.values()) + list(
            self.unavailable_localizations.values()
        ):
            indices |= set(timeslots)
        for timeslots in self.players_at_timeslots.values():
            indices |= set(timeslots)
        for matchup in self.matchups:
            indices |= set(matchup.timeslots or ())
        return indices


class TournamentDefinition(BaseModel):
    name: str = Field(description="Tournament name", min_length=1)
    players: list[str] = Field(description="Player names")
    localizations: list[str] = Field(description="Localization (court) names")
    timeslots: list[TimeslotDefinition]
    events: list[EventDefinition] = Field(min_length=1)

    @model_validator(mode="after")
    def validate_indices(self) -> Self:
        """Ensure every index points inside the tournament-level lists."""
        for event in self.events:
            for label, indices, size in (
                ("player", event.player_indices(), len(self.players)),
                ("localization", event.localization_indices(), len(self.localizations)),
                ("timeslot", event.timeslot_indices(), len(self.timeslots)),
            ):
                invalid = sorted(i for i in indices if i < 0 or i >= size)
                if invalid:
                    raise ValueError(
                        f"Event {event.name} refers to unknown {label} indices: {invalid}"
                    )
        return self

    @classmethod
    def from_file(cls, path: Path) -> "TournamentDefinition":
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def to_file(self, path: Path) -> None:
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def to_tournament(self) -> Tournament:
        """Build the domain model. Raises ConfigurationError on inconsistent events."""
        players = [Player(name) for name in self.players]
        localizations = [Localization(name) for name in self.localizations]
        timeslots = [definition.to_timeslot() for definition in self.timeslots]

        events = []
        for definition in self.events:
            event = Event(
                definition.name,
                [players[i] for i in definition.players],
                [localizations[i] for i in definition.localizations],
                [timeslots[i] for i in definition.timeslots],
                matches_per_player=definition.matches_per_player,
                timeslots_per_match=definition.timeslots_per_match,
                players_per_match=definition.players_per_match,
            )
            event.matchup_mode = definition.matchup_mode

            for i in definition.breaks:
                event.add_break(timeslots[i])
            for p, indices in definition.unavailable_players.items():
                event.add_unavailable_player_at_timeslots(players[p], [timeslots[i] for i in indices])
            for c, indices in definition.unavailable_localizations.items():
                event.add_unavailable_localization_at_timeslots(
                    localizations[c], [timeslots[i] for i in indices]
                )
            for p, indices in definition.players_in_localizations.items():
                for i in indices:
                    event.add_player_in_localization(players[p], localizations[i])
            for p, indices in definition.players_at_timeslots.items():
                event.add_player_at_timeslots(players[p], [timeslots[i] for i in indices])
            for team in definition.teams:
                event.add_team(*[players[i] for i in team])
            for matchup in definition.matchups:
                event.add_matchup(
                    [players[i] for i in matchup.players],
                    localizations=(
                        [localizations[i] for i in matchup.localizations]
                        if matchup.localizations is not None
                        else None
                    ),
                    timeslots=(
                        [timeslots[i] for i in matchup.timeslots]
                        if matchup.timeslots is not None
                        else None
                    ),
                    occurrences=matchup.occurrences,
                )

            events.append(event)

        return Tournament(self.name, events)

    @classmethod
    def from_tournament(cls, tournament: Tournament) -> "TournamentDefinition":
        players = tournament.players
        localizations = tournament.localizations
        timeslots = tournament.timeslots

        def player_ids(items) -> list[int]:
            return [players.index(p) for p in items]

        def localization_ids(items) -> list[int]:
            return [localizations.index(c) for c in items]

        def timeslot_ids(items) -> list[int]:
            return sorted(timeslots.index(t) for t in items)

        events = []
        for event in tournament.events:
            events.append(
                EventDefinition(
                    name=event.name,
                    players=player_ids(event.players),
                    localizations=localization_ids(event.localizations),
                    timeslots=timeslot_ids(event.timeslots),
                    matches_per_player=event.matches_per_player,
                    timeslots_per_match=event.timeslots_per_match,
                    players_per_match=event.players_per_match,
                    matchup_mode=event.matchup_mode,
                    breaks=timeslot_ids(event.breaks),
                    unavailable_players={
                        players.index(p): timeslot_ids(ts)
                        for p, ts in event.unavailable_players.items()
                    },
                    unavailable_localizations={
                        localizations.index(c): timeslot_ids(ts)
                        for c, ts in event.unavailable_localizations.items()
                    },
                    players_in_localizations={
                        players.index(p): sorted(localization_ids(cs))
                        for p, cs in event.players_in_localizations.items()
                    },
                    players_at_timeslots={
                        players.index(p): timeslot_ids(ts)
                        for p, ts in event.players_at_timeslots.items()
                    },
                    teams=[player_ids(team.players) for team in event.teams],
                    matchups=[
                        MatchupDefinition(
                            players=sorted(player_ids(m.players)),
                            localizations=sorted(localization_ids(m.localizations)),
                            timeslots=timeslot_ids(m.timeslots),
                            occurrences=m.occurrences,
                        )
                        for m in event.matchups
                    ],
                )
            )

        return cls(
            name=tournament.name,
            players=[p.name for p in players],
            localizations=[c.name for c in localizations],
            timeslots=[TimeslotDefinition.from_timeslot(t) for t in timeslots],
            events=events,
        )


class MatchSummary(BaseModel):
    players: list[str]
    localization: str
    start: str
    end: str
    duration: int = Field(ge=1)
    teams: list[str] = Field(default_factory=list)

    @classmethod
    def from_match(cls, match: Match) -> "MatchSummary":
        return cls(
            players=[p.name for p in match.players],
            localization=match.localization.name,
            start=str(match.start),
            end=str(match.end),
            duration=match.duration,
            teams=[team.name for team in match.teams],
        )


class EventScheduleSummary(BaseModel):
    event: str
    matches: list[MatchSummary]


class ScheduleSummary(BaseModel):
    """A solution exported for consumers outside the library."""

    tournament: str
    solution: int = Field(description="1-based number of the solution", ge=1)
    events: list[EventScheduleSummary]
    occupied_cells: int = Field(ge=0)
    available_cells: int = Field(ge=0)
    occupation_ratio: float = Field(ge=0)
    resolution: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_tournament(cls, tournament: Tournament, solution: int) -> "ScheduleSummary":
        schedules = tournament.current_schedules
        if schedules is None:
            raise ValueError(f"Tournament {tournament.name} has no current solution")

        localization_schedule = tournament.localization_schedule
        assert localization_schedule is not None
        solver = tournament.solver
        resolution = (
            solver.resolution_data.to_dict()
            if solver is not None and solver.resolution_data is not None
            else {}
        )

        return cls(
            tournament=tournament.name,
            solution=solution,
            events=[
                EventScheduleSummary(
                    event=event.name,
                    matches=[MatchSummary.from_match(m) for m in schedule.matches],
                )
                for event, schedule in schedules.items()
            ],
            occupied_cells=localization_schedule.occupied_count,
            available_cells=localization_schedule.available_timeslots,
            occupation_ratio=localization_schedule.occupation_ratio,
            resolution=resolution,
        )
