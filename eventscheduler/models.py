"""
Domain model for the event scheduler.

Players, localizations (courts) and timeslots are immutable value objects used
as indices into the solver's variable model. An Event groups them together with
the shape of its matches and its scheduling restrictions: breaks, unavailable
players and courts, forced affinities, teams and predefined matchups.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from functools import total_ordering
from typing import Any, Iterable

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class MatchupMode(Enum):
    """How many times a group of players may meet."""

    ALL_DIFFERENT = "all_different"  # each group meets at most once
    ALL_EQUAL = "all_equal"  # a group that meets, meets in every match
    ANY = "any"
    CUSTOM = "custom"  # each predefined matchup sets its own occurrences


class DayOfWeek(IntEnum):
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Player:
    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Player name cannot be empty")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Localization:
    """A court, field or any other place where a match can be played."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Localization name cannot be empty")

    def __str__(self) -> str:
        return self.name


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@total_ordering
@dataclass(frozen=True)
class Timeslot:
    """A period of time with a chronological rank (lower rank = earlier).

    ``start`` is an optional instant: a datetime, a date, a time of day or a
    DayOfWeek. ``duration`` is an optional timedelta and takes no part in
    equality or hashing.

    ``compare_to`` keeps the inverted sign convention of the scheduling
    engine: it is negative when this timeslot is chronologically *later* than
    the other one. Ties on rank are broken by the start instants when both are
    present and of the same type. The rich comparison operators follow plain
    chronological order, so ``sorted()`` puts rank 0 first.
    """

    rank: int
    start: Any = None
    duration: timedelta | None = field(default=None, compare=False)

    def compare_to(self, other: "Timeslot") -> int:
        cmp = -_sign(self.rank - other.rank)

        if (
            cmp == 0
            and self.start is not None
            and other.start is not None
            and type(self.start) is type(other.start)
        ):
            try:
                cmp = -_sign((self.start > other.start) - (self.start < other.start))
            except TypeError:
                # Starts without an ordering leave the tie as it is
                cmp = 0

        return cmp

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Timeslot):
            return NotImplemented
        return self.compare_to(other) > 0

    def within(self, t1: "Timeslot", t2: "Timeslot") -> bool:
        """Check if this timeslot lies between t1 and t2 (inclusive, any order)."""
        if t1.compare_to(t2) >= 0:
            start, end = t1, t2
        else:
            start, end = t2, t1

        return self.compare_to(start) <= 0 and self.compare_to(end) >= 0

    def __str__(self) -> str:
        if self.start is None:
            return f"t{self.rank}"
        return str(self.start)


@dataclass(frozen=True)
class Team:
    """Two or more players that always share court and timeslot."""

    players: tuple[Player, ...]
    name: str = ""

    def __post_init__(self) -> None:
        players = tuple(self.players)
        if len(players) < 2:
            raise ConfigurationError("A team must have at least two players")
        if len(set(players)) != len(players):
            raise ConfigurationError(
                f"Team players must be unique: {', '.join(str(p) for p in players)}"
            )

        object.__setattr__(self, "players", players)
        if not self.name:
            object.__setattr__(self, "name", "-".join(p.name for p in players))

    def __contains__(self, player: object) -> bool:
        return player in self.players

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Matchup:
    """A predefined group of players that must play together.

    The matchup may only take place in ``localizations`` and may only start
    at ``timeslots``. ``occurrences`` is only used by MatchupMode.CUSTOM.
    """

    players: frozenset[Player]
    localizations: frozenset[Localization]
    timeslots: frozenset[Timeslot]
    occurrences: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "players", frozenset(self.players))
        object.__setattr__(self, "localizations", frozenset(self.localizations))
        object.__setattr__(self, "timeslots", frozenset(self.timeslots))

        if self.occurrences < 1:
            raise ConfigurationError("Matchup occurrences cannot be less than 1")

    def __str__(self) -> str:
        names = ",".join(sorted(p.name for p in self.players))
        return f"[{names}] x{self.occurrences}"


class Event:
    """One competition category with its own players, courts and timeslots.

    Matches are played by ``players_per_match`` players, last
    ``timeslots_per_match`` consecutive timeslots and every player plays
    ``matches_per_player`` of them.
    """

    def __init__(
        self,
        name: str,
        players: Iterable[Player],
        localizations: Iterable[Localization],
        timeslots: Iterable[Timeslot],
        matches_per_player: int = 1,
        timeslots_per_match: int = 2,
        players_per_match: int = 2,
    ):
        players = tuple(players)
        localizations = tuple(localizations)
        timeslots = tuple(sorted(timeslots))

        if not players:
            raise ConfigurationError("Players cannot be empty")
        if len(set(players)) < len(players):
            raise ConfigurationError("Players cannot contain duplicates")
        if players_per_match < 1:
            raise ConfigurationError("Number of players per match cannot be less than 1")
        if len(players) % players_per_match != 0:
            raise ConfigurationError(
                f"Number of players ({len(players)}) is not coherent to the number "
                f"of players per match ({players_per_match})"
            )
        if not localizations:
            raise ConfigurationError("Localizations cannot be empty")
        if len(set(localizations)) < len(localizations):
            raise ConfigurationError("Localizations cannot contain duplicates")
        if not timeslots:
            raise ConfigurationError("Timeslots cannot be empty")
        if len(set(timeslots)) < len(timeslots):
            raise ConfigurationError("Timeslots cannot contain duplicates")
        if timeslots_per_match < 1:
            raise ConfigurationError("Number of timeslots per match cannot be less than 1")
        if matches_per_player < 1:
            raise ConfigurationError("Number of matches per player cannot be less than 1")

        for current, following in zip(timeslots, timeslots[1:]):
            if current.compare_to(following) == 0:
                raise ConfigurationError(
                    f"Every timeslot must strictly precede the following: {current}, {following}"
                )

        self.name = name
        self.players: tuple[Player, ...] = players
        self.localizations: tuple[Localization, ...] = localizations
        self.timeslots: tuple[Timeslot, ...] = timeslots

        self._matches_per_player = matches_per_player
        self._timeslots_per_match = timeslots_per_match
        self._players_per_match = players_per_match

        self.breaks: list[Timeslot] = []
        self.unavailable_players: dict[Player, set[Timeslot]] = {}
        self.unavailable_localizations: dict[Localization, set[Timeslot]] = {}
        self.players_in_localizations: dict[Player, set[Localization]] = {}
        self.players_at_timeslots: dict[Player, set[Timeslot]] = {}

        self.teams: list[Team] = []
        self.players_per_team = 0

        self.matchups: list[Matchup] = []
        self._matchup_mode = MatchupMode.ANY

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Event({self.name!r})"

    # Match shape

    @property
    def matches_per_player(self) -> int:
        return self._matches_per_player

    @matches_per_player.setter
    def matches_per_player(self, value: int) -> None:
        if value < 1:
            raise ConfigurationError("Number of matches per player cannot be less than 1")

        self.matchups.clear()
        if value == 1:
            self._matchup_mode = MatchupMode.ANY
        self._matches_per_player = value

    @property
    def timeslots_per_match(self) -> int:
        return self._timeslots_per_match

    @timeslots_per_match.setter
    def timeslots_per_match(self, value: int) -> None:
        if value < 1:
            raise ConfigurationError("Number of timeslots per match cannot be less than 1")

        self.matchups.clear()
        self._timeslots_per_match = value

    @property
    def players_per_match(self) -> int:
        return self._players_per_match

    @players_per_match.setter
    def players_per_match(self, value: int) -> None:
        if value < 1:
            raise ConfigurationError("Number of players per match cannot be less than 1")
        if len(self.players) % value != 0:
            raise ConfigurationError(
                f"Number of players per match ({value}) is not coherent to the "
                f"number of players this event has ({len(self.players)})"
            )

        self.matchups.clear()
        self.clear_teams()
        if value == 1:
            self._matchup_mode = MatchupMode.ANY
        self._players_per_match = value

    @property
    def matchup_mode(self) -> MatchupMode:
        return self._matchup_mode

    @matchup_mode.setter
    def matchup_mode(self, mode: MatchupMode) -> None:
        if self._matches_per_player > 1 and self._players_per_match > 1:
            self._matchup_mode = mode
        else:
            if mode != MatchupMode.ANY:
                logger.warning(
                    "Ignoring matchup mode %s for event %s: it needs more than one "
                    "match per player and more than one player per match",
                    mode.name,
                    self.name,
                )
            self._matchup_mode = MatchupMode.ANY

    @property
    def number_of_matches(self) -> int:
        return len(self.players) // self._players_per_match * self._matches_per_player

    @property
    def number_of_occupied_timeslots(self) -> int:
        return len(self.players) * self._matches_per_player * self._timeslots_per_match

    # Lookup helpers

    def _require_player(self, player: Player) -> None:
        if player not in self.players:
            raise ConfigurationError(f"Player ({player}) does not exist in event {self.name}")

    def _require_localization(self, localization: Localization) -> None:
        if localization not in self.localizations:
            raise ConfigurationError(
                f"Localization ({localization}) does not exist in event {self.name}"
            )

    def _require_timeslot(self, timeslot: Timeslot) -> None:
        if timeslot not in self.timeslots:
            raise ConfigurationError(f"Timeslot ({timeslot}) does not exist in event {self.name}")

    def timeslot_range(self, t1: Timeslot, t2: Timeslot) -> list[Timeslot]:
        """Timeslots of this event between t1 and t2, both included, in order."""
        self._require_timeslot(t1)
        self._require_timeslot(t2)

        first, last = sorted((self.timeslots.index(t1), self.timeslots.index(t2)))
        return list(self.timeslots[first:last + 1])

    # Teams

    def add_team(self, *members: Player | Team) -> Team:
        """Add a team, given either as a Team or as its players."""
        if len(members) == 1 and isinstance(members[0], Team):
            team = members[0]
        else:
            team = Team(tuple(members))  # type: ignore[arg-type]

        for player in team.players:
            if player not in self.players:
                raise ConfigurationError(
                    f"Players unknown to event {self.name} are contained in the team {team}"
                )
        if any(player in existing for existing in self.teams for player in team.players):
            raise ConfigurationError("A player already belongs to an existing team")

        team_size = len(team.players)
        if self.players_per_team == 0:
            if self._players_per_match % team_size != 0:
                raise ConfigurationError(
                    f"The number of players in this team ({team_size}) is not coherent to the "
                    f"number of players per match (must be a divisor of {self._players_per_match})"
                )
            self.players_per_team = team_size
        elif team_size != self.players_per_team:
            raise ConfigurationError(
                f"The number of players in this team ({team_size}) is not the same than "
                f"the number this event defines ({self.players_per_team})"
            )

        self.teams.append(team)
        return team

    def remove_team(self, team: Team) -> None:
        if team in self.teams:
            self.teams.remove(team)
        if not self.teams:
            self.players_per_team = 0

    def clear_teams(self) -> None:
        self.teams.clear()
        self.players_per_team = 0

    def has_teams(self) -> bool:
        return self.players_per_team >= 2

    def filter_team_by_player(self, player: Player) -> Team | None:
        for team in self.teams:
            if player in team:
                return team
        return None

    # Player availability

    def add_unavailable_player_at_timeslot(self, player: Player, timeslot: Timeslot) -> None:
        self._require_player(player)
        self._require_timeslot(timeslot)
        self.unavailable_players.setdefault(player, set()).add(timeslot)

    def add_unavailable_player_at_timeslots(
        self, player: Player, timeslots: Iterable[Timeslot]
    ) -> None:
        for timeslot in timeslots:
            self.add_unavailable_player_at_timeslot(player, timeslot)

    def add_unavailable_player_at_timeslot_range(
        self, player: Player, t1: Timeslot, t2: Timeslot
    ) -> None:
        self.add_unavailable_player_at_timeslots(player, self.timeslot_range(t1, t2))

    def remove_unavailable_player_at_timeslot(self, player: Player, timeslot: Timeslot) -> None:
        timeslots = self.unavailable_players.get(player)
        if timeslots is None:
            return
        timeslots.discard(timeslot)
        if not timeslots:
            del self.unavailable_players[player]

    def is_player_unavailable(self, player: Player, timeslot: Timeslot) -> bool:
        return timeslot in self.unavailable_players.get(player, ())

    # Breaks

    def add_break(self, timeslot: Timeslot) -> None:
        self._require_timeslot(timeslot)
        if timeslot not in self.breaks:
            self.breaks.append(timeslot)

    def add_break_range(self, t1: Timeslot, t2: Timeslot) -> None:
        for timeslot in self.timeslot_range(t1, t2):
            self.add_break(timeslot)

    def remove_break(self, timeslot: Timeslot) -> None:
        if timeslot in self.breaks:
            self.breaks.remove(timeslot)

    def is_break(self, timeslot: Timeslot) -> bool:
        return timeslot in self.breaks

    # Localization availability

    def add_unavailable_localization_at_timeslot(
        self, localization: Localization, timeslot: Timeslot
    ) -> None:
        self._require_localization(localization)
        self._require_timeslot(timeslot)
        self.unavailable_localizations.setdefault(localization, set()).add(timeslot)

    def add_unavailable_localization_at_timeslots(
        self, localization: Localization, timeslots: Iterable[Timeslot]
    ) -> None:
        for timeslot in timeslots:
            self.add_unavailable_localization_at_timeslot(localization, timeslot)

    def add_unavailable_localization_at_timeslot_range(
        self, localization: Localization, t1: Timeslot, t2: Timeslot
    ) -> None:
        self.add_unavailable_localization_at_timeslots(localization, self.timeslot_range(t1, t2))

    def remove_unavailable_localization(self, localization: Localization) -> None:
        self.unavailable_localizations.pop(localization, None)

    def remove_unavailable_localization_timeslot(
        self, localization: Localization, timeslot: Timeslot
    ) -> None:
        timeslots = self.unavailable_localizations.get(localization)
        if timeslots is None:
            return
        timeslots.discard(timeslot)
        if not timeslots:
            del self.unavailable_localizations[localization]

    def is_localization_unavailable(self, localization: Localization, timeslot: Timeslot) -> bool:
        return timeslot in self.unavailable_localizations.get(localization, ())

    # Forced affinities

    def add_player_in_localization(self, player: Player, localization: Localization) -> None:
        """Restrict the player to the given court (cumulative with earlier calls)."""
        self._require_player(player)
        self._require_localization(localization)
        self.players_in_localizations.setdefault(player, set()).add(localization)

    def add_player_at_timeslot(self, player: Player, timeslot: Timeslot) -> None:
        """Restrict the player's match starts to the given timeslot (cumulative)."""
        self._require_player(player)
        self._require_timeslot(timeslot)
        self.players_at_timeslots.setdefault(player, set()).add(timeslot)

    def add_player_at_timeslots(self, player: Player, timeslots: Iterable[Timeslot]) -> None:
        for timeslot in timeslots:
            self.add_player_at_timeslot(player, timeslot)

    def add_player_at_timeslot_range(self, player: Player, t1: Timeslot, t2: Timeslot) -> None:
        self.add_player_at_timeslots(player, self.timeslot_range(t1, t2))

    def add_players_at_timeslots(
        self, players: Iterable[Player], timeslots: Iterable[Timeslot]
    ) -> None:
        timeslots = list(timeslots)
        for player in players:
            self.add_player_at_timeslots(player, timeslots)

    def clear_players_in_localizations(self) -> None:
        self.players_in_localizations.clear()

    def clear_players_at_timeslots(self) -> None:
        self.players_at_timeslots.clear()

    # Predefined matchups

    def add_matchup(
        self,
        players: Iterable[Player],
        localizations: Iterable[Localization] | None = None,
        timeslots: Iterable[Timeslot] | None = None,
        occurrences: int = 1,
    ) -> Matchup:
        """Require the given players to play together.

        Without explicit courts or timeslots, the matchup inherits the forced
        affinities of its players, or the whole event domain if they have none.
        Timeslots where a match could not fit before the end of the event are
        discarded.
        """
        players = list(players)

        if len(players) != self._players_per_match:
            raise ConfigurationError(
                f"A matchup cannot contain a number of players ({len(players)}) different "
                f"than the number of players per match ({self._players_per_match})"
            )
        if len(set(players)) != len(players):
            raise ConfigurationError("A matchup cannot contain duplicated players")
        for player in players:
            self._require_player(player)

        if localizations is None:
            localizations = set()
            for player in players:
                localizations |= self.players_in_localizations.get(player, set())
            if not localizations:
                localizations = set(self.localizations)
        localizations = set(localizations)
        if not localizations:
            raise ConfigurationError("Matchup localizations cannot be empty")
        for localization in localizations:
            self._require_localization(localization)

        if timeslots is None:
            timeslots = set()
            for player in players:
                timeslots |= self.players_at_timeslots.get(player, set())
            if not timeslots:
                timeslots = set(self.timeslots)
        timeslots = set(timeslots)
        for timeslot in timeslots:
            self._require_timeslot(timeslot)

        last_start = len(self.timeslots) - self._timeslots_per_match
        timeslots = {t for t in timeslots if self.timeslots.index(t) <= last_start}
        if not timeslots:
            raise ConfigurationError("Matchup timeslots cannot be empty")

        for player in players:
            count = occurrences + sum(
                m.occurrences for m in self.matchups if player in m.players
            )
            if count > self._matches_per_player:
                raise ConfigurationError(
                    f"Player's ({player}) number of predefined matchups ({count}) would "
                    f"exceed the limit ({self._matches_per_player})"
                )

        matchup = Matchup(
            players=frozenset(players),
            localizations=frozenset(localizations),
            timeslots=frozenset(timeslots),
            occurrences=occurrences,
        )
        self.matchups.append(matchup)
        return matchup

    def add_team_matchup(self, teams: Iterable[Team], occurrences: int = 1) -> Matchup:
        players: list[Player] = []
        for team in teams:
            if team not in self.teams:
                raise ConfigurationError(f"Team ({team}) does not belong to event {self.name}")
            players.extend(team.players)
        return self.add_matchup(players, occurrences=occurrences)

    def remove_matchup(self, matchup: Matchup) -> None:
        if matchup in self.matchups:
            self.matchups.remove(matchup)

    def clear_matchups(self) -> None:
        self.matchups.clear()

    def has_matchups(self) -> bool:
        return bool(self.matchups)
