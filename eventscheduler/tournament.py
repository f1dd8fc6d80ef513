"""
Tournament: an ordered list of events solved together.
"""

import logging
from typing import Iterable

from .config import SolverConfig
from .errors import ConfigurationError, SolverStateError, ValidationError
from .localization_schedule import LocalizationSchedule
from .models import Event, Localization, Player, Timeslot
from .schedule import EventSchedule, TournamentSchedule
from .tournament_solver import TournamentSolver
from .validation import ValidationReport, validate_tournament

logger = logging.getLogger(__name__)


def _union(groups: Iterable[Iterable]) -> list:
    seen: list = []
    for group in groups:
        seen.extend(item for item in group if item not in seen)
    return seen


class Tournament:
    """Events that share players, courts and timeslots.

    The tournament-wide players, localizations and timeslots are the unions of
    the events' lists, in order of first appearance. Restrictions added here
    are forwarded to every event that contains the entities involved.
    """

    def __init__(self, name: str, events: Iterable[Event]):
        events = list(events)
        if not events:
            raise ConfigurationError("Events cannot be empty")

        self.name = name
        self.events: list[Event] = events
        self._solver: TournamentSolver | None = None

    def __str__(self) -> str:
        return self.name

    @property
    def players(self) -> list[Player]:
        return _union(event.players for event in self.events)

    @property
    def localizations(self) -> list[Localization]:
        return _union(event.localizations for event in self.events)

    @property
    def timeslots(self) -> list[Timeslot]:
        return _union(event.timeslots for event in self.events)

    def events_with_player(self, player: Player) -> list[Event]:
        return [event for event in self.events if player in event.players]

    # Tournament-wide restrictions

    def add_break(self, timeslot: Timeslot) -> None:
        for event in self.events:
            if timeslot in event.timeslots:
                event.add_break(timeslot)

    def remove_break(self, timeslot: Timeslot) -> None:
        for event in self.events:
            event.remove_break(timeslot)

    def add_unavailable_player_at_timeslot(self, player: Player, timeslot: Timeslot) -> None:
        for event in self.events:
            if player in event.players and timeslot in event.timeslots:
                event.add_unavailable_player_at_timeslot(player, timeslot)

    def add_unavailable_player_at_timeslots(
        self, player: Player, timeslots: Iterable[Timeslot]
    ) -> None:
        for timeslot in timeslots:
            self.add_unavailable_player_at_timeslot(player, timeslot)

    def add_unavailable_player_at_timeslot_range(
        self, player: Player, t1: Timeslot, t2: Timeslot
    ) -> None:
        self.add_unavailable_player_at_timeslots(
            player, [t for t in self.timeslots if t.within(t1, t2)]
        )

    def add_unavailable_localization_at_timeslot(
        self, localization: Localization, timeslot: Timeslot
    ) -> None:
        for event in self.events:
            if localization in event.localizations and timeslot in event.timeslots:
                event.add_unavailable_localization_at_timeslot(localization, timeslot)

    def add_unavailable_localization_at_timeslots(
        self, localization: Localization, timeslots: Iterable[Timeslot]
    ) -> None:
        for timeslot in timeslots:
            self.add_unavailable_localization_at_timeslot(localization, timeslot)

    def add_unavailable_localization_at_timeslot_range(
        self, localization: Localization, t1: Timeslot, t2: Timeslot
    ) -> None:
        self.add_unavailable_localization_at_timeslots(
            localization, [t for t in self.timeslots if t.within(t1, t2)]
        )

    # Solving

    def validate(self) -> ValidationReport:
        return validate_tournament(self)

    def solve(self, config: SolverConfig | None = None) -> bool:
        """Validate the tournament and look for its first schedule.

        Raises ValidationError with every problem found if the tournament is
        not valid. Returns False when no schedule exists or the time limit ran
        out first.
        """
        report = self.validate()
        if not report.is_valid:
            for message in report.messages:
                logger.error(message)
            raise ValidationError(report)

        self._solver = TournamentSolver(self, config)
        return self._solver.solve()

    def next_schedules(self) -> bool:
        if self._solver is None:
            raise SolverStateError("solve() must be called before next_schedules()")
        return self._solver.next_solution()

    def stop(self) -> None:
        if self._solver is not None:
            self._solver.stop()

    @property
    def solver(self) -> TournamentSolver | None:
        return self._solver

    @property
    def current_schedules(self) -> dict[Event, EventSchedule] | None:
        if self._solver is None or self._solver.event_schedules is None:
            return None
        return dict(zip(self._solver.events, self._solver.event_schedules))

    def schedule_for(self, event: Event) -> EventSchedule | None:
        schedules = self.current_schedules
        if schedules is None:
            return None
        return schedules.get(event)

    @property
    def schedule(self) -> TournamentSchedule | None:
        schedules = self.current_schedules
        if schedules is None:
            return None
        return TournamentSchedule(self, schedules.values())

    @property
    def localization_schedule(self) -> LocalizationSchedule | None:
        schedule = self.schedule
        if schedule is None:
            return None
        return LocalizationSchedule.for_tournament(schedule)
