"""
Validation of events and tournaments before solving.

Unlike ConfigurationError, which stops at the first malformed value, these
checks collect every problem they find into a ValidationReport so that all of
them can be reported in one go.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .models import Event

if TYPE_CHECKING:
    from .tournament import Tournament


@dataclass
class ValidationReport:
    """Accumulated validation messages. Empty means valid."""

    messages: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.messages

    def add(self, message: str) -> None:
        self.messages.append(message)

    def extend(self, messages: list[str], prefix: str = "") -> None:
        self.messages.extend(f"{prefix}{message}" for message in messages)


def _duplicates(items) -> list:
    seen = set()
    duplicated = []
    for item in items:
        if item in seen and item not in duplicated:
            duplicated.append(item)
        seen.add(item)
    return duplicated


def validate_event(event: Event) -> ValidationReport:
    report = ValidationReport()

    if not event.name:
        report.add("Name cannot be empty")

    if not event.players:
        report.add("Players cannot be empty, there must be at least one player")
    for player in _duplicates(event.players):
        report.add(f"Players must contain unique elements; player ({player}) is duplicated")

    if not event.localizations:
        report.add("Localizations cannot be empty, there must be at least one localization")
    for localization in _duplicates(event.localizations):
        report.add(
            f"Localizations must contain unique elements; localization ({localization}) is duplicated"
        )

    if not event.timeslots:
        report.add("Timeslots cannot be empty, there must be at least one timeslot")
    for timeslot in _duplicates(event.timeslots):
        report.add(f"Timeslots must contain unique elements; timeslot ({timeslot}) is duplicated")
    for current, following in zip(event.timeslots, event.timeslots[1:]):
        if current.compare_to(following) < 1:
            report.add(f"Timeslot ({current}) must strictly precede timeslot ({following})")

    if event.players and len(event.players) % event.players_per_match != 0:
        report.add(
            f"Number of players ({len(event.players)}) must be a multiple of the "
            f"number of players per match ({event.players_per_match})"
        )

    needed = event.matches_per_player * event.timeslots_per_match
    if len(event.timeslots) < needed:
        report.add(
            f"Number of timeslots ({len(event.timeslots)}) must not be less than "
            f"the minimum needed amount ({needed})"
        )

    _validate_teams(event, report)
    _validate_matchups(event, report)
    _validate_restrictions(event, report)

    return report


def _validate_teams(event: Event, report: ValidationReport) -> None:
    seen: set = set()
    for team in event.teams:
        if len(team.players) != event.players_per_team:
            report.add(
                f"Team ({team}) has {len(team.players)} players but the event "
                f"defines {event.players_per_team} players per team"
            )
        if event.players_per_match % len(team.players) != 0:
            report.add(
                f"Team ({team}) size is not a divisor of the number of players "
                f"per match ({event.players_per_match})"
            )
        for player in team.players:
            if player not in event.players:
                report.add(f"Team ({team}) contains an unknown player ({player})")
            if player in seen:
                report.add(f"Player ({player}) belongs to more than one team")
            seen.add(player)


def _validate_matchups(event: Event, report: ValidationReport) -> None:
    last_start = len(event.timeslots) - event.timeslots_per_match

    for matchup in event.matchups:
        if len(matchup.players) != event.players_per_match:
            report.add(
                f"Matchup {matchup} must have exactly {event.players_per_match} players"
            )
        if any(player not in event.players for player in matchup.players):
            report.add(f"Matchup {matchup} contains players unknown to the event")
        if any(loc not in event.localizations for loc in matchup.localizations):
            report.add(f"Matchup {matchup} contains localizations unknown to the event")
        for timeslot in matchup.timeslots:
            if timeslot not in event.timeslots:
                report.add(f"Matchup {matchup} contains timeslots unknown to the event")
                break
            if event.timeslots.index(timeslot) > last_start:
                report.add(
                    f"Matchup {matchup} cannot start at timeslot ({timeslot}); "
                    "the match would not fit before the end of the event"
                )
                break

    for player in event.players:
        count = sum(m.occurrences for m in event.matchups if player in m.players)
        if count > event.matches_per_player:
            report.add(
                f"Player's ({player}) number of predefined matchups ({count}) "
                f"exceeds the limit ({event.matches_per_player})"
            )


def _validate_restrictions(event: Event, report: ValidationReport) -> None:
    for timeslot in event.breaks:
        if timeslot not in event.timeslots:
            report.add(f"Break ({timeslot}) does not exist in the event timeslots")

    for player, timeslots in event.unavailable_players.items():
        if player not in event.players:
            report.add(f"Unavailable player ({player}) does not exist in the event")
        if any(t not in event.timeslots for t in timeslots):
            report.add(f"Unavailable timeslots of player ({player}) do not exist in the event")

    for localization, timeslots in event.unavailable_localizations.items():
        if localization not in event.localizations:
            report.add(f"Unavailable localization ({localization}) does not exist in the event")
        if any(t not in event.timeslots for t in timeslots):
            report.add(
                f"Unavailable timeslots of localization ({localization}) do not exist in the event"
            )

    for player, localizations in event.players_in_localizations.items():
        if player not in event.players or any(
            loc not in event.localizations for loc in localizations
        ):
            report.add(f"Localizations assigned to player ({player}) are not valid")

    for player, timeslots in event.players_at_timeslots.items():
        if player not in event.players or any(t not in event.timeslots for t in timeslots):
            report.add(f"Timeslots assigned to player ({player}) are not valid")


def validate_tournament(tournament: "Tournament") -> ValidationReport:
    report = ValidationReport()

    if not tournament.name:
        report.add("Name cannot be empty")

    if not tournament.events:
        report.add("Events cannot be empty, there must be at least one event")

    duplicated = [
        event
        for i, event in enumerate(tournament.events)
        if any(event is other for other in tournament.events[:i])
    ]
    for event in duplicated:
        report.add(f"All events must be unique; event ({event}) is duplicated")

    if not duplicated:
        for event in tournament.events:
            report.extend(
                validate_event(event).messages,
                prefix=f"Validation error in event ({event}): ",
            )

    if not tournament.players:
        report.add("Players cannot be empty")
    if not tournament.localizations:
        report.add("Localizations cannot be empty")
    if not tournament.timeslots:
        report.add("Timeslots cannot be empty")

    return report
