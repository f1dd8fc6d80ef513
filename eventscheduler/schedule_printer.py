"""
Schedule printing and formatting utilities.

Grids are printed one row per player (or court) and one column per timeslot.
Cell symbols: '-' free, '*' unavailable, '~' break, '¬' limited,
'x' not in the domain, '<' continuation of a match; occupied cells show the
court index (player grids) or the player indices (court grids).
"""

from typing import TYPE_CHECKING

from .types import ResolutionData

if TYPE_CHECKING:
    from .localization_schedule import LocalizationSchedule
    from .schedule import Match, Schedule


def _format_grid(row_labels: list[str], column_labels: list[str], rows: list[list[str]]) -> str:
    label_width = max((len(label) for label in row_labels), default=0)
    widths = [
        max([len(column_labels[t])] + [len(row[t]) for row in rows])
        for t in range(len(column_labels))
    ]

    lines = [" " * label_width + "  " + " ".join(c.rjust(w) for c, w in zip(column_labels, widths))]
    for label, row in zip(row_labels, rows):
        lines.append(label.ljust(label_width) + "  " + " ".join(v.rjust(w) for v, w in zip(row, widths)))
    return "\n".join(lines)


def format_matches(matches: "list[Match]") -> str:
    if not matches:
        return "No matches scheduled"
    return "\n".join(f"🎾 {match}" for match in matches)


def format_schedule(schedule: "Schedule") -> str:
    """Player x timeslot grid followed by the match list."""
    grid = _format_grid(
        [str(p) for p in schedule.players],
        [str(t) for t in schedule.timeslots],
        [[str(value) for value in row] for row in schedule.grid],
    )
    return "\n".join(
        [
            f"📅 {schedule.name}",
            grid,
            "-" * 80,
            format_matches(schedule.matches),
        ]
    )


def format_localization_schedule(schedule: "LocalizationSchedule") -> str:
    grid = _format_grid(
        [str(c) for c in schedule.localizations],
        [str(t) for t in schedule.timeslots],
        [[str(value) for value in row] for row in schedule.grid],
    )
    return "\n".join(
        [
            grid,
            f"Occupation: {schedule.occupied_count}/{schedule.available_timeslots} "
            f"({schedule.occupation_ratio:.0%})",
        ]
    )


def format_resolution_data(data: ResolutionData) -> str:
    lines = [
        f"State: {data.state.value}",
        f"Solutions found: {data.solutions}",
        f"Variables: {data.variables}, constraints: {data.constraints}",
        f"Build time: {data.build_time:.2f}s, resolution time: {data.resolution_time:.2f}s",
    ]
    if data.score is not None:
        lines.append(f"Score: {data.score}")
    if data.statistics:
        lines.append(
            f"Decisions: {data.decisions}, conflicts: {data.conflicts}, restarts: {data.restarts}"
        )
    return "\n".join(lines)


def print_schedule(schedule: "Schedule", title: str | None = None) -> None:
    """Print a formatted schedule with an optional title."""
    if title:
        print(f"\n{title}")
    print(format_schedule(schedule))
