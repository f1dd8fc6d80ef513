"""Command-line interface for tournament scheduling."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError as DefinitionError

from .config import SolverConfig
from .dtos import ScheduleSummary, TournamentDefinition
from .errors import ConfigurationError, ValidationError
from .localization_schedule import LocalizationSchedule
from .schedule_printer import format_localization_schedule, format_resolution_data, format_schedule
from .samples import (
    build_doubles_tournament,
    build_league_tournament,
    build_shared_players_tournament,
    build_single_court_tournament,
)
from .tournament import Tournament
from .types import OptimizationMode, SearchStrategy, SolverState

app = typer.Typer(
    name="eventscheduler",
    help="Tournament scheduling using constraint solving",
    no_args_is_help=True,
)

SAMPLES = {
    "single-court": build_single_court_tournament,
    "doubles": build_doubles_tournament,
    "shared-players": build_shared_players_tournament,
    "league": build_league_tournament,
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_tournament(input_file: Path) -> Tournament:
    try:
        return TournamentDefinition.from_file(input_file).to_tournament()
    except DefinitionError as e:
        typer.echo(f"❌ Invalid tournament definition:\n{e}", err=True)
        raise typer.Exit(1)
    except ConfigurationError as e:
        typer.echo(f"❌ Invalid tournament: {e}", err=True)
        raise typer.Exit(1)


def _build_config(
    strategy: SearchStrategy | None,
    optimization: OptimizationMode | None,
    time_limit: int | None,
    prioritize_timeslots: bool | None,
    seed: int | None,
) -> SolverConfig:
    overrides = {
        "search_strategy": strategy,
        "optimization_mode": optimization,
        "time_limit_ms": time_limit,
        "prioritize_timeslots": prioritize_timeslots,
        "random_seed": seed,
    }
    # replace() runs the config checks again on the overridden values
    return replace(
        SolverConfig.from_env(),
        **{name: value for name, value in overrides.items() if value is not None},
    )


def _run(
    tournament: Tournament,
    config: SolverConfig,
    solutions: int,
    output: Path | None,
    quiet: bool,
) -> None:
    typer.echo(f"🔧 Solving {tournament.name} ({len(tournament.events)} event(s))...")

    try:
        found = tournament.solve(config)
    except ValidationError as e:
        typer.echo("❌ The tournament is not valid:", err=True)
        for message in e.report.messages:
            typer.echo(f"  - {message}", err=True)
        raise typer.Exit(1)

    solver = tournament.solver
    assert solver is not None

    if not found:
        if solver.state == SolverState.INCOMPLETE:
            typer.echo("⏱️ Time limit reached before a schedule was found", err=True)
        else:
            typer.echo("❌ No schedule satisfies every constraint", err=True)
        raise typer.Exit(1)

    summaries: list[ScheduleSummary] = []
    count = 0
    while found:
        count += 1
        typer.echo(f"\n✅ Solution {count}")
        if not quiet:
            schedule = tournament.schedule
            assert schedule is not None
            typer.echo(format_schedule(schedule))
            typer.echo("")
            typer.echo(format_localization_schedule(LocalizationSchedule.for_tournament(schedule)))
        summaries.append(ScheduleSummary.from_tournament(tournament, count))

        if count >= solutions:
            break
        found = tournament.next_schedules()

    if solver.resolution_data is not None:
        typer.echo(f"\n📊 {format_resolution_data(solver.resolution_data)}")

    if output is not None:
        output.write_text(
            "[\n" + ",\n".join(s.model_dump_json(indent=2) for s in summaries) + "\n]\n",
            encoding="utf-8",
        )
        typer.echo(f"Schedules saved to: {output.absolute()}")


@app.command("schedule")
def schedule(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the JSON tournament definition",
            exists=True,
            readable=True,
        ),
    ],
    solutions: Annotated[
        int,
        typer.Option("--solutions", "-n", help="Maximum number of solutions to print", min=1),
    ] = 1,
    strategy: Annotated[
        SearchStrategy | None,
        typer.Option("--strategy", "-s", help="Search strategy"),
    ] = None,
    optimization: Annotated[
        OptimizationMode | None,
        typer.Option("--optimization", help="Rank solutions by how early matches start"),
    ] = None,
    time_limit: Annotated[
        int | None,
        typer.Option("--time-limit", "-t", help="Solver time limit in milliseconds (0 = none)", min=0),
    ] = None,
    prioritize_timeslots: Annotated[
        bool | None,
        typer.Option("--prioritize-timeslots/--prioritize-localizations", help="Fill order"),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed", min=0),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the schedules as JSON"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only print summaries"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Find schedules for a tournament definition file."""
    setup_logging(verbose)
    tournament = _load_tournament(input_file)
    try:
        config = _build_config(strategy, optimization, time_limit, prioritize_timeslots, seed)
    except ConfigurationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    _run(tournament, config, solutions, output, quiet)


@app.command("validate")
def validate(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON tournament definition", exists=True, readable=True),
    ],
) -> None:
    """Check a tournament definition without solving it."""
    tournament = _load_tournament(input_file)
    report = tournament.validate()

    if not report.is_valid:
        typer.echo(f"❌ {len(report.messages)} problem(s) found:", err=True)
        for message in report.messages:
            typer.echo(f"  - {message}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ {tournament.name} is valid")
    typer.echo(f"Events: {len(tournament.events)}")
    typer.echo(f"Players: {len(tournament.players)}")
    typer.echo(f"Localizations: {len(tournament.localizations)}")
    typer.echo(f"Timeslots: {len(tournament.timeslots)}")
    for event in tournament.events:
        typer.echo(
            f"  - {event.name}: {event.number_of_matches} matches of "
            f"{event.players_per_match} players, {event.timeslots_per_match} timeslot(s) each"
        )


@app.command("demo")
def demo(
    sample: Annotated[
        str,
        typer.Argument(help=f"Sample tournament: {', '.join(SAMPLES)}"),
    ] = "shared-players",
    solutions: Annotated[
        int,
        typer.Option("--solutions", "-n", help="Maximum number of solutions to print", min=1),
    ] = 1,
    export: Annotated[
        Path | None,
        typer.Option("--export", help="Write the sample as a tournament definition file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Solve one of the built-in sample tournaments."""
    setup_logging(verbose)
    if sample not in SAMPLES:
        typer.echo(f"❌ Unknown sample: {sample}. Choose one of: {', '.join(SAMPLES)}", err=True)
        raise typer.Exit(1)

    tournament = SAMPLES[sample]()
    if export is not None:
        TournamentDefinition.from_tournament(tournament).to_file(export)
        typer.echo(f"Definition saved to: {export.absolute()}")

    _run(tournament, SolverConfig.from_env(), solutions, None, quiet=False)
