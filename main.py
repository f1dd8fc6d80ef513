"""Consolidated CLI for the event scheduler."""

import typer

from eventscheduler.cli import app as scheduler_app

# Create main application
app = typer.Typer(
    name="eventscheduler",
    help="Tournament scheduling tools",
    no_args_is_help=True,
)

app.add_typer(scheduler_app, name="scheduler", help="Solve and check tournaments")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
