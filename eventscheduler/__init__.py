from .config import SolverConfig
from .errors import ConfigurationError, SolverStateError, ValidationError
from .localization_schedule import LocalizationSchedule
from .models import DayOfWeek, Event, Localization, Matchup, MatchupMode, Player, Team, Timeslot
from .schedule import CellKind, EventSchedule, Match, ScheduleValue, TournamentSchedule
from .tournament import Tournament
from .tournament_solver import TournamentSolver
from .types import OptimizationMode, ResolutionData, SearchStrategy, SolverState
from .validation import ValidationReport, validate_event, validate_tournament

__all__ = [
    "CellKind",
    "ConfigurationError",
    "DayOfWeek",
    "Event",
    "EventSchedule",
    "Localization",
    "LocalizationSchedule",
    "Match",
    "Matchup",
    "MatchupMode",
    "OptimizationMode",
    "Player",
    "ResolutionData",
    "ScheduleValue",
    "SearchStrategy",
    "SolverConfig",
    "SolverState",
    "SolverStateError",
    "Team",
    "Timeslot",
    "Tournament",
    "TournamentSchedule",
    "TournamentSolver",
    "ValidationError",
    "ValidationReport",
    "validate_event",
    "validate_tournament",
]
