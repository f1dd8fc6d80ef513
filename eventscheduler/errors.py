"""
Exception types for the event scheduler.

Configuration problems are raised immediately while the domain model is being
built. Validation problems are collected into a report and raised as a batch
right before solving. Solver outcomes (feasible, infeasible, time limit) are
ordinary return values and never raise.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import ValidationReport


class ConfigurationError(ValueError):
    """Raised when an entity or solver option is malformed."""

    pass


class ValidationError(Exception):
    """Raised when a tournament fails validation and cannot be solved.

    Carries the full report so callers can show every message at once.
    """

    def __init__(self, report: "ValidationReport"):
        self.report = report
        super().__init__("\n".join(report.messages))


class SolverStateError(RuntimeError):
    """Raised when the solver is driven out of order."""

    pass
