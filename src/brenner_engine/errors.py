"""Exceptions raised by the engine.

Routine domain failures (illegal transitions, failed validation) are returned
as result values. Exceptions are reserved for corrupted input and for
constructors that cannot produce a discriminative record.
"""


class BrennerEngineError(Exception):
    """Base class for engine errors."""


class InvalidHistoryError(BrennerEngineError, ValueError):
    """Raised when imported transition history contains malformed records."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid transition history: " + "; ".join(problems))


class NonDiscriminativePredictionError(BrennerEngineError, ValueError):
    """Raised when a binary constructor receives two same-polarity predictions."""
