"""Exception hierarchy for the timecard engine."""

from __future__ import annotations


class TimecardEngineError(Exception):
    """Base exception for all timecard engine errors."""

    summary = "Timecard engine error"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    @property
    def details(self) -> str:
        """Human-readable detail string including the underlying cause."""
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class InvalidInputError(TimecardEngineError):
    """The caller supplied inputs the run cannot accept."""

    summary = "Invalid input"


class MissingInputError(InvalidInputError):
    """A required input extract was not supplied."""

    summary = "Missing required files"

    def __init__(self, input_names: list[str], summary: str | None = None):
        self.input_names = input_names
        if summary is not None:
            self.summary = summary
        super().__init__(f"Missing required input(s): {', '.join(input_names)}")


class TransformError(TimecardEngineError):
    """A pipeline run failed structurally and was aborted."""

    def __init__(self, summary: str, message: str, cause: BaseException | None = None):
        self.summary = summary
        super().__init__(message, cause)
