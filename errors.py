class TrackerError(Exception):
    """Base class for analytics errors."""


class InvalidInputError(TrackerError, ValueError):
    """Raised when a record does not satisfy the accepted input shape."""


class InvalidExerciseDataError(InvalidInputError):
    """Raised when an exercise carries no sets."""

    def __init__(self, name: str | None = None) -> None:
        msg = "invalid exercise data: at least one set required"
        if name:
            msg = f"invalid exercise data for '{name}': at least one set required"
        super().__init__(msg)
        self.name = name


class NoDataError(TrackerError, LookupError):
    """Raised when a lookup has nothing logged to report on."""
