class BricksException(Exception):
    """Base class for errors raised by the statistics engine."""


class NotFoundError(BricksException):
    """No raw game data exists for the requested scope."""

    def __init__(self, scope: str) -> None:
        self.scope = scope
        super().__init__(f"No stats found for {scope}")


class ComputationFailedError(BricksException):
    """A computation could not complete because the store was unavailable.

    Retryable. Never cached.
    """

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(f"Computation {kind!r} failed: {message}")


class RebuildInProgressError(BricksException):
    def __init__(self, started_at: float | None) -> None:
        self.started_at = started_at
        super().__init__(f"A rebuild is already in progress (started at {started_at})")
