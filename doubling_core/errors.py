"""Error taxonomy for the doubling tracker."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker errors."""


class InvalidInput(TrackerError, ValueError):
    """Rejected user input (empty name, non-finite number, non-positive baseline)."""


class NotFound(TrackerError, KeyError):
    """A metric id that does not exist in the store."""

    def __init__(self, metric_id: int) -> None:
        super().__init__(metric_id)
        self.metric_id = metric_id

    def __str__(self) -> str:
        return f"Metric not found: {self.metric_id}"


class PersistenceFailure(TrackerError):
    """Key/value store read or write failed."""
