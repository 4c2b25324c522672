"""Domain errors.

Only malformed input and total unavailability of a distance are errors.
Suboptimal assignments, capacity conflicts and rejected overrides are
ordinary results.
"""

from __future__ import annotations

from typing import Any


class GeoAssignError(Exception):
    """Base class for every error raised by this package."""


class InvalidCoordinateError(GeoAssignError, ValueError):
    def __init__(self, issues: list[str]):
        self.issues = list(issues)
        super().__init__(f"Invalid coordinates: {', '.join(self.issues)}")


class EmptyPolygonError(GeoAssignError, ValueError):
    def __init__(self, message: str = "Cannot calculate center of empty coordinate array"):
        super().__init__(message)


class InvalidRadiusError(GeoAssignError, ValueError):
    def __init__(self, radius_km: float):
        self.radius_km = radius_km
        super().__init__(f"Radius must be positive, got {radius_km}")


class DistanceUnavailableError(GeoAssignError):
    """External lookup exhausted its attempts and geometric fallback is off."""

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class BatchResolutionError(GeoAssignError):
    """A pair failed inside a batch; earlier batches stay resolved."""

    def __init__(self, batch_start: int, index: int, cause: BaseException, completed: list[Any]):
        self.batch_start = batch_start
        self.index = index
        self.completed = completed
        super().__init__(
            f"Batch distance calculation failed at batch starting index {batch_start} "
            f"(pair {index}): {cause}"
        )
