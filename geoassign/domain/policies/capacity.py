"""CapacityPolicy — classify route load and decide how far to look for alternatives."""

from __future__ import annotations

import math
from dataclasses import dataclass

from geoassign.domain.entities.route import Route
from geoassign.domain.value_objects.enums import CapacityState, Priority
from geoassign.domain.value_objects.validation import ValidationResult

# Rescheduling estimate: a base wait plus extra hours per 100% overload
BASE_DELAY_HOURS = 4
DELAY_HOURS_PER_OVERLOAD = 8

MAX_ALTERNATIVES = 5
ADVISORY_ALTERNATIVES = 2


@dataclass(frozen=True)
class CapacityThresholds:
    near_capacity_percent: float = 85.0
    critical_capacity_percent: float = 95.0


@dataclass(frozen=True)
class CapacityConflict:
    state: CapacityState
    route: Route
    current_load: int
    capacity: int
    utilization_percent: float

    @property
    def overload(self) -> int:
        return max(0, self.current_load - self.capacity)


@dataclass(frozen=True)
class AlternativeSearch:
    """Filters and ordering for an alternative-route search.

    ``max_distance_increase_km`` / ``max_distance_percent`` are measured
    against the distance to the route being replaced.
    """

    max_distance_increase_km: float | None = None
    max_distance_percent: float | None = None
    include_near_capacity: bool = False
    prioritize_by_distance: bool = False
    limit: int = MAX_ALTERNATIVES

    def admits(self, route: Route) -> bool:
        """Full routes pass only the widened search; overloaded ones never do."""
        if self.include_near_capacity:
            return route.current_load <= route.capacity
        return route.has_capacity()


# How far to widen the at-capacity search for each ticket priority
PRIORITY_SEARCH: dict[Priority, AlternativeSearch] = {
    Priority.LOW: AlternativeSearch(max_distance_percent=15),
    Priority.MEDIUM: AlternativeSearch(max_distance_percent=15),
    Priority.HIGH: AlternativeSearch(max_distance_percent=25, include_near_capacity=True),
    Priority.URGENT: AlternativeSearch(
        max_distance_percent=25, include_near_capacity=True, prioritize_by_distance=True
    ),
}

OVER_CAPACITY_SEARCH = AlternativeSearch(max_distance_percent=30)
NEAR_CAPACITY_SEARCH = AlternativeSearch(max_distance_percent=15)


def classify_capacity(route: Route, thresholds: CapacityThresholds) -> CapacityConflict | None:
    """over > at > near; None when the route is comfortably below threshold."""
    utilization_percent = route.utilization_percent

    if route.current_load > route.capacity:
        state = CapacityState.OVER_CAPACITY
    elif route.current_load == route.capacity:
        state = CapacityState.AT_CAPACITY
    elif utilization_percent >= thresholds.near_capacity_percent:
        state = CapacityState.NEAR_CAPACITY
    else:
        return None

    return CapacityConflict(
        state=state,
        route=route,
        current_load=route.current_load,
        capacity=route.capacity,
        utilization_percent=utilization_percent,
    )


def estimate_reschedule_delay_hours(route: Route) -> int:
    """4h plus 8h for every 100% of overload, rounded up."""
    overload = max(0.0, route.utilization - 1)
    return math.ceil(BASE_DELAY_HOURS + DELAY_HOURS_PER_OVERLOAD * overload)


def validate_route_capacity(route: Route, thresholds: CapacityThresholds) -> ValidationResult:
    """Blocking issues for full routes, warnings for critical/near ones."""
    utilization_percent = route.utilization_percent
    issues: list[str] = []
    warnings: list[str] = []

    if route.current_load > route.capacity:
        issues.append(
            f"Route {route.name} is over capacity: {route.current_load}/{route.capacity} "
            f"({utilization_percent:.1f}%)"
        )
    elif route.current_load == route.capacity:
        issues.append(f"Route {route.name} is at full capacity: {route.current_load}/{route.capacity}")
    elif utilization_percent >= thresholds.critical_capacity_percent:
        warnings.append(f"Route {route.name} is at critical capacity: {utilization_percent:.1f}%")
    elif utilization_percent >= thresholds.near_capacity_percent:
        warnings.append(f"Route {route.name} is near capacity: {utilization_percent:.1f}%")

    return ValidationResult.from_issues(
        issues,
        warnings=warnings,
        current_load=route.current_load,
        capacity=route.capacity,
        utilization_percent=utilization_percent,
        available_slots=route.available_slots,
    )
