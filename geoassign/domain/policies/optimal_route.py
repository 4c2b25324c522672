"""OptimalRoutePolicy — pick the nearest route with spare capacity."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from geoassign.domain.entities.route import Route


@dataclass(frozen=True)
class OptimalRouteSelection:
    """Result of the optimal route policy."""

    route: Route
    distance_km: float
    capacity_fallback: bool  # True when no candidate had spare capacity
    reason: str


@dataclass(frozen=True)
class DistanceComparison:
    proposed_km: float
    optimal_km: float
    diff_km: float
    diff_percent: float


def select_optimal_route(
    routes: Sequence[Route],
    distances_km: Mapping[str, float],
) -> OptimalRouteSelection:
    """Select the true-optimal route for a ticket.

    1. Among routes with ``current_load < capacity``, take the nearest.
    2. If none has spare capacity, take the one with the most headroom
       (``capacity - current_load``), i.e. the least overloaded.

    Ties keep input order. Routes missing from ``distances_km`` count as
    infinitely far.

    Raises:
        ValueError: if ``routes`` is empty.
    """
    if not routes:
        raise ValueError("Cannot select an optimal route from an empty candidate list")

    def _distance(route: Route) -> float:
        return distances_km.get(route.id, math.inf)

    available = [r for r in routes if r.has_capacity()]
    if available:
        best = min(available, key=_distance)
        return OptimalRouteSelection(
            route=best,
            distance_km=_distance(best),
            capacity_fallback=False,
            reason=f"Nearest route with capacity: {best.name} ({_distance(best):.1f} km)",
        )

    # max() returns the first of equal keys, which keeps input order on ties
    best = max(routes, key=lambda r: r.capacity - r.current_load)
    return OptimalRouteSelection(
        route=best,
        distance_km=_distance(best),
        capacity_fallback=True,
        reason=(
            f"No route has spare capacity; least overloaded is {best.name} "
            f"({best.current_load}/{best.capacity})"
        ),
    )


def compare_distances(proposed_km: float, optimal_km: float) -> DistanceComparison:
    if not (math.isfinite(proposed_km) and math.isfinite(optimal_km)):
        # an unresolved distance is never "within tolerance"
        return DistanceComparison(proposed_km, optimal_km, math.inf, math.inf)

    diff_km = abs(proposed_km - optimal_km)
    diff_percent = diff_km / optimal_km * 100 if optimal_km > 0 else 0.0
    return DistanceComparison(
        proposed_km=proposed_km,
        optimal_km=optimal_km,
        diff_km=diff_km,
        diff_percent=diff_percent,
    )


def is_within_tolerance(
    comparison: DistanceComparison,
    tolerance_percent: float,
    max_diff_km: float,
) -> bool:
    """Both the relative and the absolute difference must be small enough."""
    return comparison.diff_percent <= tolerance_percent and comparison.diff_km <= max_diff_km
