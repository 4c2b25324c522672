"""ValidateAssignmentUseCase — is a proposed ticket → route pairing good enough?"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from geoassign.application.ports.assignment_lookup import AssignmentLookup
from geoassign.application.services.distance_resolver import DistanceResolver, ResolveOptions
from geoassign.config import settings
from geoassign.domain import geometry
from geoassign.domain.entities.assignment import Assignment
from geoassign.domain.entities.route import Route
from geoassign.domain.entities.ticket import Ticket
from geoassign.domain.errors import GeoAssignError
from geoassign.domain.policies.capacity import CapacityThresholds, validate_route_capacity
from geoassign.domain.policies.optimal_route import (
    DistanceComparison,
    compare_distances,
    is_within_tolerance,
    select_optimal_route,
)
from geoassign.domain.policies.override_reason import OverrideResult, validate_override_reason
from geoassign.domain.policies.schedule import check_schedule
from geoassign.domain.value_objects.geo_point import Coordinate
from geoassign.domain.value_objects.validation import ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimalityOptions:
    tolerance_percent: float | None = None
    max_diff_km: float | None = None
    require_override_for_suboptimal: bool = True
    now: datetime | None = None
    distance: ResolveOptions | None = None


@dataclass(frozen=True)
class OptimalityResult:
    """Verdict on one proposed assignment.

    A suboptimal proposal is a normal result: check ``is_optimal`` and
    ``needs_override`` rather than expecting an exception.
    """

    is_optimal: bool
    proposed_route: Route
    optimal_route: Route
    comparison: DistanceComparison
    needs_override: bool
    constraints: ValidationResult
    findings: list[str] = field(default_factory=list)
    override_reason: str | None = None
    override: OverrideResult | None = None
    distances_km: dict[str, float] = field(default_factory=dict)


class ValidateAssignmentUseCase:
    """Compares a proposed route against the true optimum and checks constraints."""

    def __init__(
        self,
        resolver: DistanceResolver,
        assignments: AssignmentLookup | None = None,
        *,
        tolerance_percent: float | None = None,
        max_diff_km: float | None = None,
        service_area_tolerance_km: float | None = None,
        override_max_age_hours: float | None = None,
        thresholds: CapacityThresholds | None = None,
    ):
        self._resolver = resolver
        self._assignments = assignments
        self._tolerance_percent = (
            tolerance_percent if tolerance_percent is not None
            else settings.optimality_tolerance_percent
        )
        self._max_diff_km = max_diff_km if max_diff_km is not None else settings.optimality_max_diff_km
        self._area_tolerance_km = (
            service_area_tolerance_km if service_area_tolerance_km is not None
            else settings.service_area_tolerance_km
        )
        self._max_age_hours = override_max_age_hours or settings.override_max_age_hours
        self._thresholds = thresholds or CapacityThresholds(
            near_capacity_percent=settings.near_capacity_percent,
            critical_capacity_percent=settings.critical_capacity_percent,
        )

    async def validate_optimal(
        self,
        ticket: Ticket,
        proposed_route: Route,
        candidate_routes: Sequence[Route],
        options: OptimalityOptions | None = None,
    ) -> OptimalityResult:
        """Validate a proposed assignment.

        Pipeline:
        1. Distance from the ticket to each route's service-area centroid
        2. True-optimal route (nearest with capacity, else least overloaded)
        3. Distance difference vs tolerance (percent AND km)
        4. Override lookup/validation when suboptimal
        5. Capacity, service-area and schedule constraints

        Raises:
            InvalidCoordinateError: the ticket location is malformed.
        """
        options = options or OptimalityOptions()
        geometry.ensure_valid(ticket.location)

        routes = list(candidate_routes)
        if all(r.id != proposed_route.id for r in routes):
            routes.append(proposed_route)

        findings: list[str] = []
        distances = await self._distances_to_routes(ticket.location, routes, options.distance, findings)

        selection = select_optimal_route(routes, distances)
        comparison = compare_distances(distances[proposed_route.id], selection.distance_km)

        tolerance_percent = (
            options.tolerance_percent if options.tolerance_percent is not None else self._tolerance_percent
        )
        max_diff_km = options.max_diff_km if options.max_diff_km is not None else self._max_diff_km
        is_optimal = proposed_route.id == selection.route.id or is_within_tolerance(
            comparison, tolerance_percent, max_diff_km
        )

        override: OverrideResult | None = None
        override_reason: str | None = None
        needs_override = False

        if is_optimal:
            findings.append("Assignment is within optimal tolerance")
        else:
            assignment = await self._find_assignment(ticket.id, proposed_route.id)
            if assignment is not None and assignment.has_override():
                override_reason = assignment.override_reason
                override = self.validate_override_reason(assignment, now=options.now)
                if override.is_valid:
                    findings.append(f"Valid override: {override_reason}")
                else:
                    problems = [f"missing {f}" for f in override.missing_fields] + override.errors
                    findings.append(f"Invalid override: {', '.join(problems)}")
                    needs_override = options.require_override_for_suboptimal
            elif options.require_override_for_suboptimal:
                findings.append("Suboptimal assignment requires override reason")
                needs_override = True

        constraints = self.validate_constraints(ticket, proposed_route, now=options.now)
        findings.extend(constraints.issues)
        findings.extend(constraints.warnings)

        return OptimalityResult(
            is_optimal=is_optimal,
            proposed_route=proposed_route,
            optimal_route=selection.route,
            comparison=comparison,
            needs_override=needs_override,
            constraints=constraints,
            findings=findings,
            override_reason=override_reason,
            override=override,
            distances_km=distances,
        )

    def validate_override_reason(
        self, assignment: Assignment, now: datetime | None = None
    ) -> OverrideResult:
        return validate_override_reason(
            assignment,
            context=self._resolver.context,
            now=now,
            max_age_hours=self._max_age_hours,
        )

    def validate_constraints(
        self, ticket: Ticket, route: Route, now: datetime | None = None
    ) -> ValidationResult:
        """Capacity, service-area membership and schedule, all reported together."""
        capacity = validate_route_capacity(route, self._thresholds)
        service_area = self._check_service_area(ticket.location, route)
        schedule = check_schedule(ticket, route, now=now)

        issues = (
            [f"Capacity issue: {i}" for i in capacity.issues]
            + service_area.issues
            + schedule.issues
        )
        warnings = [f"Capacity warning: {w}" for w in capacity.warnings] + service_area.warnings

        return ValidationResult.from_issues(
            issues,
            warnings=warnings,
            capacity=capacity,
            service_area=service_area,
            schedule=schedule,
        )

    def log_result(
        self, result: OptimalityResult, ticket: Ticket, label: str = "assignment_validation"
    ) -> None:
        logger.info(
            "%s [%s] ticket=%s proposed=%s optimal=%s optimal_flag=%s diff=%.2f km (%.1f%%) "
            "override=%s findings=%s",
            label,
            self._resolver.context.value,
            ticket.id,
            result.proposed_route.id,
            result.optimal_route.id,
            result.is_optimal,
            result.comparison.diff_km,
            result.comparison.diff_percent,
            result.override_reason,
            result.findings,
        )

    # ── internals ──────────────────────────────────────────────────────

    async def _distances_to_routes(
        self,
        location: Coordinate,
        routes: list[Route],
        options: ResolveOptions | None,
        findings: list[str],
    ) -> dict[str, float]:
        results = await asyncio.gather(
            *(self._resolver.resolve_to_area(location, r.service_area, options) for r in routes),
            return_exceptions=True,
        )

        distances: dict[str, float] = {}
        for route, result in zip(routes, results):
            if isinstance(result, GeoAssignError):
                logger.warning("Failed to calculate distance to route %s: %s", route.id, result)
                findings.append(f"Distance to route {route.name} unavailable: {result}")
                distances[route.id] = math.inf
            elif isinstance(result, BaseException):
                raise result
            else:
                distances[route.id] = result.distance_km
        return distances

    async def _find_assignment(self, ticket_id: str, route_id: str) -> Assignment | None:
        if self._assignments is None:
            return None
        return await self._assignments.find(ticket_id, route_id)

    def _check_service_area(self, location: Coordinate, route: Route) -> ValidationResult:
        try:
            if geometry.is_point_in_polygon(location, route.service_area):
                return ValidationResult.ok()

            closest = geometry.closest_point_on_boundary(location, route.service_area)
        except GeoAssignError as exc:
            return ValidationResult.from_issues([f"Service area validation failed: {exc}"])

        if closest is not None and closest.distance_km <= self._area_tolerance_km:
            return ValidationResult.ok(
                warnings=[
                    f"Location is {closest.distance_km:.2f} km outside service area for route "
                    f"{route.name} (within tolerance)"
                ],
                distance_outside_km=closest.distance_km,
            )

        return ValidationResult.from_issues(
            [
                f"Location ({location.latitude}, {location.longitude}) is outside service area "
                f"for route {route.name}"
            ]
        )
