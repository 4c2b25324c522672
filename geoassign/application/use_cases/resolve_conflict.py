"""ResolveConflictUseCase — capacity conflicts and alternative routes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from geoassign.application.services.distance_resolver import DistanceResolver
from geoassign.config import settings
from geoassign.domain.entities.route import Route
from geoassign.domain.entities.ticket import Ticket
from geoassign.domain.errors import GeoAssignError
from geoassign.domain.policies.capacity import (
    ADVISORY_ALTERNATIVES,
    MAX_ALTERNATIVES,
    NEAR_CAPACITY_SEARCH,
    OVER_CAPACITY_SEARCH,
    PRIORITY_SEARCH,
    AlternativeSearch,
    CapacityConflict,
    CapacityThresholds,
    classify_capacity,
    estimate_reschedule_delay_hours,
    validate_route_capacity,
)
from geoassign.domain.value_objects.enums import CapacityState, ResolutionStrategy
from geoassign.domain.value_objects.validation import ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictDecision:
    """What to do with a ticket on a (possibly) loaded route.

    ACCEPT may still carry advisory alternatives; RESCHEDULE carries an
    estimated delay; REJECT carries neither.
    """

    strategy: ResolutionStrategy
    reason: str
    alternatives: list[Route] = field(default_factory=list)
    estimated_delay_hours: int | None = None
    conflict: CapacityConflict | None = None


@dataclass(frozen=True)
class TicketResolution:
    ticket_id: str
    route_id: str
    decision: ConflictDecision


@dataclass(frozen=True)
class ConflictReport:
    has_conflicts: bool
    conflicts: list[CapacityConflict]
    affected_route_ids: list[str]
    total_conflicting_tickets: int
    resolutions: list[TicketResolution]


class ResolveConflictUseCase:
    """Classifies route load and picks accept / alternatives / reschedule / reject."""

    def __init__(
        self,
        resolver: DistanceResolver,
        thresholds: CapacityThresholds | None = None,
    ):
        self._resolver = resolver
        self._thresholds = thresholds or CapacityThresholds(
            near_capacity_percent=settings.near_capacity_percent,
            critical_capacity_percent=settings.critical_capacity_percent,
        )

    def classify_capacity(
        self, route: Route, thresholds: CapacityThresholds | None = None
    ) -> CapacityConflict | None:
        return classify_capacity(route, thresholds or self._thresholds)

    def validate_route_capacity(
        self, route: Route, thresholds: CapacityThresholds | None = None
    ) -> ValidationResult:
        return validate_route_capacity(route, thresholds or self._thresholds)

    async def resolve(
        self,
        ticket: Ticket,
        route: Route,
        candidate_routes: Sequence[Route],
        thresholds: CapacityThresholds | None = None,
    ) -> ConflictDecision:
        """Decide how to handle ``ticket`` on ``route`` given its current load."""
        thresholds = thresholds or self._thresholds
        conflict = classify_capacity(route, thresholds)

        if conflict is None:
            return ConflictDecision(
                strategy=ResolutionStrategy.ACCEPT,
                reason="No capacity conflict detected",
            )

        if conflict.state == CapacityState.OVER_CAPACITY:
            decision = await self._resolve_over_capacity(ticket, route, candidate_routes, conflict)
        elif conflict.state == CapacityState.AT_CAPACITY:
            decision = await self._resolve_at_capacity(ticket, route, candidate_routes, conflict)
        else:
            decision = await self._resolve_near_capacity(
                ticket, route, candidate_routes, conflict, thresholds
            )

        logger.info(
            "Ticket %s on route %s (%s): %s", ticket.id, route.id, conflict.state.value, decision.reason
        )
        return decision

    async def suggest_alternatives(
        self,
        ticket: Ticket,
        excluded_route: Route,
        candidate_routes: Sequence[Route],
        search: AlternativeSearch | None = None,
    ) -> list[Route]:
        """Rank other routes that could take the ticket instead.

        1. Drop the excluded route and routes the search does not admit
           (over-capacity routes always, full ones unless
           ``include_near_capacity``).
        2. Drop routes whose extra distance, relative to the excluded route,
           breaks the absolute or percentage limit.
        3. Sort by distance or by spare-capacity fraction (descending).
        4. Keep at most five.
        """
        search = search or AlternativeSearch()
        pool = [
            r for r in candidate_routes
            if r.id != excluded_route.id and search.admits(r)
        ]
        if not pool:
            return []

        original_km = (
            await self._resolver.resolve_to_area(ticket.location, excluded_route.service_area)
        ).distance_km

        results = await asyncio.gather(
            *(self._resolver.resolve_to_area(ticket.location, r.service_area) for r in pool),
            return_exceptions=True,
        )

        distances: dict[str, float] = {}
        for route, result in zip(pool, results):
            if isinstance(result, GeoAssignError):
                logger.warning("Skipping alternative route %s: %s", route.id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            if self._within_distance_limits(result.distance_km, original_km, search):
                distances[route.id] = result.distance_km

        kept = [r for r in pool if r.id in distances]
        if search.prioritize_by_distance:
            kept.sort(key=lambda r: distances[r.id])
        else:
            kept.sort(key=lambda r: r.spare_fraction, reverse=True)

        return kept[:min(search.limit, MAX_ALTERNATIVES)]

    async def analyze_fleet(
        self,
        tickets: Sequence[Ticket],
        routes: Sequence[Route],
        thresholds: CapacityThresholds | None = None,
    ) -> ConflictReport:
        """Classify every route and resolve every ticket assigned to a conflicted one."""
        thresholds = thresholds or self._thresholds
        conflicts: list[CapacityConflict] = []
        resolutions: list[TicketResolution] = []
        total_tickets = 0

        for route in routes:
            conflict = classify_capacity(route, thresholds)
            if conflict is None:
                continue
            conflicts.append(conflict)

            route_tickets = [t for t in tickets if t.assigned_route_id == route.id]
            total_tickets += len(route_tickets)
            for ticket in route_tickets:
                decision = await self.resolve(ticket, route, routes, thresholds)
                resolutions.append(
                    TicketResolution(ticket_id=ticket.id, route_id=route.id, decision=decision)
                )

        logger.info(
            "Fleet analysis: %d/%d routes in conflict, %d tickets affected",
            len(conflicts), len(routes), total_tickets,
        )
        return ConflictReport(
            has_conflicts=bool(conflicts),
            conflicts=conflicts,
            affected_route_ids=[c.route.id for c in conflicts],
            total_conflicting_tickets=total_tickets,
            resolutions=resolutions,
        )

    def log_decision(
        self,
        decision: ConflictDecision,
        ticket: Ticket,
        route: Route,
        label: str = "conflict_resolution",
    ) -> None:
        logger.info(
            "%s [%s] ticket=%s route=%s strategy=%s alternatives=%d delay=%s "
            "load=%d/%d (%.1f%%) reason=%s",
            label,
            self._resolver.context.value,
            ticket.id,
            route.id,
            decision.strategy.value,
            len(decision.alternatives),
            decision.estimated_delay_hours,
            route.current_load,
            route.capacity,
            route.utilization_percent,
            decision.reason,
        )

    # ── strategies ─────────────────────────────────────────────────────

    async def _resolve_over_capacity(
        self,
        ticket: Ticket,
        route: Route,
        candidates: Sequence[Route],
        conflict: CapacityConflict,
    ) -> ConflictDecision:
        alternatives = await self.suggest_alternatives(ticket, route, candidates, OVER_CAPACITY_SEARCH)
        if alternatives:
            return ConflictDecision(
                strategy=ResolutionStrategy.SUGGEST_ALTERNATIVES,
                reason=f"Route over capacity by {conflict.overload} assignments",
                alternatives=alternatives,
                conflict=conflict,
            )
        return ConflictDecision(
            strategy=ResolutionStrategy.REJECT,
            reason="Route over capacity and no suitable alternatives available",
            conflict=conflict,
        )

    async def _resolve_at_capacity(
        self,
        ticket: Ticket,
        route: Route,
        candidates: Sequence[Route],
        conflict: CapacityConflict,
    ) -> ConflictDecision:
        search = PRIORITY_SEARCH[ticket.priority]
        alternatives = await self.suggest_alternatives(ticket, route, candidates, search)
        if alternatives:
            return ConflictDecision(
                strategy=ResolutionStrategy.SUGGEST_ALTERNATIVES,
                reason=(
                    f"Route at capacity, suggesting {len(alternatives)} alternatives "
                    f"for {ticket.priority.value} priority ticket"
                ),
                alternatives=alternatives,
                conflict=conflict,
            )
        return ConflictDecision(
            strategy=ResolutionStrategy.RESCHEDULE,
            reason=(
                "Route at capacity and no suitable alternatives available"
                + (" even with widened search" if ticket.is_high_priority() else "")
            ),
            estimated_delay_hours=estimate_reschedule_delay_hours(route),
            conflict=conflict,
        )

    async def _resolve_near_capacity(
        self,
        ticket: Ticket,
        route: Route,
        candidates: Sequence[Route],
        conflict: CapacityConflict,
        thresholds: CapacityThresholds,
    ) -> ConflictDecision:
        alternatives = await self.suggest_alternatives(ticket, route, candidates, NEAR_CAPACITY_SEARCH)
        utilization = conflict.utilization_percent

        if utilization >= thresholds.critical_capacity_percent:
            if alternatives:
                return ConflictDecision(
                    strategy=ResolutionStrategy.SUGGEST_ALTERNATIVES,
                    reason=f"Route at critical capacity ({utilization:.1f}%), alternatives recommended",
                    alternatives=alternatives,
                    conflict=conflict,
                )
            return ConflictDecision(
                strategy=ResolutionStrategy.ACCEPT,
                reason=(
                    f"Route at critical capacity ({utilization:.1f}%) with no alternatives, "
                    "assignment allowed with warning"
                ),
                conflict=conflict,
            )

        return ConflictDecision(
            strategy=ResolutionStrategy.ACCEPT,
            reason=f"Route near capacity ({utilization:.1f}%), assignment allowed with warning",
            alternatives=alternatives[:ADVISORY_ALTERNATIVES],
            conflict=conflict,
        )

    @staticmethod
    def _within_distance_limits(distance_km: float, original_km: float, search: AlternativeSearch) -> bool:
        increase_km = distance_km - original_km

        if search.max_distance_increase_km is not None and increase_km > search.max_distance_increase_km:
            return False

        if search.max_distance_percent is not None:
            if original_km > 0:
                increase_percent = increase_km / original_km * 100
            else:
                increase_percent = 0.0 if increase_km <= 0 else float("inf")
            if increase_percent > search.max_distance_percent:
                return False

        return True
