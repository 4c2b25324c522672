"""In-memory AssignmentLookup — assignments supplied by the host per run."""

from __future__ import annotations

from typing import Iterable

from geoassign.application.ports.assignment_lookup import AssignmentLookup
from geoassign.domain.entities.assignment import Assignment


class InMemoryAssignmentLookup(AssignmentLookup):
    """Keeps the most recent assignment per (ticket, route)."""

    def __init__(self, assignments: Iterable[Assignment] = ()):
        self._by_key: dict[tuple[str, str], Assignment] = {}
        for assignment in assignments:
            self.add(assignment)

    def add(self, assignment: Assignment) -> None:
        self._by_key[(assignment.ticket_id, assignment.route_id)] = assignment

    async def find(self, ticket_id: str, route_id: str) -> Assignment | None:
        return self._by_key.get((ticket_id, route_id))
