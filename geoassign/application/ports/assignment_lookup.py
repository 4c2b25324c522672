"""Port interface for finding an existing ticket → route assignment."""

from abc import ABC, abstractmethod

from geoassign.domain.entities.assignment import Assignment


class AssignmentLookup(ABC):
    @abstractmethod
    async def find(self, ticket_id: str, route_id: str) -> Assignment | None:
        ...
