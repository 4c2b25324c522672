"""Ticket entity — a service request waiting for a route."""

from dataclasses import dataclass
from datetime import datetime

from geoassign.domain.value_objects.enums import Priority, ServiceType
from geoassign.domain.value_objects.geo_point import Coordinate


@dataclass(frozen=True)
class Ticket:
    id: str
    customer_id: str
    location: Coordinate
    priority: Priority
    service_type: ServiceType
    created_at: datetime
    assigned_route_id: str | None = None

    def is_high_priority(self) -> bool:
        return self.priority in (Priority.HIGH, Priority.URGENT)
