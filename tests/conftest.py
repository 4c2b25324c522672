"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest

from geoassign.application.cache import BoundedCache
from geoassign.application.services.distance_resolver import DistanceResolver
from geoassign.domain.entities.route import Route, RouteSchedule
from geoassign.domain.entities.ticket import Ticket
from geoassign.domain.value_objects.enums import ExecutionContext, Priority, ServiceType
from geoassign.domain.value_objects.geo_point import Coordinate
from geoassign.scenarios import CONTROLLED_CENTER, square_area

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MONDAY_MORNING = datetime(2024, 6, 3, 9, 0)


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def controlled_resolver():
    return DistanceResolver(context=ExecutionContext.CONTROLLED, cache=BoundedCache(max_size=100))


@pytest.fixture
def make_ticket():
    def _make(
        ticket_id: str = "t1",
        location: Coordinate = CONTROLLED_CENTER,
        priority: Priority = Priority.MEDIUM,
        assigned_route_id: str | None = None,
    ) -> Ticket:
        return Ticket(
            id=ticket_id,
            customer_id="c1",
            location=location,
            priority=priority,
            service_type=ServiceType.REPAIR,
            created_at=MONDAY_MORNING,
            assigned_route_id=assigned_route_id,
        )

    return _make


@pytest.fixture
def make_route():
    """Route whose 1 km square service area is centred ``north_km`` north of the
    controlled center, so its centroid distance is roughly ``north_km``."""

    def _make(
        route_id: str,
        north_km: float = 0.0,
        capacity: int = 10,
        load: int = 0,
        schedule: RouteSchedule | None = RouteSchedule("08:00", "17:00", WEEKDAYS),
    ) -> Route:
        center = Coordinate(
            latitude=CONTROLLED_CENTER.latitude + north_km / 111.195,
            longitude=CONTROLLED_CENTER.longitude,
        )
        return Route(
            id=route_id,
            name=route_id.upper(),
            service_area=square_area(center, 1.0, name=route_id),
            capacity=capacity,
            current_load=load,
            schedule=schedule,
        )

    return _make
