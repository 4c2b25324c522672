"""Route entity — a technician's service route with a capacity."""

from __future__ import annotations

from dataclasses import dataclass, field

from geoassign.domain.value_objects.polygon import Polygon


@dataclass(frozen=True)
class RouteSchedule:
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    days: tuple[str, ...] = field(default_factory=tuple)  # lower-case weekday names
    time_zone: str = "UTC"  # IANA name; decides which weekday is "today"

    def operates_on(self, day: str) -> bool:
        return day.lower() in {d.lower() for d in self.days}


@dataclass(frozen=True)
class Route:
    """A route never changes during validation; load facts are read, not written.

    ``current_load`` may exceed ``capacity``: over-capacity is a state to
    detect, not a broken entity.
    """

    id: str
    name: str
    service_area: Polygon
    capacity: int
    current_load: int
    schedule: RouteSchedule | None = None
    technician_id: str | None = None

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"Route {self.name} has invalid capacity: {self.capacity}")
        if self.current_load < 0:
            raise ValueError(f"Route {self.name} has invalid current load: {self.current_load}")

    @property
    def utilization(self) -> float:
        """Load as a fraction of capacity (1.0 == full)."""
        return self.current_load / self.capacity

    @property
    def utilization_percent(self) -> float:
        return self.utilization * 100

    @property
    def available_slots(self) -> int:
        return max(0, self.capacity - self.current_load)

    @property
    def spare_fraction(self) -> float:
        return (self.capacity - self.current_load) / self.capacity

    def has_capacity(self) -> bool:
        return self.current_load < self.capacity
