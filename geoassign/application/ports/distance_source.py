"""Port interface for an external (road-routing style) distance source."""

from abc import ABC, abstractmethod

from geoassign.domain.value_objects.geo_point import Coordinate


class ExternalDistanceSource(ABC):
    @abstractmethod
    async def lookup(self, origin: Coordinate, destination: Coordinate, timeout_s: float) -> float:
        """Return the distance in km between two valid coordinates.

        Raise any exception when the distance can't be produced; callers
        treat that as a failed attempt. ``timeout_s`` is advisory: callers
        also enforce it themselves.
        """
        ...
