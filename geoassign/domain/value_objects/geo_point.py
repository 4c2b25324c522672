"""Coordinate value object — immutable (lat, lon) pair in degrees."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def haversine_km(self, other: "Coordinate") -> float:
        """Calculate distance in km between two points using the Haversine formula.

        No range checks here; use ``geometry.great_circle_distance_km`` for
        validated input.
        """
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    def rounded(self, places: int = 6) -> tuple[float, float]:
        return round(self.latitude, places), round(self.longitude, places)
