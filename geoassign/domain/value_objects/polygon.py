"""Polygon value object — a service-area boundary ring."""

from __future__ import annotations

from dataclasses import dataclass

from geoassign.domain.value_objects.geo_point import Coordinate

# Two vertices closer than this (in degrees) are treated as the same point
CLOSURE_EPSILON_DEG = 1e-6


@dataclass(frozen=True)
class Polygon:
    """Ordered ring of coordinates.

    Nothing is enforced at construction; ``geometry.validate_polygon`` reports
    too-short rings and bad vertices, and warns about unclosed ones.
    """

    coordinates: tuple[Coordinate, ...]
    name: str | None = None

    @classmethod
    def from_pairs(cls, pairs, name: str | None = None) -> Polygon:
        """Build from (lat, lon) pairs."""
        return cls(
            coordinates=tuple(Coordinate(latitude=lat, longitude=lon) for lat, lon in pairs),
            name=name,
        )

    def __len__(self) -> int:
        return len(self.coordinates)

    def is_closed(self) -> bool:
        if not self.coordinates:
            return False
        first, last = self.coordinates[0], self.coordinates[-1]
        return (
            abs(first.latitude - last.latitude) <= CLOSURE_EPSILON_DEG
            and abs(first.longitude - last.longitude) <= CLOSURE_EPSILON_DEG
        )
