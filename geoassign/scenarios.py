"""Controlled coordinates and service areas for reproducible validation runs."""

from __future__ import annotations

from geoassign.domain import geometry
from geoassign.domain.value_objects.geo_point import Coordinate
from geoassign.domain.value_objects.polygon import Polygon

CONTROLLED_CENTER = Coordinate(latitude=42.5, longitude=-92.5)


def controlled_coordinates() -> list[Coordinate]:
    """Five fixed points; B and D are ~1.38 km from A, E is ~0.69 km."""
    return [
        Coordinate(latitude=42.5000, longitude=-92.5000),  # A
        Coordinate(latitude=42.5100, longitude=-92.5100),  # B
        Coordinate(latitude=42.5200, longitude=-92.5000),  # C, ~2.22 km from A
        Coordinate(latitude=42.4900, longitude=-92.4900),  # D
        Coordinate(latitude=42.5050, longitude=-92.4950),  # E
    ]


def controlled_service_areas() -> list[Polygon]:
    """Closed north/south squares either side of latitude 42.50."""
    return [
        Polygon.from_pairs(
            [
                (42.5200, -92.5200),
                (42.5200, -92.4800),
                (42.5400, -92.4800),
                (42.5400, -92.5200),
                (42.5200, -92.5200),
            ],
            name="Test Service Area North",
        ),
        Polygon.from_pairs(
            [
                (42.4800, -92.5200),
                (42.4800, -92.4800),
                (42.5000, -92.4800),
                (42.5000, -92.5200),
                (42.4800, -92.5200),
            ],
            name="Test Service Area South",
        ),
    ]


def square_area(center: Coordinate, half_side_km: float, name: str | None = None) -> Polygon:
    """Closed square ring around ``center``."""
    box = geometry.bounding_box(center, half_side_km)
    ne, sw = box.north_east, box.south_west
    return Polygon.from_pairs(
        [
            (sw.latitude, sw.longitude),
            (sw.latitude, ne.longitude),
            (ne.latitude, ne.longitude),
            (ne.latitude, sw.longitude),
            (sw.latitude, sw.longitude),
        ],
        name=name,
    )


def scattered_locations(count: int, radius_km: float = 5.0, seed: int = 42) -> list[Coordinate]:
    """Seeded ticket locations around the controlled center."""
    return geometry.generate_within_radius(CONTROLLED_CENTER, radius_km, count, seed=seed)
