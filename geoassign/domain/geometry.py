"""Geometry helpers: coordinate checks, great-circle distance, polygons, boxes.

All functions are pure. Latitude/longitude are degrees; distances are km.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Sequence

from geoassign.domain.errors import EmptyPolygonError, InvalidCoordinateError, InvalidRadiusError
from geoassign.domain.value_objects.enums import ValidationCode
from geoassign.domain.value_objects.geo_point import EARTH_RADIUS_KM, Coordinate
from geoassign.domain.value_objects.polygon import Polygon
from geoassign.domain.value_objects.validation import ValidationResult

LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)

# Mean length of one degree of latitude, used for offsets and boxes
KM_PER_DEGREE_LAT = 111.32

# Linear-congruential generator constants for reproducible scenarios
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


@dataclass(frozen=True)
class BoundingBox:
    north_east: Coordinate
    south_west: Coordinate

    def contains(self, point: Coordinate) -> bool:
        if not self.south_west.latitude <= point.latitude <= self.north_east.latitude:
            return False
        west, east = self.south_west.longitude, self.north_east.longitude
        if west <= east:
            return west <= point.longitude <= east
        # box crosses the antimeridian
        return point.longitude >= west or point.longitude <= east


@dataclass(frozen=True)
class ClosestPoint:
    point: Coordinate
    distance_km: float
    index: int


def _normalized(latitude: float, longitude: float) -> Coordinate:
    """Clamp latitude to the poles and wrap longitude into [-180, 180)."""
    latitude = min(max(latitude, LAT_RANGE[0]), LAT_RANGE[1])
    if not LON_RANGE[0] <= longitude <= LON_RANGE[1]:
        longitude = (longitude + 180.0) % 360.0 - 180.0
    return Coordinate(latitude=latitude, longitude=longitude)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_coordinate(coordinate: Coordinate) -> ValidationResult:
    """Check that both components are finite numbers within range.

    NOT_A_NUMBER wins over OUT_OF_RANGE when both apply.
    """
    issues: list[str] = []
    code: ValidationCode | None = None

    for label, value, (low, high) in (
        ("Latitude", coordinate.latitude, LAT_RANGE),
        ("Longitude", coordinate.longitude, LON_RANGE),
    ):
        if not _is_number(value) or not math.isfinite(value):
            issues.append(f"{label} is not a valid number")
            code = ValidationCode.NOT_A_NUMBER
        elif value < low or value > high:
            issues.append(f"{label} {value} is outside valid range [{low:g}, {high:g}]")
            code = code or ValidationCode.OUT_OF_RANGE

    return ValidationResult.from_issues(issues, code=code)


def ensure_valid(*coordinates: Coordinate) -> None:
    """Raise InvalidCoordinateError listing the issues of every bad coordinate."""
    issues: list[str] = []
    for coordinate in coordinates:
        issues.extend(validate_coordinate(coordinate).issues)
    if issues:
        raise InvalidCoordinateError(issues)


def great_circle_distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance on a sphere of radius 6371 km."""
    ensure_valid(a, b)
    return a.haversine_km(b)


def is_point_in_polygon(point: Coordinate, polygon: Polygon) -> bool:
    """Ray-casting containment test.

    Degenerate polygons and invalid points are simply "outside".
    """
    if not validate_coordinate(point).is_valid:
        return False

    coords = polygon.coordinates
    if len(coords) < 3:
        return False

    inside = False
    x, y = point.longitude, point.latitude
    j = len(coords) - 1
    for i in range(len(coords)):
        xi, yi = coords[i].longitude, coords[i].latitude
        xj, yj = coords[j].longitude, coords[j].latitude
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def polygon_centroid(polygon: Polygon | Sequence[Coordinate]) -> Coordinate:
    """Arithmetic mean of the listed vertices.

    This is not the area centroid. A repeated closing vertex is counted like
    any other vertex.
    """
    coords = polygon.coordinates if isinstance(polygon, Polygon) else tuple(polygon)
    if not coords:
        raise EmptyPolygonError()

    ensure_valid(*coords)
    return Coordinate(
        latitude=sum(c.latitude for c in coords) / len(coords),
        longitude=sum(c.longitude for c in coords) / len(coords),
    )


def bounding_box(center: Coordinate, radius_km: float) -> BoundingBox:
    """Approximate box of +/- radius around center (degrees-per-km scaling).

    Corners stay valid coordinates: latitude is clamped at the poles and
    longitude wraps, so a box across the antimeridian has its east edge
    west of its south-west corner.
    """
    ensure_valid(center)
    if radius_km <= 0:
        raise InvalidRadiusError(radius_km)

    lat_offset = radius_km / KM_PER_DEGREE_LAT
    lon_offset = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(center.latitude)))
    if lon_offset >= 180.0:
        # wider than the globe: every longitude is inside
        east, west = LON_RANGE[1], LON_RANGE[0]
    else:
        east, west = center.longitude + lon_offset, center.longitude - lon_offset

    return BoundingBox(
        north_east=_normalized(center.latitude + lat_offset, east),
        south_west=_normalized(center.latitude - lat_offset, west),
    )


def validate_polygon(polygon: Polygon) -> ValidationResult:
    """Report structural problems; an open ring is only a warning."""
    issues: list[str] = []
    warnings: list[str] = []

    if len(polygon.coordinates) < 3:
        issues.append("Polygon must have at least 3 coordinates")

    for i, coordinate in enumerate(polygon.coordinates):
        result = validate_coordinate(coordinate)
        if not result.is_valid:
            issues.append(f"Coordinate {i}: {', '.join(result.issues)}")

    if polygon.coordinates and not polygon.is_closed():
        warnings.append("Polygon should be closed (first and last coordinates should be the same)")

    return ValidationResult.from_issues(issues, warnings=warnings)


def find_closest_point(target: Coordinate, points: Sequence[Coordinate]) -> ClosestPoint | None:
    """Nearest point by great-circle distance; first one wins ties."""
    if not points:
        return None

    best: ClosestPoint | None = None
    for index, point in enumerate(points):
        distance = great_circle_distance_km(target, point)
        if best is None or distance < best.distance_km:
            best = ClosestPoint(point=point, distance_km=distance, index=index)
    return best


def closest_point_on_boundary(target: Coordinate, polygon: Polygon) -> ClosestPoint | None:
    """Nearest point on any polygon edge, not just the vertices.

    Edges are projected onto a local equirectangular plane around
    ``target``, which is accurate at service-area scales. ``index`` is the
    edge's starting vertex. Open rings are closed implicitly.
    """
    vertices = list(polygon.coordinates)
    if not vertices:
        return None
    ensure_valid(target, *vertices)
    if len(vertices) == 1:
        return ClosestPoint(vertices[0], great_circle_distance_km(target, vertices[0]), 0)
    if not polygon.is_closed():
        vertices.append(vertices[0])

    km_per_degree = math.radians(1) * EARTH_RADIUS_KM
    x_scale = km_per_degree * math.cos(math.radians(target.latitude))

    def _project(c: Coordinate) -> tuple[float, float]:
        return (c.longitude - target.longitude) * x_scale, (c.latitude - target.latitude) * km_per_degree

    best: ClosestPoint | None = None
    for index, (start, end) in enumerate(zip(vertices, vertices[1:])):
        ax, ay = _project(start)
        bx, by = _project(end)
        dx, dy = bx - ax, by - ay
        length_sq = dx * dx + dy * dy
        t = 0.0 if length_sq == 0 else min(1.0, max(0.0, -(ax * dx + ay * dy) / length_sq))
        px, py = ax + t * dx, ay + t * dy
        distance = math.hypot(px, py)
        if best is None or distance < best.distance_km:
            point = Coordinate(
                latitude=start.latitude + t * (end.latitude - start.latitude),
                longitude=start.longitude + t * (end.longitude - start.longitude),
            )
            best = ClosestPoint(point=point, distance_km=distance, index=index)
    return best


def seeded_random(seed: int) -> Callable[[], float]:
    """Deterministic [0, 1) generator (LCG) for reproducible scenarios."""
    state = seed

    def _next() -> float:
        nonlocal state
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return state / LCG_MODULUS

    return _next


def generate_within_radius(
    center: Coordinate,
    radius_km: float,
    count: int,
    seed: int | None = None,
) -> list[Coordinate]:
    """Uniformly scatter ``count`` points in a disc around ``center``.

    Same seed, same points. Without a seed, system randomness is used.
    """
    ensure_valid(center)
    if radius_km <= 0:
        raise InvalidRadiusError(radius_km)
    if count <= 0:
        return []

    rand = seeded_random(seed) if seed is not None else random.random
    lon_scale = KM_PER_DEGREE_LAT * math.cos(math.radians(center.latitude))

    points = []
    for _ in range(count):
        angle = rand() * 2 * math.pi
        distance = math.sqrt(rand()) * radius_km
        points.append(
            _normalized(
                center.latitude + (distance * math.cos(angle)) / KM_PER_DEGREE_LAT,
                center.longitude + (distance * math.sin(angle)) / lon_scale,
            )
        )
    return points


def format_coordinate(coordinate: Coordinate, precision: int = 6) -> str:
    return f"{coordinate.latitude:.{precision}f}, {coordinate.longitude:.{precision}f}"
