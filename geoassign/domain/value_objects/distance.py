"""DistanceResult value object — one resolved origin → destination distance."""

from dataclasses import dataclass

from geoassign.domain.value_objects.enums import DistanceMode


@dataclass(frozen=True)
class DistanceResult:
    distance_km: float
    mode: DistanceMode
    fallback_used: bool = False
    error: str | None = None  # last external failure when fallback_used
