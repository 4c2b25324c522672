"""Simulated road-routing provider — implements ExternalDistanceSource."""

from __future__ import annotations

import asyncio
import logging
import random

from geoassign.application.ports.distance_source import ExternalDistanceSource
from geoassign.domain.value_objects.geo_point import Coordinate

logger = logging.getLogger(__name__)

# Road distance is usually 1.2–1.5x the straight line
DETOUR_FACTOR_RANGE = (1.2, 1.5)


class RoutingServiceUnavailable(ConnectionError):
    pass


class SimulatedRoutingSource(ExternalDistanceSource):
    """Stand-in for a real routing provider.

    Returns the great-circle distance times a random detour factor after a
    random delay, and fails a configurable share of calls. Pass ``seed``
    for repeatable runs.
    """

    def __init__(
        self,
        failure_rate: float = 0.1,
        latency_range_s: tuple[float, float] = (0.1, 0.3),
        seed: int | None = None,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self._failure_rate = failure_rate
        self._latency_range = latency_range_s
        self._random = random.Random(seed)
        self.calls = 0

    async def lookup(self, origin: Coordinate, destination: Coordinate, timeout_s: float) -> float:
        self.calls += 1
        latency = self._random.uniform(*self._latency_range)
        if latency > 0:
            await asyncio.sleep(latency)

        if self._random.random() < self._failure_rate:
            logger.debug("Simulated routing failure for %s → %s", origin, destination)
            raise RoutingServiceUnavailable("Routing service temporarily unavailable")

        factor = self._random.uniform(*DETOUR_FACTOR_RANGE)
        return origin.haversine_km(destination) * factor
