"""DistanceResolver — geometric or external distances with caching and fallback."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from geoassign.application.cache import BoundedCache, CacheStats
from geoassign.application.ports.distance_source import ExternalDistanceSource
from geoassign.application.retry import RetryExhaustedError, RetryPolicy, retry_async
from geoassign.config import settings
from geoassign.domain import geometry
from geoassign.domain.errors import BatchResolutionError, DistanceUnavailableError
from geoassign.domain.value_objects.distance import DistanceResult
from geoassign.domain.value_objects.enums import DistanceMode, ExecutionContext
from geoassign.domain.value_objects.geo_point import Coordinate
from geoassign.domain.value_objects.polygon import Polygon
from geoassign.domain.value_objects.validation import ValidationResult

logger = logging.getLogger(__name__)

CacheKey = tuple[tuple[float, float], tuple[float, float], DistanceMode]
CoordinatePair = tuple[Coordinate, Coordinate]


@dataclass(frozen=True)
class ResolveOptions:
    """Per-call overrides; None means "use the resolver's default"."""

    mode: DistanceMode | None = None
    timeout_s: float | None = None
    retry_count: int | None = None
    backoff_base_s: float | None = None
    overall_timeout_s: float | None = None
    fallback_to_geometric: bool | None = None


def build_cache() -> BoundedCache[CacheKey, DistanceResult]:
    return BoundedCache(
        max_size=settings.distance_cache_size,
        ttl_seconds=settings.distance_cache_ttl_seconds,
    )


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.distance_retry_count,
        backoff_base_s=settings.distance_backoff_base_seconds,
        attempt_timeout_s=settings.distance_attempt_timeout_seconds,
        overall_timeout_s=settings.distance_overall_timeout_seconds,
    )


class DistanceResolver:
    """Resolves distances between coordinates.

    Controlled contexts and geometric requests use the haversine formula
    directly. External requests go to the injected source with
    retry/backoff and, by default, fall back to geometric distance when
    every attempt fails. Each instance owns its cache.
    """

    def __init__(
        self,
        source: ExternalDistanceSource | None = None,
        *,
        context: ExecutionContext | None = None,
        cache: BoundedCache[CacheKey, DistanceResult] | None = None,
        retry_policy: RetryPolicy | None = None,
        fallback_to_geometric: bool | None = None,
        batch_size: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._source = source
        self._context = context or settings.execution_context
        self._cache = cache if cache is not None else build_cache()
        self._retry_policy = retry_policy or default_retry_policy()
        self._fallback = (
            fallback_to_geometric
            if fallback_to_geometric is not None
            else settings.distance_fallback_to_geometric
        )
        self._batch_size = batch_size or settings.distance_batch_size
        self._sleep = sleep

    @property
    def context(self) -> ExecutionContext:
        return self._context

    async def resolve(
        self,
        origin: Coordinate,
        destination: Coordinate,
        options: ResolveOptions | None = None,
    ) -> DistanceResult:
        """Resolve one distance.

        Raises:
            InvalidCoordinateError: either coordinate is malformed.
            DistanceUnavailableError: external lookups failed and fallback is off.
        """
        options = options or ResolveOptions()
        geometry.ensure_valid(origin, destination)

        mode = options.mode or self._default_mode()
        key: CacheKey = (origin.rounded(), destination.rounded(), mode)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Distance cache hit for %s", key)
            return cached

        if mode == DistanceMode.GEOMETRIC or self._context == ExecutionContext.CONTROLLED:
            result = DistanceResult(
                distance_km=origin.haversine_km(destination),
                mode=DistanceMode.GEOMETRIC,
            )
        else:
            result = await self._resolve_external(origin, destination, options)

        self._cache.put(key, result)
        return result

    async def resolve_to_area(
        self,
        origin: Coordinate,
        area: Polygon,
        options: ResolveOptions | None = None,
    ) -> DistanceResult:
        """Distance to the vertex-mean centroid of a service area."""
        return await self.resolve(origin, geometry.polygon_centroid(area), options)

    async def resolve_batch(
        self,
        pairs: Sequence[CoordinatePair],
        options: ResolveOptions | None = None,
    ) -> list[DistanceResult]:
        """Resolve many pairs, ``batch_size`` at a time.

        Pairs inside a batch run concurrently; batches run one after another.
        The first failure cancels the rest of its batch.

        Raises:
            BatchResolutionError: carrying the failing index and the results
                of every batch completed before it.
        """
        results: list[DistanceResult] = []

        for start in range(0, len(pairs), self._batch_size):
            group = pairs[start:start + self._batch_size]
            tasks = [
                asyncio.create_task(self.resolve(origin, destination, options))
                for origin, destination in group
            ]
            _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

            failed = [
                (i, task) for i, task in enumerate(tasks)
                if task.done() and not task.cancelled() and task.exception() is not None
            ]
            if failed:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

                index, task = failed[0]
                cause = task.exception()
                logger.warning(
                    "Batch starting at %d failed on pair %d: %s", start, start + index, cause
                )
                raise BatchResolutionError(start, start + index, cause, completed=list(results)) from cause

            results.extend(task.result() for task in tasks)

        return results

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def validate_configuration(self) -> ValidationResult:
        issues: list[str] = []
        if self._context == ExecutionContext.PRODUCTION and self._source is None:
            issues.append("Production context requires an external distance source")
        return ValidationResult.from_issues(issues)

    # ── internals ──────────────────────────────────────────────────────

    def _default_mode(self) -> DistanceMode:
        if self._context == ExecutionContext.CONTROLLED:
            return DistanceMode.GEOMETRIC
        return DistanceMode.EXTERNAL

    def _policy_for(self, options: ResolveOptions) -> RetryPolicy:
        base = self._retry_policy
        return RetryPolicy(
            max_attempts=options.retry_count or base.max_attempts,
            backoff_base_s=(
                options.backoff_base_s if options.backoff_base_s is not None else base.backoff_base_s
            ),
            attempt_timeout_s=options.timeout_s or base.attempt_timeout_s,
            overall_timeout_s=options.overall_timeout_s or base.overall_timeout_s,
        )

    async def _resolve_external(
        self,
        origin: Coordinate,
        destination: Coordinate,
        options: ResolveOptions,
    ) -> DistanceResult:
        policy = self._policy_for(options)
        source = self._source

        if source is None:
            attempts, failure, cause = 0, "No external distance source configured", None
        else:
            async def _attempt() -> float:
                distance = await source.lookup(origin, destination, policy.attempt_timeout_s)
                if not isinstance(distance, (int, float)) or not math.isfinite(distance) or distance < 0:
                    raise ValueError(f"External distance source returned invalid distance: {distance!r}")
                return float(distance)

            try:
                distance = await retry_async(
                    _attempt, policy, sleep=self._sleep, label="External distance lookup"
                )
                return DistanceResult(distance_km=distance, mode=DistanceMode.EXTERNAL)
            except RetryExhaustedError as exc:
                attempts, cause = exc.attempts, exc
                failure = str(exc.last_error) if exc.last_error else str(exc)

        fallback = (
            options.fallback_to_geometric
            if options.fallback_to_geometric is not None
            else self._fallback
        )
        if not fallback:
            raise DistanceUnavailableError(failure, attempts=attempts) from cause

        logger.warning("Distance calculation failed, using geometric fallback: %s", failure)
        return DistanceResult(
            distance_km=origin.haversine_km(destination),
            mode=DistanceMode.GEOMETRIC,
            fallback_used=True,
            error=failure,
        )
