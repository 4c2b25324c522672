"""Tests for DistanceResolver with a fake external source."""

import asyncio
import time

import pytest

from geoassign.application.cache import BoundedCache
from geoassign.application.ports.distance_source import ExternalDistanceSource
from geoassign.application.retry import RetryPolicy
from geoassign.application.services.distance_resolver import DistanceResolver, ResolveOptions
from geoassign.domain.errors import (
    BatchResolutionError,
    DistanceUnavailableError,
    InvalidCoordinateError,
)
from geoassign.domain.value_objects.enums import DistanceMode, ExecutionContext
from geoassign.domain.value_objects.geo_point import Coordinate
from geoassign.domain.value_objects.polygon import Polygon

A = Coordinate(42.5, -92.5)
B = Coordinate(42.51, -92.51)
C = Coordinate(42.52, -92.5)

# ─── Fakes ──────────────────────────────────────────────────────────


class FakeSource(ExternalDistanceSource):
    def __init__(self, distance: float = 2.0, failures: int = 0, delay_s: float = 0.0):
        self.distance = distance
        self.failures = failures
        self.delay_s = delay_s
        self.calls = 0

    async def lookup(self, origin, destination, timeout_s):
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.calls <= self.failures:
            raise ConnectionError("routing down")
        return self.distance


class FailOnSource(ExternalDistanceSource):
    """Fails for one destination only."""

    def __init__(self, bad: Coordinate):
        self.bad = bad

    async def lookup(self, origin, destination, timeout_s):
        if destination == self.bad:
            raise ConnectionError("no route")
        return 1.0


def _production(source=None, **kwargs) -> DistanceResolver:
    kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=3, backoff_base_s=0, attempt_timeout_s=1.0))
    kwargs.setdefault("cache", BoundedCache(max_size=100))
    return DistanceResolver(source, context=ExecutionContext.PRODUCTION, **kwargs)


# ─── Controlled / geometric ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_controlled_context_is_geometric(controlled_resolver):
    result = await controlled_resolver.resolve(A, B)
    assert result.mode == DistanceMode.GEOMETRIC
    assert result.fallback_used is False
    assert result.distance_km == pytest.approx(1.3815, rel=1e-3)


@pytest.mark.asyncio
async def test_controlled_context_never_calls_source():
    source = FakeSource()
    resolver = DistanceResolver(source, context=ExecutionContext.CONTROLLED)
    result = await resolver.resolve(A, B, ResolveOptions(mode=DistanceMode.EXTERNAL))
    assert result.mode == DistanceMode.GEOMETRIC
    assert source.calls == 0


@pytest.mark.asyncio
async def test_invalid_coordinate_raises(controlled_resolver):
    with pytest.raises(InvalidCoordinateError):
        await controlled_resolver.resolve(A, Coordinate(91, 0))


# ─── Caching ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cache_hit_skips_external_source():
    source = FakeSource(distance=3.3)
    resolver = _production(source)
    first = await resolver.resolve(A, B)
    second = await resolver.resolve(A, B)
    assert first == second
    assert first.mode == DistanceMode.EXTERNAL
    assert source.calls == 1
    stats = resolver.cache_stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)


@pytest.mark.asyncio
async def test_cache_key_uses_rounded_coordinates():
    source = FakeSource()
    resolver = _production(source)
    await resolver.resolve(A, B)
    await resolver.resolve(Coordinate(42.5000000001, -92.5), B)
    assert source.calls == 1


@pytest.mark.asyncio
async def test_modes_are_cached_separately():
    source = FakeSource(distance=9.0)
    resolver = _production(source)
    external = await resolver.resolve(A, B)
    geometric = await resolver.resolve(A, B, ResolveOptions(mode=DistanceMode.GEOMETRIC))
    assert external.distance_km == 9.0
    assert geometric.mode == DistanceMode.GEOMETRIC
    assert resolver.cache_stats().size == 2


@pytest.mark.asyncio
async def test_clear_cache():
    source = FakeSource()
    resolver = _production(source)
    await resolver.resolve(A, B)
    resolver.clear_cache()
    await resolver.resolve(A, B)
    assert source.calls == 2


# ─── Retry / fallback ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_transient_failures_are_retried(fake_sleep):
    source = FakeSource(distance=4.0, failures=2)
    resolver = _production(
        source, retry_policy=RetryPolicy(max_attempts=3, backoff_base_s=1.0), sleep=fake_sleep
    )
    result = await resolver.resolve(A, B)
    assert result.distance_km == 4.0
    assert source.calls == 3
    assert fake_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_fallback_to_geometric_after_exhaustion():
    source = FakeSource(failures=10)
    result = await _production(source).resolve(A, B)
    assert result.mode == DistanceMode.GEOMETRIC
    assert result.fallback_used is True
    assert result.error == "routing down"
    assert result.distance_km == pytest.approx(A.haversine_km(B))
    assert source.calls == 3


@pytest.mark.asyncio
async def test_unavailable_when_fallback_disabled():
    source = FakeSource(failures=10)
    resolver = _production(source, fallback_to_geometric=False)
    with pytest.raises(DistanceUnavailableError) as exc_info:
        await resolver.resolve(A, B)
    assert exc_info.value.attempts == 3
    assert resolver.cache_stats().size == 0


@pytest.mark.asyncio
async def test_per_call_fallback_override():
    resolver = _production(FakeSource(failures=10))
    with pytest.raises(DistanceUnavailableError):
        await resolver.resolve(A, B, ResolveOptions(fallback_to_geometric=False))


@pytest.mark.asyncio
async def test_attempt_timeout_triggers_fallback():
    source = FakeSource(delay_s=1.0)
    resolver = _production(source)
    result = await resolver.resolve(A, B, ResolveOptions(timeout_s=0.01, retry_count=2))
    assert result.fallback_used is True
    assert "timed out" in result.error
    assert source.calls == 2


@pytest.mark.asyncio
async def test_invalid_external_distance_is_a_failure():
    resolver = _production(FakeSource(distance=-1.0))
    result = await resolver.resolve(A, B)
    assert result.fallback_used is True
    assert "invalid distance" in result.error


@pytest.mark.asyncio
async def test_missing_source_falls_back_immediately():
    result = await _production(None).resolve(A, B)
    assert result.fallback_used is True
    assert result.error == "No external distance source configured"


@pytest.mark.asyncio
async def test_missing_source_without_fallback():
    with pytest.raises(DistanceUnavailableError) as exc_info:
        await _production(None, fallback_to_geometric=False).resolve(A, B)
    assert exc_info.value.attempts == 0


# ─── Areas / batches ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_resolve_to_area_uses_centroid(controlled_resolver):
    triangle = Polygon.from_pairs([(42.5, -92.5), (42.5, -92.47), (42.53, -92.5)])
    result = await controlled_resolver.resolve_to_area(A, triangle)
    assert result.distance_km == pytest.approx(A.haversine_km(Coordinate(42.51, -92.49)))


@pytest.mark.asyncio
async def test_batch_preserves_order():
    resolver = DistanceResolver(context=ExecutionContext.CONTROLLED, batch_size=2)
    pairs = [(A, B), (A, C), (B, C), (A, A), (C, A)]
    results = await resolver.resolve_batch(pairs)
    assert [r.distance_km for r in results] == pytest.approx([o.haversine_km(d) for o, d in pairs])


@pytest.mark.asyncio
async def test_empty_batch():
    assert await DistanceResolver(context=ExecutionContext.CONTROLLED).resolve_batch([]) == []


@pytest.mark.asyncio
async def test_batch_failure_reports_index_and_completed():
    resolver = _production(FailOnSource(bad=C), fallback_to_geometric=False, batch_size=2)
    pairs = [(A, B), (B, A), (A, C), (B, B)]
    with pytest.raises(BatchResolutionError) as exc_info:
        await resolver.resolve_batch(pairs)
    error = exc_info.value
    assert error.batch_start == 2
    assert error.index == 2
    assert [r.distance_km for r in error.completed] == [1.0, 1.0]
    assert isinstance(error.__cause__, DistanceUnavailableError)


# ─── Configuration ──────────────────────────────────────────────────


def test_validate_configuration():
    assert DistanceResolver(context=ExecutionContext.CONTROLLED).validate_configuration().is_valid
    assert _production(FakeSource()).validate_configuration().is_valid
    missing = _production(None).validate_configuration()
    assert missing.is_valid is False
    assert "external distance source" in missing.issues[0]


def test_context_property():
    assert _production(None).context == ExecutionContext.PRODUCTION


# ─── Concurrency ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_resolves_share_a_bounded_cache():
    cache = BoundedCache(max_size=8)
    resolver = DistanceResolver(context=ExecutionContext.CONTROLLED, cache=cache)
    destinations = [Coordinate(42.5 + i * 0.001, -92.5) for i in range(30)]

    results = await asyncio.gather(*(resolver.resolve(A, destinations[i % 30]) for i in range(90)))

    assert len(results) == 90
    assert len(cache) <= 8
    stats = resolver.cache_stats()
    assert stats.size == len(cache)
    assert stats.hits + stats.misses == 90
    for i, result in enumerate(results):
        assert result.distance_km == pytest.approx(A.haversine_km(destinations[i % 30]))


@pytest.mark.asyncio
async def test_pairs_in_a_batch_run_concurrently():
    source = FakeSource(distance=1.0, delay_s=0.2)
    resolver = _production(source, batch_size=5)
    pairs = [(A, Coordinate(42.5 + i * 0.01, -92.5)) for i in range(5)]

    started = time.monotonic()
    results = await resolver.resolve_batch(pairs)
    elapsed = time.monotonic() - started

    assert len(results) == 5
    assert source.calls == 5
    assert elapsed < 0.6


@pytest.mark.asyncio
async def test_batches_run_one_after_another():
    source = FakeSource(distance=1.0, delay_s=0.1)
    resolver = _production(source, batch_size=2)
    pairs = [(A, Coordinate(42.5 + i * 0.01, -92.5)) for i in range(4)]

    started = time.monotonic()
    await resolver.resolve_batch(pairs)

    assert time.monotonic() - started >= 0.19
