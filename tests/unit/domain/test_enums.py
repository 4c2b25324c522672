"""Tests for domain enums."""

from geoassign.domain.value_objects.enums import (
    CapacityState,
    DistanceMode,
    ExecutionContext,
    Priority,
    ResolutionStrategy,
)


def test_priority_values():
    assert [p.value for p in Priority] == ["low", "medium", "high", "urgent"]


def test_priority_from_string():
    assert Priority("urgent") is Priority.URGENT


def test_distance_modes():
    assert DistanceMode.GEOMETRIC.value == "geometric"
    assert DistanceMode.EXTERNAL.value == "external"


def test_execution_contexts():
    assert ExecutionContext("controlled") is ExecutionContext.CONTROLLED
    assert ExecutionContext("production") is ExecutionContext.PRODUCTION


def test_capacity_states():
    assert CapacityState.NEAR_CAPACITY.value == "near_capacity"
    assert CapacityState.AT_CAPACITY.value == "at_capacity"
    assert CapacityState.OVER_CAPACITY.value == "over_capacity"


def test_resolution_strategies_count():
    assert len(ResolutionStrategy) == 4
