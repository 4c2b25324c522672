"""Tests for CapacityPolicy."""

import pytest

from geoassign.domain.entities.route import Route
from geoassign.domain.policies.capacity import (
    PRIORITY_SEARCH,
    CapacityThresholds,
    classify_capacity,
    estimate_reschedule_delay_hours,
    validate_route_capacity,
)
from geoassign.domain.value_objects.enums import CapacityState, Priority
from geoassign.domain.value_objects.polygon import Polygon

AREA = Polygon.from_pairs([(0, 0), (0, 1), (1, 1), (0, 0)])
DEFAULTS = CapacityThresholds()


def _route(load: int, capacity: int = 10) -> Route:
    return Route(id="r", name="R", service_area=AREA, capacity=capacity, current_load=load)


@pytest.mark.parametrize(
    "load, expected",
    [
        (11, CapacityState.OVER_CAPACITY),
        (10, CapacityState.AT_CAPACITY),
        (9, CapacityState.NEAR_CAPACITY),
        (8, None),
        (0, None),
    ],
)
def test_classify_capacity(load, expected):
    conflict = classify_capacity(_route(load), DEFAULTS)
    assert (conflict.state if conflict else None) == expected


def test_near_threshold_is_inclusive():
    route = _route(load=1, capacity=2)
    thresholds = CapacityThresholds(near_capacity_percent=50)
    assert classify_capacity(route, thresholds).state == CapacityState.NEAR_CAPACITY


def test_custom_threshold():
    assert classify_capacity(_route(9), CapacityThresholds(near_capacity_percent=95)) is None


def test_conflict_overload():
    conflict = classify_capacity(_route(13), DEFAULTS)
    assert conflict.overload == 3
    assert conflict.utilization_percent == pytest.approx(130.0)


@pytest.mark.parametrize(
    "load, hours",
    [(10, 4), (11, 5), (15, 8), (20, 12), (5, 4)],
)
def test_reschedule_delay(load, hours):
    assert estimate_reschedule_delay_hours(_route(load)) == hours


def test_validate_capacity_issues_and_warnings():
    over = validate_route_capacity(_route(12), DEFAULTS)
    assert over.is_valid is False
    assert "over capacity" in over.issues[0]

    full = validate_route_capacity(_route(10), DEFAULTS)
    assert "full capacity" in full.issues[0]

    critical = validate_route_capacity(_route(39, capacity=40), DEFAULTS)
    assert critical.is_valid is True
    assert "critical" in critical.warnings[0]

    near = validate_route_capacity(_route(9), DEFAULTS)
    assert "near capacity" in near.warnings[0]
    assert near.details["available_slots"] == 1


def test_priority_table_widens_for_urgent_work():
    assert PRIORITY_SEARCH[Priority.LOW].include_near_capacity is False
    assert PRIORITY_SEARCH[Priority.HIGH].include_near_capacity is True
    assert PRIORITY_SEARCH[Priority.URGENT].max_distance_percent == 25
    assert set(PRIORITY_SEARCH) == set(Priority)
