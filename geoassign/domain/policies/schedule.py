"""ScheduleCompatibilityPolicy — can a route take this ticket at all?"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from geoassign.domain.entities.route import Route
from geoassign.domain.entities.ticket import Ticket
from geoassign.domain.value_objects.enums import Priority
from geoassign.domain.value_objects.validation import ValidationResult

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def weekday_name(moment: datetime) -> str:
    return WEEKDAYS[moment.weekday()]


def local_now(zone: tzinfo, now: datetime | None = None) -> datetime:
    """``now`` seen from the route's zone.

    Naive values are taken as already local to the route.
    """
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now
    return now.astimezone(zone)


def check_schedule(ticket: Ticket, route: Route, now: datetime | None = None) -> ValidationResult:
    """Schedule must exist, use HH:MM times, and cover today for urgent tickets."""
    issues: list[str] = []
    schedule = route.schedule

    if schedule is None or not schedule.days:
        issues.append(f"Route {route.name} has no valid schedule")

    if schedule is not None:
        if not TIME_PATTERN.match(schedule.start_time or ""):
            issues.append(f"Invalid start time format: {schedule.start_time}")
        if not TIME_PATTERN.match(schedule.end_time or ""):
            issues.append(f"Invalid end time format: {schedule.end_time}")

        try:
            zone = ZoneInfo(schedule.time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            issues.append(f"Unknown schedule time zone: {schedule.time_zone}")
            zone = timezone.utc

        if ticket.priority == Priority.URGENT:
            today = weekday_name(local_now(zone, now))
            if not schedule.operates_on(today):
                issues.append(f"Urgent ticket assigned to route not operating today ({today})")

    return ValidationResult.from_issues(issues)
