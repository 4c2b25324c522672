"""OverrideReasonPolicy — is a justification for a suboptimal assignment acceptable?"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from geoassign.domain.entities.assignment import Assignment
from geoassign.domain.value_objects.enums import ExecutionContext

STANDARD_REASONS = (
    "customer request",
    "emergency",
    "technician expertise",
    "equipment availability",
    "schedule conflict",
    "route optimization",
    "capacity management",
    "geographic constraint",
)

# Free-text reasons outside the vocabulary must be at least this long
MIN_DESCRIPTIVE_LENGTH = 10

# Production overrides must say they belong to a test or demo run
TEST_CONTEXT_MARKERS = ("test", "demo")

REQUIRED_FIELDS = ("override_reason", "assigned_by")


@dataclass(frozen=True)
class OverrideResult:
    is_valid: bool
    reason: str | None
    required_fields: tuple[str, ...] = REQUIRED_FIELDS
    missing_fields: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def matches_standard_reason(reason: str) -> bool:
    """Case-insensitive substring match, also accepting snake_case codes."""
    text = reason.lower()
    return any(
        code in text or code.replace(" ", "_") in text
        for code in STANDARD_REASONS
    )


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Return an aware datetime, or None when the value can't be read.

    Naive values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def validate_override_reason(
    assignment: Assignment,
    context: ExecutionContext,
    now: datetime | None = None,
    max_age_hours: float = 24.0,
) -> OverrideResult:
    """Run every override check and return all findings together.

    Rules:
      1. ``override_reason`` and ``assigned_by`` must be non-blank.
      2. The reason names a standard code, or is at least 10 characters.
      3. Outside a controlled context the reason must mention test/demo.
      4. ``assigned_at`` must parse and be at most ``max_age_hours`` old.
    """
    missing: list[str] = []
    errors: list[str] = []
    reason = assignment.override_reason

    if not reason or not reason.strip():
        missing.append("override_reason")
    if not assignment.assigned_by or not assignment.assigned_by.strip():
        missing.append("assigned_by")

    if reason and reason.strip():
        if not matches_standard_reason(reason) and len(reason.strip()) < MIN_DESCRIPTIVE_LENGTH:
            errors.append(
                "Override reason must be descriptive (minimum 10 characters) "
                "or use standard reason codes"
            )
        if context != ExecutionContext.CONTROLLED and not any(
            marker in reason.lower() for marker in TEST_CONTEXT_MARKERS
        ):
            errors.append("Production overrides should indicate test context")

    assigned_at = parse_timestamp(assignment.assigned_at)
    if assigned_at is None:
        errors.append("Invalid assignment timestamp")
    else:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        age_hours = (now - assigned_at).total_seconds() / 3600
        if age_hours > max_age_hours:
            errors.append(f"Assignment is too old ({age_hours:.1f} hours)")

    return OverrideResult(
        is_valid=not missing and not errors,
        reason=reason,
        missing_fields=missing,
        errors=errors,
    )
