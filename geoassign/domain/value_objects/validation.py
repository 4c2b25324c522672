"""ValidationResult — outcome of a check that reports instead of raising."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from geoassign.domain.value_objects.enums import ValidationCode


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    code: ValidationCode | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, warnings: list[str] | None = None, **details: Any) -> ValidationResult:
        return cls(is_valid=True, warnings=warnings or [], details=details)

    @classmethod
    def from_issues(
        cls,
        issues: list[str],
        warnings: list[str] | None = None,
        code: ValidationCode | None = None,
        **details: Any,
    ) -> ValidationResult:
        return cls(
            is_valid=not issues,
            issues=list(issues),
            warnings=warnings or [],
            code=code if issues else None,
            details=details,
        )
