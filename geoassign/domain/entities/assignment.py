"""Assignment entity — a proposed or historical ticket → route binding."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Assignment:
    id: str
    ticket_id: str
    route_id: str
    assigned_at: datetime | str | None
    assigned_by: str
    override_reason: str | None = None

    def has_override(self) -> bool:
        return bool(self.override_reason and self.override_reason.strip())
