"""
Common utility functions used across services and routes.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional


def utcnow() -> datetime:
    """Naive UTC now; the store keeps naive UTC timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso_format(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO string with Z suffix."""
    if dt is None:
        return None
    return dt.isoformat() + "Z"


def round_half_up(value: float, places: int = 0) -> float:
    """Round halves away from zero (12.5 -> 13), unlike the builtin banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def completion_percent(completed: int, total: int) -> int:
    """Share of completed materials, clamped to 100. Callers handle total == 0."""
    return int(min(100, round_half_up(100 * completed / total)))


def display_name(name: Optional[str], email: Optional[str]) -> str:
    """Get display name, falling back to the email prefix."""
    if isinstance(name, str) and name.strip():
        return name.strip()
    if email:
        return email.split("@", 1)[0]
    return "User"


def coerce_bool(value: Any) -> Optional[bool]:
    """Coerce a submitted answer to a boolean; None when it has no boolean reading."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None
