"""Small numeric and date helpers shared by the signal calculators."""
import math
from datetime import date, datetime, timezone
from typing import Any, Optional


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round half-up and clamp into [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def round1(value: float) -> float:
    return round_half_up(value * 10) / 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_date(value: Any) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date. Unparseable -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            return None
    return None


def to_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so they can be compared with ``utcnow()``."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(start: Optional[datetime], end: datetime) -> float:
    if start is None:
        return 0.0
    return (to_aware(end) - to_aware(start)).total_seconds() / 86400.0


def normalize_skill(name: Optional[str]) -> str:
    return (name or '').lower().strip()
